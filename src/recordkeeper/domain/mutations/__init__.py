"""Mutation-safety layer: versioned writes, reconciliation, guarded deletes."""

from __future__ import annotations

from .commands import (
    CommandValidationError,
    CreateCommand,
    DeleteCommand,
    MutationCommand,
    ReplaceRelationshipCommand,
    UpdateCommand,
)
from .guard import CyclicDependencyRulesError, DeletionGuard, ensure_acyclic_rules
from .outcomes import (
    Blocked,
    CascadeStep,
    Clear,
    Committed,
    Conflict,
    Deletion,
    Fatal,
    GuardVerdict,
    MutationOutcome,
    NotFound,
    OutcomeStatus,
    Reconciliation,
    RelationshipSet,
    StoreWrite,
)
from .reconciler import RelationshipReconciler, plan_reconciliation
from .service import MutationService, UnitOfWorkFactory

__all__ = [
    "Blocked",
    "CascadeStep",
    "Clear",
    "CommandValidationError",
    "Committed",
    "Conflict",
    "CreateCommand",
    "CyclicDependencyRulesError",
    "DeleteCommand",
    "DeletionGuard",
    "Deletion",
    "Fatal",
    "GuardVerdict",
    "MutationCommand",
    "MutationOutcome",
    "MutationService",
    "NotFound",
    "OutcomeStatus",
    "Reconciliation",
    "RelationshipReconciler",
    "RelationshipSet",
    "ReplaceRelationshipCommand",
    "StoreWrite",
    "UnitOfWorkFactory",
    "UpdateCommand",
    "ensure_acyclic_rules",
    "plan_reconciliation",
]
