"""Reconciliation services: classification, position replay and the sync run."""

from t212_ynab_sync.services.classifier import (
    CategoryIds,
    ClassificationContext,
    ClassificationResult,
    SkippedTransaction,
    TransactionMapper,
)
from t212_ynab_sync.services.interfaces import (
    ExportInclusions,
    ExportSource,
    ExportStatus,
    LedgerClient,
)
from t212_ynab_sync.services.positions import PositionAdjustments, PositionReconciler
from t212_ynab_sync.services.sync import SyncConfig, SyncOrchestrator, SyncResult

__all__ = [
    "CategoryIds",
    "ClassificationContext",
    "ClassificationResult",
    "ExportInclusions",
    "ExportSource",
    "ExportStatus",
    "LedgerClient",
    "PositionAdjustments",
    "PositionReconciler",
    "SkippedTransaction",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncResult",
    "TransactionMapper",
]
