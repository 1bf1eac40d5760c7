"""Reconcile a Trading212 brokerage account into a YNAB budget account."""

from t212_ynab_sync.domain.ledger import LedgerEntry, Position
from t212_ynab_sync.domain.transactions import NormalizedTransaction
from t212_ynab_sync.services.sync import SyncConfig, SyncOrchestrator, SyncResult

__all__ = [
    "LedgerEntry",
    "NormalizedTransaction",
    "Position",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncResult",
]

__version__ = "0.1.0"
