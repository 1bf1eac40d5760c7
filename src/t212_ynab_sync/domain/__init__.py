from t212_ynab_sync.domain.ledger import (
    Instrument,
    LedgerEntry,
    OpenPosition,
    Payee,
    Position,
    SubEntry,
)
from t212_ynab_sync.domain.transactions import NormalizedTransaction, RawTransaction
from t212_ynab_sync.domain.value_objects import (
    ClearedStatus,
    ExportState,
    FlagColor,
    SkipReason,
    TransactionAction,
)

__all__ = [
    "ClearedStatus",
    "ExportState",
    "FlagColor",
    "Instrument",
    "LedgerEntry",
    "NormalizedTransaction",
    "OpenPosition",
    "Payee",
    "Position",
    "RawTransaction",
    "SkipReason",
    "SubEntry",
    "TransactionAction",
]
