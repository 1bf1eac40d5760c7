from enum import Enum


class TransactionAction(str, Enum):
    """Values of the Trading212 export's Action column."""

    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    MARKET_BUY = "Market buy"
    MARKET_SELL = "Market sell"
    DIVIDEND = "Dividend (Dividend)"
    INTEREST_ON_CASH = "Interest on cash"
    LENDING_INTEREST = "Lending interest"
    CURRENCY_CONVERSION = "Currency conversion"
    NEW_CARD_COST = "New card cost"


class ClearedStatus(str, Enum):
    CLEARED = "cleared"
    UNCLEARED = "uncleared"
    RECONCILED = "reconciled"

    @property
    def is_settled(self) -> bool:
        return self in (ClearedStatus.CLEARED, ClearedStatus.RECONCILED)


class FlagColor(str, Enum):
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"


class ExportState(str, Enum):
    """Status values of a Trading212 CSV export report."""

    QUEUED = "Queued"
    PROCESSING = "Processing"
    RUNNING = "Running"
    CANCELED = "Canceled"
    FAILED = "Failed"
    FINISHED = "Finished"


class SkipReason(str, Enum):
    ALREADY_IMPORTED = "already_imported"
    FOREIGN_CURRENCY = "foreign_currency"
    UNREPRESENTABLE_CONVERSION = "unrepresentable_conversion"
