from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from email.utils import format_datetime

from t212_ynab_sync.domain.value_objects import TransactionAction

RawTransaction = dict[str, str]


@dataclass(frozen=True)
class NormalizedTransaction:
    """A validated row of the Trading212 export.

    Money fields are YNAB milliunits; share_count is in 1e-10 shares.
    """

    action: TransactionAction
    timestamp: datetime
    id: str
    total: int

    # Security
    isin: str | None = None
    ticker: str | None = None
    name: str | None = None

    # Trade
    share_count: int | None = None
    price_per_share: int | None = None
    price_per_share_currency: str | None = None
    exchange_rate: Decimal | None = None

    # Results
    result: int | None = None
    result_currency: str | None = None
    total_currency: str | None = None

    # Tax
    withholding_tax: int | None = None
    withholding_tax_currency: str | None = None

    notes: str | None = None

    # Currency conversion
    conversion_from_amount: int | None = None
    conversion_from_currency: str | None = None
    conversion_to_amount: int | None = None
    conversion_to_currency: str | None = None
    conversion_fee: int | None = None
    conversion_fee_currency: str | None = None

    @property
    def utc_timestamp(self) -> datetime:
        if self.timestamp.tzinfo is None:
            return self.timestamp.replace(tzinfo=UTC)
        return self.timestamp.astimezone(UTC)

    @property
    def date(self) -> date:
        """Calendar date of the transaction in UTC."""
        return self.utc_timestamp.date()

    @property
    def import_seed(self) -> str:
        """Seed for the import id: RFC 1123 timestamp and Trading212 id.

        The timestamp renders without fractions of a second, e.g.
        "Mon, 15 Jan 2024 10:30:00 GMT:EOF123".
        """
        stamp = format_datetime(self.utc_timestamp.replace(microsecond=0), usegmt=True)
        return f"{stamp}:{self.id}"
