from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from t212_ynab_sync.domain.import_ids import make_import_id
from t212_ynab_sync.domain.ledger import (
    Instrument,
    LedgerEntry,
    OpenPosition,
    Payee,
)
from t212_ynab_sync.domain.transactions import NormalizedTransaction
from t212_ynab_sync.domain.value_objects import ClearedStatus, TransactionAction
from t212_ynab_sync.services.interfaces import (
    ExportInclusions,
    ExportSource,
    ExportStatus,
    LedgerClient,
)

ACCOUNT_ID = "acc-1"
BUDGET_ID = "budget-1"
APPLE_ISIN = "US0378331005"

EXPORT_HEADER = (
    "Action,Time,ISIN,Ticker,Name,No. of shares,Price / share,"
    "Currency (Price / share),Exchange rate,Result,Currency (Result),Total,"
    "Currency (Total),Notes,ID,Currency conversion fee,"
    "Currency (Currency conversion fee)"
)


def make_tx(
    action: TransactionAction = TransactionAction.DEPOSIT,
    total: int = 100000,
    tx_id: str = "TX1",
    timestamp: datetime | None = None,
    **kwargs,
) -> NormalizedTransaction:
    """Create a NormalizedTransaction for testing."""
    return NormalizedTransaction(
        action=action,
        timestamp=timestamp or datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        id=tx_id,
        total=total,
        **kwargs,
    )


def make_stock_entry(
    amount: int,
    memo: str = f"10x AAPL [{APPLE_ISIN}]",
    cleared: ClearedStatus = ClearedStatus.CLEARED,
    seed: str = "seed",
    payee_name: str = "Stock: Apple",
    **kwargs,
) -> LedgerEntry:
    """Create a stock ledger entry carrying a current-version import id."""
    kwargs.setdefault("import_id", make_import_id(seed))
    return LedgerEntry(
        account_id=ACCOUNT_ID,
        date=date(2024, 1, 15),
        amount=amount,
        cleared=cleared,
        payee_name=payee_name,
        memo=memo,
        **kwargs,
    )


def export_csv(*rows: str) -> str:
    return "\n".join([EXPORT_HEADER, *rows]) + "\n"


class FakeExportSource(ExportSource):
    """In-memory Trading212 with a scripted sequence of export statuses."""

    def __init__(
        self,
        csv_text: str = "",
        statuses: Sequence[ExportStatus] | None = None,
        currency: str = "GBP",
        instruments: list[Instrument] | None = None,
        positions: list[OpenPosition] | None = None,
    ) -> None:
        self.csv_text = csv_text
        self.statuses = list(
            statuses
            or [ExportStatus(1, "Finished", "https://exports.example/1.csv")]
        )
        self.currency = currency
        self.instruments = instruments or []
        self.positions = positions or []
        self.export_requests: list[tuple[datetime, datetime, ExportInclusions]] = []
        self.status_calls = 0
        self.downloaded: list[str] = []

    async def request_export(self, time_from, time_to, include) -> int:
        self.export_requests.append((time_from, time_to, include))
        return 1

    async def get_export_status(self, report_id: int) -> ExportStatus:
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        return self.statuses[index]

    async def download(self, download_link: str) -> str:
        self.downloaded.append(download_link)
        return self.csv_text

    async def get_account_currency(self) -> str:
        return self.currency

    async def get_instruments(self) -> list[Instrument]:
        return self.instruments

    async def get_open_positions(self) -> list[OpenPosition]:
        return self.positions


class FakeLedger(LedgerClient):
    """In-memory YNAB account that assigns ids to created entries."""

    def __init__(
        self,
        transactions: list[LedgerEntry] | None = None,
        payees: list[Payee] | None = None,
    ) -> None:
        self.transactions = list(transactions or [])
        self.payees = payees or []
        self.created: list[list[LedgerEntry]] = []
        self.updated: list[list[LedgerEntry]] = []

    async def get_payees(self, budget_id: str) -> list[Payee]:
        return self.payees

    async def get_transactions(self, budget_id, account_id) -> list[LedgerEntry]:
        return list(self.transactions)

    async def create_transactions(self, budget_id, entries) -> None:
        self.created.append(list(entries))
        for entry in entries:
            self.transactions.append(
                replace(entry, id=f"ynab-{len(self.transactions) + 1}")
            )

    async def update_transactions(self, budget_id, entries) -> None:
        self.updated.append(list(entries))
        by_id = {e.id: e for e in entries}
        self.transactions = [
            replace(by_id[t.id], import_id=t.import_id) if t.id in by_id else t
            for t in self.transactions
        ]


@pytest.fixture
def apple() -> Instrument:
    return Instrument(
        ticker="AAPL_US_EQ", isin=APPLE_ISIN, name="Apple", short_name="AAPL"
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 2, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def sample_buy() -> NormalizedTransaction:
    return make_tx(
        action=TransactionAction.MARKET_BUY,
        total=1500000,
        tx_id="EOF1",
        isin=APPLE_ISIN,
        ticker="AAPL",
        name="Apple",
        share_count=100000000000,
        price_per_share=1500000,
        exchange_rate=Decimal("1.25"),
        total_currency="GBP",
    )
