from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from t212_ynab_sync.domain.ledger import Instrument, LedgerEntry, OpenPosition, Payee
from t212_ynab_sync.domain.value_objects import ExportState


@dataclass(frozen=True)
class ExportInclusions:
    dividends: bool = True
    interest: bool = True
    orders: bool = True
    transactions: bool = True


@dataclass(frozen=True)
class ExportStatus:
    report_id: int
    status: ExportState | str
    download_link: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status == ExportState.FINISHED and bool(self.download_link)

    @property
    def is_failed(self) -> bool:
        return self.status in (ExportState.FAILED, ExportState.CANCELED)


class ExportSource(ABC):
    """Brokerage side of the sync: history exports and live portfolio data."""

    @abstractmethod
    async def request_export(
        self,
        time_from: datetime,
        time_to: datetime,
        include: ExportInclusions,
    ) -> int:
        """Request a CSV export and return its report id."""

    @abstractmethod
    async def get_export_status(self, report_id: int) -> ExportStatus:
        pass

    @abstractmethod
    async def download(self, download_link: str) -> str:
        pass

    @abstractmethod
    async def get_account_currency(self) -> str:
        pass

    @abstractmethod
    async def get_instruments(self) -> list[Instrument]:
        pass

    @abstractmethod
    async def get_open_positions(self) -> list[OpenPosition]:
        pass


class LedgerClient(ABC):
    """Budgeting ledger side of the sync."""

    @abstractmethod
    async def get_payees(self, budget_id: str) -> list[Payee]:
        pass

    @abstractmethod
    async def get_transactions(
        self, budget_id: str, account_id: str
    ) -> list[LedgerEntry]:
        pass

    @abstractmethod
    async def create_transactions(
        self, budget_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        pass

    @abstractmethod
    async def update_transactions(
        self, budget_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        pass
