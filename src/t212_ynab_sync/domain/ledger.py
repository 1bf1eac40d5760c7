"""YNAB-side domain objects: ledger entries, payees and derived positions."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from t212_ynab_sync.domain.value_objects import ClearedStatus, FlagColor


@dataclass
class SubEntry:
    amount: int
    payee_name: str | None = None
    payee_id: str | None = None
    memo: str | None = None
    category_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"amount": self.amount}
        for key in ("payee_id", "payee_name", "category_id", "memo"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "SubEntry":
        return cls(
            amount=int(data["amount"]),
            payee_name=data.get("payee_name"),
            payee_id=data.get("payee_id"),
            memo=data.get("memo"),
            category_id=data.get("category_id"),
        )


@dataclass
class LedgerEntry:
    """A YNAB transaction, either read from the ledger or about to be written.

    Entries to create carry an import_id; entries to update carry the
    ledger-assigned id.
    """

    account_id: str
    date: date
    amount: int
    cleared: ClearedStatus = ClearedStatus.CLEARED
    payee_name: str | None = None
    payee_id: str | None = None
    memo: str | None = None
    category_id: str | None = None
    approved: bool | None = None
    flag_color: FlagColor | None = None
    import_id: str | None = None
    id: str | None = None
    subtransactions: list[SubEntry] = field(default_factory=list)

    @property
    def is_split(self) -> bool:
        return bool(self.subtransactions)

    def _base_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "amount": self.amount,
            "cleared": self.cleared.value,
        }
        for key in ("payee_id", "payee_name", "category_id", "memo", "approved"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        if self.flag_color is not None:
            payload["flag_color"] = self.flag_color.value
        if self.is_split:
            payload["subtransactions"] = [s.to_payload() for s in self.subtransactions]
        return payload

    def to_create_payload(self) -> dict[str, Any]:
        payload = self._base_payload()
        if self.import_id is not None:
            payload["import_id"] = self.import_id
        return payload

    def to_update_payload(self) -> dict[str, Any]:
        if self.id is None:
            raise ValueError("Cannot update a ledger entry without an id")
        payload = self._base_payload()
        payload["id"] = self.id
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "LedgerEntry":
        """Build an entry from a transaction as returned by the YNAB API."""
        flag = data.get("flag_color")
        return cls(
            account_id=data["account_id"],
            date=date.fromisoformat(data["date"]),
            amount=int(data["amount"]),
            cleared=ClearedStatus(data.get("cleared") or ClearedStatus.UNCLEARED.value),
            payee_name=data.get("payee_name"),
            payee_id=data.get("payee_id"),
            memo=data.get("memo"),
            category_id=data.get("category_id"),
            approved=data.get("approved"),
            flag_color=FlagColor(flag) if flag else None,
            import_id=data.get("import_id"),
            id=data.get("id"),
            subtransactions=[
                SubEntry.from_payload(sub)
                for sub in data.get("subtransactions") or []
                if not sub.get("deleted")
            ],
        )


@dataclass(frozen=True)
class Payee:
    id: str
    name: str


@dataclass(frozen=True)
class Instrument:
    ticker: str
    isin: str
    name: str
    short_name: str


@dataclass(frozen=True)
class OpenPosition:
    """A live Trading212 position: quantity in 1e-10 shares, P&L in milliunits."""

    ticker: str
    quantity: int
    unrealized_pnl: int


@dataclass
class Position:
    """Per-ISIN state rebuilt from the ledger's stock entries on every run."""

    quantity: int = 0
    total_amount: int = 0
    uncleared_id: str | None = None
