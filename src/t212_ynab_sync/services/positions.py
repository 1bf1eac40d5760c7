"""Rebuilds per-security positions from the ledger and marks them to market.

Stock entries are replayed in ledger order to recover quantity and cost basis
per ISIN. Each position still held in Trading212 then gets one uncleared
"current value" entry whose amount is the cost basis plus this position's
share of the live unrealized P&L. That entry is updated in place while it
stays uncleared; otherwise a new one is created.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from fractions import Fraction

from t212_ynab_sync.domain.import_ids import (
    is_current_version,
    make_import_id,
    mark_to_market_seed,
)
from t212_ynab_sync.domain.ledger import (
    Instrument,
    LedgerEntry,
    OpenPosition,
    Payee,
    Position,
)
from t212_ynab_sync.domain.memo import (
    format_stock_memo,
    is_dividend_memo,
    is_stock_leg,
    is_stock_payee,
    parse_stock_memo,
    stock_payee_name,
)
from t212_ynab_sync.domain.value_objects import ClearedStatus
from t212_ynab_sync.exceptions import InternalConsistencyError, ValidationError
from t212_ynab_sync.logging_config import get_logger

logger = get_logger(__name__)


def round_half_up(value: Fraction) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return math.floor(value + Fraction(1, 2))


@dataclass
class PositionAdjustments:
    to_add: list[LedgerEntry] = field(default_factory=list)
    to_update: list[LedgerEntry] = field(default_factory=list)


class PositionReconciler:
    """Replays stock entries and emits mark-to-market entries per held ISIN."""

    def __init__(
        self,
        account_id: str,
        stock_category_id: str | None = None,
        payees: Iterable[Payee] = (),
    ) -> None:
        self._account_id = account_id
        self._stock_category_id = stock_category_id
        self._payee_ids: dict[str, str] = {}
        for payee in payees:
            self._payee_ids.setdefault(payee.name, payee.id)

    def replay(self, entries: Iterable[LedgerEntry]) -> dict[str, Position]:
        """Accumulate quantity, cost basis and uncleared entry id per ISIN.

        Raises:
            InternalConsistencyError: If a stock entry's memo cannot be parsed.
        """
        positions: dict[str, Position] = {}

        for entry in entries:
            if (
                not is_stock_payee(entry.payee_name)
                or not is_current_version(entry.import_id)
                or is_dividend_memo(entry.memo)
            ):
                continue

            try:
                parsed = parse_stock_memo(entry.memo)
            except ValidationError:
                parsed = None
            if parsed is None:
                raise InternalConsistencyError(
                    f"Could not parse memo: {entry.memo}",
                    context={"import_id": entry.import_id, "memo": entry.memo},
                )

            position = positions.setdefault(parsed.isin, Position())

            if entry.cleared.is_settled:
                self._apply_trade(position, parsed.quantity, self._stock_amount(entry))
            elif entry.cleared == ClearedStatus.UNCLEARED and entry.id:
                position.uncleared_id = entry.id

        return positions

    @staticmethod
    def _stock_amount(entry: LedgerEntry) -> int:
        """Amount of the stock leg, leaving out a split-off conversion fee."""
        for sub in entry.subtransactions:
            if is_stock_leg(sub.memo):
                return sub.amount
        return entry.amount

    @staticmethod
    def _apply_trade(position: Position, quantity: int, amount: int) -> None:
        if amount > 0:
            # Sale: reduce cost basis by the proportion of shares sold.
            # Rounding on every partial sale accumulates drift over many sales.
            if position.quantity > 0:
                remaining = 1 - Fraction(quantity, position.quantity)
                position.total_amount = round_half_up(
                    position.total_amount * remaining
                )
            else:
                logger.warning("sale_without_holding", quantity=quantity)
                position.total_amount = 0
            position.quantity -= quantity
        else:
            position.quantity += quantity
            position.total_amount += abs(amount)

    def reconcile(
        self,
        entries: Iterable[LedgerEntry],
        instruments: Iterable[Instrument],
        open_positions: Iterable[OpenPosition],
        today: date,
    ) -> PositionAdjustments:
        """Build the mark-to-market creates and updates for every held ISIN.

        Args:
            entries: Existing ledger entries followed by the newly classified ones.
            instruments: Trading212 instrument catalogue.
            open_positions: Live Trading212 positions.
            today: Date stamped on the mark-to-market entries.

        Raises:
            InternalConsistencyError: If a held position has no usable live data.
        """
        positions = self.replay(entries)
        live = {p.ticker: p for p in open_positions}
        instruments_by_isin: dict[str, list[Instrument]] = {}
        for instrument in instruments:
            instruments_by_isin.setdefault(instrument.isin, []).append(instrument)

        adjustments = PositionAdjustments()

        for isin, position in positions.items():
            if position.quantity <= 0:
                continue

            instrument = next(
                (i for i in instruments_by_isin.get(isin, []) if i.ticker in live),
                None,
            )
            if instrument is None:
                logger.debug("position_not_held", isin=isin)
                continue

            live_position = live.get(instrument.ticker)
            if live_position is None or live_position.quantity == 0:
                raise InternalConsistencyError(
                    f"No t212 position for {instrument.ticker} [{isin}]",
                    context={"ticker": instrument.ticker, "isin": isin},
                )

            entry = self._mark_to_market_entry(
                isin, position, instrument, live_position, today
            )
            if position.uncleared_id:
                entry.id = position.uncleared_id
                adjustments.to_update.append(entry)
            else:
                entry.import_id = make_import_id(
                    mark_to_market_seed(isin, today.isoformat(), entry.amount)
                )
                adjustments.to_add.append(entry)

        logger.info(
            "positions_reconciled",
            position_count=len(positions),
            create_count=len(adjustments.to_add),
            update_count=len(adjustments.to_update),
        )
        return adjustments

    def _mark_to_market_entry(
        self,
        isin: str,
        position: Position,
        instrument: Instrument,
        live_position: OpenPosition,
        today: date,
    ) -> LedgerEntry:
        share = Fraction(position.quantity, live_position.quantity)
        unrealized = round_half_up(share * live_position.unrealized_pnl)
        current_value = position.total_amount + unrealized
        payee_name = stock_payee_name(instrument.name)

        return LedgerEntry(
            account_id=self._account_id,
            date=today,
            cleared=ClearedStatus.UNCLEARED,
            amount=current_value,
            payee_name=payee_name,
            payee_id=self._payee_ids.get(payee_name),
            memo=format_stock_memo(position.quantity, instrument.short_name, isin),
            category_id=self._stock_category_id,
            approved=True,
        )
