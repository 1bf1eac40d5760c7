"""Maps Trading212 transactions onto YNAB ledger entries.

Each NormalizedTransaction is first checked against the ledger (already
imported?) and the account currency, then dispatched on its action. The
mapping is pure: all ledger state comes in through ClassificationContext.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from t212_ynab_sync.domain.import_ids import make_import_id
from t212_ynab_sync.domain.ledger import LedgerEntry, Payee, SubEntry
from t212_ynab_sync.domain.memo import (
    format_dividend_memo,
    format_stock_memo,
    stock_payee_name,
)
from t212_ynab_sync.domain.transactions import NormalizedTransaction
from t212_ynab_sync.domain.value_objects import (
    ClearedStatus,
    FlagColor,
    SkipReason,
    TransactionAction,
)
from t212_ynab_sync.logging_config import get_logger

logger = get_logger(__name__)

INTEREST_PAYEE = "Interest"
LENDING_INTEREST_MEMO = "Lending interest"
BROKER_PAYEE = "Trading 212"
CONVERSION_FEE_MEMO = "Currency conversion fee"
NEW_CARD_MEMO = "New card"
INTEREST_FLAG = FlagColor.PURPLE


@dataclass(frozen=True)
class CategoryIds:
    stock: str | None = None
    dividend: str | None = None
    conversion_fee: str | None = None


@dataclass
class ClassificationContext:
    """Ledger state the mapping depends on."""

    account_id: str
    account_currency: str
    payees: list[Payee] = field(default_factory=list)
    existing_import_ids: set[str] = field(default_factory=set)
    categories: CategoryIds = field(default_factory=CategoryIds)

    @classmethod
    def from_ledger(
        cls,
        account_id: str,
        account_currency: str,
        payees: Iterable[Payee],
        existing_entries: Iterable[LedgerEntry],
        categories: CategoryIds | None = None,
    ) -> "ClassificationContext":
        return cls(
            account_id=account_id,
            account_currency=account_currency,
            payees=list(payees),
            existing_import_ids={e.import_id for e in existing_entries if e.import_id},
            categories=categories or CategoryIds(),
        )

    def payee_id(self, name: str) -> str | None:
        """Id of the payee with exactly this name, if the ledger has one."""
        for payee in self.payees:
            if payee.name == name:
                return payee.id
        return None


@dataclass(frozen=True)
class SkippedTransaction:
    transaction_id: str
    action: TransactionAction
    reason: SkipReason
    detail: str = ""


@dataclass
class ClassificationResult:
    entries: list[LedgerEntry] = field(default_factory=list)
    skipped: list[SkippedTransaction] = field(default_factory=list)

    def skipped_for(self, reason: SkipReason) -> list[SkippedTransaction]:
        return [s for s in self.skipped if s.reason == reason]


class TransactionMapper:
    """Classifies Trading212 transactions into YNAB ledger entries.

    Attributes:
        context: Account, payees, categories and already-imported ids.
    """

    def __init__(self, context: ClassificationContext) -> None:
        self._context = context
        self._skipped: list[SkippedTransaction] = []

    @property
    def context(self) -> ClassificationContext:
        return self._context

    def classify(self, tx: NormalizedTransaction) -> list[LedgerEntry]:
        """Map one transaction to zero or one ledger entries.

        A trade with a conversion fee is a single entry split into a stock leg
        and a fee leg.
        """
        import_id = make_import_id(tx.import_seed)

        if import_id in self._context.existing_import_ids:
            self._skip(tx, SkipReason.ALREADY_IMPORTED, log=False)
            return []

        account_currency = self._context.account_currency
        if tx.total_currency and tx.total_currency != account_currency:
            self._skip(
                tx,
                SkipReason.FOREIGN_CURRENCY,
                f"Skipping transaction {tx.id} because it is in a different currency "
                f"({tx.total_currency}) than the account ({account_currency})",
            )
            return []

        handler = self._HANDLERS[tx.action]
        entry = handler(self, tx, import_id)
        return [entry] if entry is not None else []

    def classify_all(
        self, transactions: Iterable[NormalizedTransaction]
    ) -> ClassificationResult:
        self._skipped = []
        entries: list[LedgerEntry] = []
        for tx in transactions:
            entries.extend(self.classify(tx))
        result = ClassificationResult(entries=entries, skipped=list(self._skipped))
        logger.info(
            "transactions_classified",
            entry_count=len(result.entries),
            skipped_count=len(result.skipped),
        )
        return result

    def _skip(
        self,
        tx: NormalizedTransaction,
        reason: SkipReason,
        detail: str = "",
        *,
        log: bool = True,
    ) -> None:
        self._skipped.append(
            SkippedTransaction(
                transaction_id=tx.id, action=tx.action, reason=reason, detail=detail
            )
        )
        if log:
            logger.info(
                "transaction_skipped",
                transaction_id=tx.id,
                reason=reason.value,
                detail=detail,
            )

    def _entry(
        self, tx: NormalizedTransaction, import_id: str, **kwargs
    ) -> LedgerEntry:
        return LedgerEntry(
            account_id=self._context.account_id,
            date=tx.date,
            cleared=ClearedStatus.CLEARED,
            import_id=import_id,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Per-action mapping
    # -------------------------------------------------------------------------

    def _map_cash_movement(
        self, tx: NormalizedTransaction, import_id: str
    ) -> LedgerEntry:
        return self._entry(
            tx,
            import_id,
            amount=tx.total,
            payee_name=tx.action.value,
            memo=tx.notes,
        )

    def _map_interest(self, tx: NormalizedTransaction, import_id: str) -> LedgerEntry:
        is_lending = tx.action == TransactionAction.LENDING_INTEREST
        return self._entry(
            tx,
            import_id,
            amount=tx.total,
            payee_name=INTEREST_PAYEE,
            memo=LENDING_INTEREST_MEMO if is_lending else None,
            flag_color=INTEREST_FLAG,
            # lending interest is left for manual review
            approved=not is_lending,
        )

    def _map_trade(self, tx: NormalizedTransaction, import_id: str) -> LedgerEntry:
        is_inflow = tx.action == TransactionAction.MARKET_SELL
        amount = abs(tx.total) * (1 if is_inflow else -1)
        conversion_fee = tx.conversion_fee or 0
        category_id = self._context.categories.stock

        payee_name = stock_payee_name(tx.name)
        payee_id = self._context.payee_id(payee_name)
        memo = format_stock_memo(tx.share_count, tx.ticker, tx.isin)

        entry = self._entry(
            tx,
            import_id,
            amount=amount,
            payee_name=payee_name,
            payee_id=payee_id,
            memo=memo,
            category_id=category_id,
            approved=True,
        )

        if conversion_fee > 0:
            entry.subtransactions = [
                SubEntry(
                    amount=amount + conversion_fee,
                    payee_name=payee_name,
                    payee_id=payee_id,
                    memo=memo,
                    category_id=category_id,
                ),
                SubEntry(
                    amount=-conversion_fee,
                    payee_name=BROKER_PAYEE,
                    memo=CONVERSION_FEE_MEMO,
                    category_id=self._context.categories.conversion_fee,
                ),
            ]

        return entry

    def _map_dividend(self, tx: NormalizedTransaction, import_id: str) -> LedgerEntry:
        payee_name = stock_payee_name(tx.name)
        return self._entry(
            tx,
            import_id,
            amount=tx.total,
            payee_name=payee_name,
            payee_id=self._context.payee_id(payee_name),
            memo=format_dividend_memo(tx.share_count, tx.ticker, tx.isin),
            category_id=self._context.categories.dividend,
        )

    def _map_currency_conversion(
        self, tx: NormalizedTransaction, import_id: str
    ) -> LedgerEntry | None:
        account_currency = self._context.account_currency

        if (
            tx.conversion_from_currency == account_currency
            and tx.conversion_from_amount is not None
        ):
            amount = -tx.conversion_from_amount
            payee_name = f"Exchanged to {tx.conversion_to_currency}"
        elif (
            tx.conversion_to_currency == account_currency
            and tx.conversion_to_amount is not None
        ):
            amount = tx.conversion_to_amount
            payee_name = f"Exchanged from {tx.conversion_from_currency}"
        else:
            self._skip(
                tx,
                SkipReason.UNREPRESENTABLE_CONVERSION,
                f"Skipping currency conversion transaction {tx.id} because it is "
                f"not in the account currency ({account_currency})",
            )
            return None

        return self._entry(
            tx,
            import_id,
            amount=amount,
            payee_name=payee_name,
            memo=tx.notes,
            approved=True,
        )

    def _map_new_card_cost(
        self, tx: NormalizedTransaction, import_id: str
    ) -> LedgerEntry:
        return self._entry(
            tx,
            import_id,
            amount=tx.total,
            payee_name=BROKER_PAYEE,
            memo=NEW_CARD_MEMO,
        )

    _HANDLERS = {
        TransactionAction.DEPOSIT: _map_cash_movement,
        TransactionAction.WITHDRAWAL: _map_cash_movement,
        TransactionAction.INTEREST_ON_CASH: _map_interest,
        TransactionAction.LENDING_INTEREST: _map_interest,
        TransactionAction.MARKET_BUY: _map_trade,
        TransactionAction.MARKET_SELL: _map_trade,
        TransactionAction.DIVIDEND: _map_dividend,
        TransactionAction.CURRENCY_CONVERSION: _map_currency_conversion,
        TransactionAction.NEW_CARD_COST: _map_new_card_cost,
    }
