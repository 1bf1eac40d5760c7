"""Text grammar for stock memos.

YNAB only offers a free-text memo, so stock entries carry their share count
and ISIN in it: ``"{quantity}x {ticker} [{isin}]"``. The position replay
reads these memos back, which makes the format load-bearing. Dividends use
the same memo behind a ``"Dividend - "`` prefix so the replay can skip them.
"""

import re
from dataclasses import dataclass

from t212_ynab_sync.domain.amounts import format_quantity, parse_quantity

STOCK_MEMO_PATTERN = re.compile(r"^([\d.]+)x.+\[(.*?)\]$")
DIVIDEND_MEMO_PREFIX = "Dividend - "
STOCK_PAYEE_PREFIX = "Stock:"


@dataclass(frozen=True)
class StockMemo:
    quantity: int
    isin: str


def stock_payee_name(name: str | None) -> str:
    return f"{STOCK_PAYEE_PREFIX} {name}"


def is_stock_payee(payee_name: str | None) -> bool:
    return bool(payee_name) and payee_name.startswith(STOCK_PAYEE_PREFIX)


def format_stock_memo(
    quantity: int | None, ticker: str | None, isin: str | None
) -> str:
    """Build a stock memo from a 1e-10 share quantity."""
    shares = format_quantity(quantity) if quantity is not None else "0"
    return f"{shares}x {ticker} [{isin}]"


def format_dividend_memo(
    quantity: int | None, ticker: str | None, isin: str | None
) -> str:
    return DIVIDEND_MEMO_PREFIX + format_stock_memo(quantity, ticker, isin)


def is_dividend_memo(memo: str | None) -> bool:
    return bool(memo) and memo.startswith(DIVIDEND_MEMO_PREFIX)


def is_stock_leg(memo: str | None) -> bool:
    """True for the stock half of a split trade (the fee half has no 'x')."""
    return bool(memo) and "x" in memo


def parse_stock_memo(memo: str | None) -> StockMemo | None:
    """Recover quantity and ISIN from a stock memo, or None if it does not match."""
    if not memo:
        return None
    match = STOCK_MEMO_PATTERN.match(memo)
    if match is None:
        return None
    return StockMemo(quantity=parse_quantity(match.group(1)), isin=match.group(2))
