"""Parser for Trading212 history CSV exports.

Each row is validated field by field. Required columns raise InvalidFieldError
with a named reason when they cannot be coerced; optional columns fall back to
None and log a warning. parse_record composes them into a tagged ParseResult.
"""

import csv
import io
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from t212_ynab_sync.domain.amounts import parse_money, parse_quantity
from t212_ynab_sync.domain.transactions import NormalizedTransaction, RawTransaction
from t212_ynab_sync.domain.value_objects import TransactionAction
from t212_ynab_sync.exceptions import (
    InvalidAmountError,
    InvalidFieldError,
    ValidationError,
)
from t212_ynab_sync.logging_config import get_logger

logger = get_logger(__name__)

# Field name -> export header
COLUMN_MAP: dict[str, str] = {
    "action": "Action",
    "timestamp": "Time",
    "isin": "ISIN",
    "ticker": "Ticker",
    "name": "Name",
    "share_count": "No. of shares",
    "price_per_share": "Price / share",
    "price_per_share_currency": "Currency (Price / share)",
    "exchange_rate": "Exchange rate",
    "result": "Result",
    "result_currency": "Currency (Result)",
    "total": "Total",
    "total_currency": "Currency (Total)",
    "withholding_tax": "Withholding tax",
    "withholding_tax_currency": "Currency (Withholding tax)",
    "notes": "Notes",
    "id": "ID",
    "conversion_from_amount": "Currency conversion from amount",
    "conversion_from_currency": "Currency (Currency conversion from amount)",
    "conversion_to_amount": "Currency conversion to amount",
    "conversion_to_currency": "Currency (Currency conversion to amount)",
    "conversion_fee": "Currency conversion fee",
    "conversion_fee_currency": "Currency (Currency conversion fee)",
}

REQUIRED_FIELDS = ("action", "timestamp", "id", "total")


# =============================================================================
# Field parsers
# =============================================================================


def _require(field: str, value: str | None) -> str:
    if value is None or value == "":
        raise InvalidFieldError(field, value, "missing required value")
    return value


def parse_action(field: str, value: str | None) -> TransactionAction:
    value = _require(field, value)
    try:
        return TransactionAction(value)
    except ValueError:
        raise InvalidFieldError(field, value, "unrecognised action") from None


def parse_timestamp(field: str, value: str | None) -> datetime:
    """Parse an export timestamp; naive values are taken to be UTC."""
    value = _require(field, value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise InvalidFieldError(field, value, "not an ISO 8601 timestamp") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_required_string(field: str, value: str | None) -> str:
    return _require(field, value)


def parse_required_money(field: str, value: str | None) -> int:
    value = _require(field, value)
    try:
        return parse_money(value)
    except InvalidAmountError:
        raise InvalidFieldError(field, value, "not a decimal amount") from None


def parse_optional_string(field: str, value: str | None) -> str | None:
    return value or None


FieldParser = Callable[[str, str | None], Any]


def _to_quantity(field: str, value: str) -> int:
    try:
        return parse_quantity(value)
    except InvalidAmountError:
        raise InvalidFieldError(field, value, "not a decimal quantity") from None


def _to_decimal(field: str, value: str) -> Decimal:
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        raise InvalidFieldError(field, value, "not a decimal number") from None
    if not parsed.is_finite():
        raise InvalidFieldError(field, value, "not a finite number")
    return parsed


def _optional(convert: Callable[[str, str], Any]) -> FieldParser:
    """Wrap a converter so blank or unparseable values become None.

    Only required fields fail a row; a bad optional value is logged and dropped.
    """

    def parse_optional(field: str, value: str | None) -> Any:
        if not value:
            return None
        try:
            return convert(field, value)
        except InvalidFieldError as e:
            logger.warning(
                "optional_field_unparseable",
                field=field,
                value=value,
                reason=e.reason,
            )
            return None

    return parse_optional


parse_optional_money = _optional(parse_required_money)
parse_optional_quantity = _optional(_to_quantity)
parse_optional_decimal = _optional(_to_decimal)

FIELD_PARSERS: dict[str, FieldParser] = {
    "action": parse_action,
    "timestamp": parse_timestamp,
    "isin": parse_optional_string,
    "ticker": parse_optional_string,
    "name": parse_optional_string,
    "share_count": parse_optional_quantity,
    "price_per_share": parse_optional_money,
    "price_per_share_currency": parse_optional_string,
    "exchange_rate": parse_optional_decimal,
    "result": parse_optional_money,
    "result_currency": parse_optional_string,
    "total": parse_required_money,
    "total_currency": parse_optional_string,
    "withholding_tax": parse_optional_money,
    "withholding_tax_currency": parse_optional_string,
    "notes": parse_optional_string,
    "id": parse_required_string,
    "conversion_from_amount": parse_optional_money,
    "conversion_from_currency": parse_optional_string,
    "conversion_to_amount": parse_optional_money,
    "conversion_to_currency": parse_optional_string,
    "conversion_fee": parse_optional_money,
    "conversion_fee_currency": parse_optional_string,
}

# Required fields first so a failing row stops before optional values are logged
PARSE_ORDER = REQUIRED_FIELDS + tuple(
    f for f in FIELD_PARSERS if f not in REQUIRED_FIELDS
)


# =============================================================================
# Record parsing
# =============================================================================


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one export row: a transaction or the first field error."""

    transaction: NormalizedTransaction | None = None
    error: ValidationError | None = None
    row_number: int | None = None

    @property
    def ok(self) -> bool:
        return self.transaction is not None


class Trading212ExportParser:
    """Parser for Trading212 CSV history exports.

    Columns are matched by header name, so column order and extra columns
    in the export do not matter.
    """

    def parse_record(
        self, raw: RawTransaction, row_number: int | None = None
    ) -> ParseResult:
        """Parse one raw row without raising for bad data."""
        values: dict[str, Any] = {}
        for field_name in PARSE_ORDER:
            raw_value = raw.get(COLUMN_MAP[field_name])
            if raw_value is not None:
                raw_value = raw_value.strip()
            try:
                values[field_name] = FIELD_PARSERS[field_name](field_name, raw_value)
            except ValidationError as e:
                return ParseResult(error=e, row_number=row_number)

        return ParseResult(
            transaction=NormalizedTransaction(**values), row_number=row_number
        )

    def parse(self, raw: RawTransaction) -> NormalizedTransaction:
        """Parse one raw row.

        Raises:
            ValidationError: Naming the first invalid or missing required field.
        """
        result = self.parse_record(raw)
        if result.error is not None:
            raise result.error
        assert result.transaction is not None
        return result.transaction

    def iter_records(self, text: str) -> Iterator[RawTransaction]:
        """Yield the non-blank rows of an export as trimmed dictionaries."""
        reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff"), newline=""))
        if reader.fieldnames is None:
            return
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        for row in reader:
            record = {
                key: (value or "").strip()
                for key, value in row.items()
                if key is not None
            }
            if not any(record.values()):
                continue
            yield record

    def iter_csv(self, text: str) -> Iterator[NormalizedTransaction]:
        """Lazily parse an export, raising on the first invalid row."""
        for row_number, record in enumerate(self.iter_records(text), start=1):
            result = self.parse_record(record, row_number=row_number)
            if result.error is not None:
                result.error.context.setdefault("row", row_number)
                raise result.error
            assert result.transaction is not None
            yield result.transaction

    def parse_csv(self, text: str) -> list[NormalizedTransaction]:
        transactions = list(self.iter_csv(text))
        logger.info("export_parsed", transaction_count=len(transactions))
        return transactions

    def parse_file(self, file_path: str | Path) -> list[NormalizedTransaction]:
        """Parse an export previously downloaded to disk.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Export file not found: {file_path}")
        return self.parse_csv(path.read_text(encoding="utf-8-sig"))

    def validate(self, records: Iterable[RawTransaction]) -> list[ParseResult]:
        """Parse every record, collecting failures instead of stopping at the first."""
        return [
            self.parse_record(record, row_number=i)
            for i, record in enumerate(records, start=1)
        ]
