"""Fixed-point conversion of Trading212 amounts.

YNAB stores money in milliunits (1/1000 of the currency unit). Trading212
exports money with two decimal places, so money strings are read at scale 2
and multiplied by 10. Share quantities are read at scale 10 (1e-10 shares)
so that position ratios stay exact under integer arithmetic.
"""

from decimal import Decimal, InvalidOperation

from t212_ynab_sync.exceptions import InvalidAmountError

MONEY_SCALE = 2
MONEY_MULTIPLIER = 10
QUANTITY_SCALE = 10
QUANTITY_MULTIPLIER = 1

Number = str | int | float | Decimal


def _to_plain_string(raw: Number) -> str:
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, bool):
        raise InvalidAmountError(str(raw))
    try:
        value = Decimal(str(raw))
    except InvalidOperation as e:
        raise InvalidAmountError(str(raw)) from e
    if not value.is_finite():
        raise InvalidAmountError(str(raw), "not a finite number")
    return format(value, "f")


def parse_fixed_point(raw: Number, input_scale: int, output_multiplier: int) -> int:
    """Convert a decimal amount to an integer of 10**-input_scale units.

    Fractional digits beyond input_scale are truncated, never rounded.

    Raises:
        InvalidAmountError: If raw is not a plain decimal number.
    """
    text = _to_plain_string(raw)
    whole, _, fraction = text.partition(".")
    if "." in fraction:
        raise InvalidAmountError(text, "more than one decimal point")

    sign = ""
    if whole[:1] in ("-", "+"):
        sign, whole = whole[0], whole[1:]

    if not whole and not fraction:
        raise InvalidAmountError(text)
    if not (whole or "0").isdigit() or (fraction and not fraction.isdigit()):
        raise InvalidAmountError(text)
    if not whole.isascii() or not fraction.isascii():
        raise InvalidAmountError(text, "non-ASCII digits")

    digits = (whole or "0") + fraction[:input_scale].ljust(input_scale, "0")
    return int(sign + digits) * output_multiplier


def parse_money(raw: Number) -> int:
    """Parse a money amount into YNAB milliunits ("100.00" -> 100000)."""
    return parse_fixed_point(raw, MONEY_SCALE, MONEY_MULTIPLIER)


def parse_quantity(raw: Number) -> int:
    """Parse a share count into 1e-10 share units ("1.5" -> 15000000000)."""
    return parse_fixed_point(raw, QUANTITY_SCALE, QUANTITY_MULTIPLIER)


def format_quantity(units: int) -> str:
    """Render 1e-10 share units as a plain decimal without trailing zeros."""
    return format(Decimal(units).scaleb(-QUANTITY_SCALE).normalize(), "f")


def format_money(milliunits: int) -> str:
    """Render milliunits as a two-place decimal string (100000 -> "100.00")."""
    value = Decimal(milliunits).scaleb(-(MONEY_SCALE + 1))
    return format(value.quantize(Decimal("0.01")), "f")
