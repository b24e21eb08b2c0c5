from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from walletflow.core.errors import MalformedInputError


# Enough digits for uint256 amounts shifted by any realistic decimals.
_USD_PRECISION = 80

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


def parse_raw_amount_strict(value: Any) -> int:
    """
    Parse an on-chain amount given as int, decimal string or 0x-hex string.

    Raises MalformedInputError for anything that is not a non-negative integer.
    """
    if isinstance(value, bool):
        raise MalformedInputError(f"Not an amount: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise MalformedInputError(f"Negative amount: {value}")
        return value
    if value is None:
        raise MalformedInputError("Missing amount")

    s = str(value).strip()
    if not s:
        raise MalformedInputError("Empty amount")

    if s[:2].lower() == "0x":
        digits = s[2:]
        if not digits:
            return 0
        if not _HEX_DIGITS.fullmatch(digits):
            raise MalformedInputError(f"Invalid hex amount: {s!r}")
        return int(digits, 16)

    if s.isascii() and s.isdecimal():
        return int(s)

    # scientific notation ("1e+21") from lossy upstream JSON; integral only
    try:
        d = Decimal(s)
    except InvalidOperation as e:
        raise MalformedInputError(f"Invalid amount: {s!r}") from e
    if not d.is_finite() or d < 0 or d != d.to_integral_value():
        raise MalformedInputError(f"Invalid amount: {s!r}")
    return int(d)


def parse_raw_amount(value: Any) -> int:
    """Lenient variant: malformed input counts as zero."""
    try:
        return parse_raw_amount_strict(value)
    except MalformedInputError:
        return 0


def parse_decimals(value: Any, default: int = 18) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        d = int(str(value).strip())
    except ValueError:
        return default
    if d < 0 or d > 255:
        return default
    return d


def format_units(raw: int, decimals: int) -> str:
    """
    Shift a raw integer amount by `decimals` places without going through float.

    The decimal point is placed by slicing the digit string, so values far
    beyond 15 significant digits keep every digit. Trailing fractional zeros
    are dropped.
    """
    sign = "-" if raw < 0 else ""
    digits = str(abs(int(raw)))
    if decimals <= 0:
        return sign + digits + ("0" * -decimals if decimals < 0 else "")

    if len(digits) <= decimals:
        digits = digits.rjust(decimals + 1, "0")

    whole = digits[:-decimals]
    frac = digits[-decimals:].rstrip("0")
    if not frac:
        return sign + whole
    return f"{sign}{whole}.{frac}"


def to_decimal(raw: int, decimals: int) -> Decimal:
    return Decimal(format_units(raw, decimals))


def usd_value(raw: int, decimals: int, price_usd: Optional[Decimal]) -> Optional[Decimal]:
    """USD value of a raw amount, or None when there is no price."""
    if price_usd is None:
        return None
    with localcontext() as ctx:
        ctx.prec = _USD_PRECISION
        return to_decimal(raw, decimals) * Decimal(price_usd)
