# Overview: Decimal helpers for two-place currency amounts.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Matches Numeric(10, 2): $99,999,999.99 would overflow the column,
# prices are capped lower to keep totals of many lines representable.
MAX_PRICE = Decimal("9999999.99")


def _to_decimal(value) -> Decimal:
    if value is None:
        raise ValueError("amount is required")
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError) as exc:
        raise ValueError("amount must be a number") from exc
    if not amount.is_finite():
        raise ValueError("amount must be a finite number")
    return amount


def _quantize(amount: Decimal) -> Decimal:
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError("amount is out of range") from exc


def to_money(value) -> Decimal:
    """
    Coerce an int, str, float or Decimal into a two-place Decimal.

    Floats go through str() first so 15.5 becomes Decimal("15.50") rather
    than the binary expansion. Raises ValueError for anything unparsable
    or too large to hold in cents.
    """
    return _quantize(_to_decimal(value))


def parse_money(value) -> Decimal:
    """
    Strict form of to_money for client input: amounts with fractions of a
    cent are rejected instead of rounded.
    """
    amount = _to_decimal(value)
    quantized = _quantize(amount)
    if quantized != amount:
        raise ValueError("amount cannot have more than two decimal places")
    return quantized


def money_str(value) -> str | None:
    """Render an amount as a fixed two-decimal string ("25.00")."""
    if value is None:
        return None
    return f"{to_money(value):.2f}"


def money_sum(values) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value if value is not None else ZERO)
    return total
