"""Rupee amounts: Decimal rounding rules and Indian-style display formatting."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..exceptions import ValidationError

AMOUNT_PLACES = Decimal("0.01")
PRICE_PLACES = Decimal("0.0001")

# Largest values the NUMERIC(14, 2) and NUMERIC(14, 4) columns hold
MAX_AMOUNT = Decimal("999999999999.99")
MAX_PRICE = Decimal("9999999999.9999")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a numeric input to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _quantize(value: Decimal | float | int | str, places: Decimal) -> Decimal:
    try:
        result = to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"Amount out of range: {value}") from None
    if not result.is_finite():
        raise ValidationError(f"Amount must be a finite number: {value}")
    return result


def quantize_amount(value: Decimal | float | int | str) -> Decimal:
    """Round a cash amount to paise."""
    return _quantize(value, AMOUNT_PLACES)


def quantize_price(value: Decimal | float | int | str) -> Decimal:
    """Round a per-share price (e.g. an average cost) to four places."""
    return _quantize(value, PRICE_PLACES)


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_number(value: Decimal | float | int | str, decimal_places: int = 2) -> str:
    """Format a number with Indian digit grouping (lakh/crore separators)."""
    amount = to_decimal(value).quantize(
        Decimal(1).scaleb(-decimal_places), rounding=ROUND_HALF_UP
    )
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):.{decimal_places}f}"
    if decimal_places:
        whole, fraction = text.split(".")
        return f"{sign}{_group_indian(whole)}.{fraction}"
    return f"{sign}{_group_indian(text)}"


def format_inr(value: Decimal | float | int | str) -> str:
    """Format an amount as rupees, e.g. ``₹1,23,456.78``."""
    formatted = format_number(value)
    if formatted.startswith("-"):
        return f"-₹{formatted[1:]}"
    return f"₹{formatted}"
