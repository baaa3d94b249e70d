"""Value objects - immutable domain primitives."""

from .money import (
    MAX_AMOUNT,
    MAX_PRICE,
    format_inr,
    format_number,
    quantize_amount,
    quantize_price,
)
from .review import ReviewStatus

__all__ = [
    "MAX_AMOUNT",
    "MAX_PRICE",
    "ReviewStatus",
    "format_inr",
    "format_number",
    "quantize_amount",
    "quantize_price",
]
