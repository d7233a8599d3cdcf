"""Utility helpers."""

from brickvest.utils.helpers import (
    format_utc_datetime,
    from_cents,
    quantize_money,
    to_cents,
    utc_now,
)

__all__ = [
    "format_utc_datetime",
    "from_cents",
    "quantize_money",
    "to_cents",
    "utc_now",
]
