"""Small shared helpers for time and money values."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def format_utc_datetime(dt: datetime | None) -> str | None:
    """Format datetime to ISO string with Z suffix for UTC.

    Timestamps are stored as naive UTC, so isoformat() carries no offset.
    The Z suffix lets clients parse them as UTC.

    Args:
        dt: datetime object (assumed UTC) or None

    Returns:
        ISO format string with Z suffix (e.g., "2026-01-10T10:30:00Z") or None
    """
    if dt is None:
        return None
    return f"{dt.replace(tzinfo=None).isoformat()}Z"


def quantize_money(amount: Decimal) -> Decimal:
    """Round a currency amount to cents (half-up)."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a currency amount to integer minor units for the processor."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert processor minor units back to a currency amount."""
    return (Decimal(cents) / 100).quantize(CENT)
