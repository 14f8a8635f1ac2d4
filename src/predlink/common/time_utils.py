"""Time helpers shared by storage and resolution code."""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO 8601 column value, tolerating NULLs."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def days_ago(days: int) -> datetime:
    """UTC datetime `days` days before now."""
    return utc_now() - timedelta(days=days)
