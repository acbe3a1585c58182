"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def unix_deadline(seconds_from_now: int, now: datetime | None = None) -> int:
    """Unix timestamp ``seconds_from_now`` in the future, as the ledger expects."""
    base = now or utc_now()
    return int((base + timedelta(seconds=seconds_from_now)).timestamp())
