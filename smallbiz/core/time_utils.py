from datetime import datetime, timezone


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Timestamps are stored as naive UTC; drop offsets after converting."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
