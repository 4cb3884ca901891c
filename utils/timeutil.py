from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now; every timestamp column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso(dt_str: str) -> datetime:
    # Expect ISO format like "2026-01-20T18:00:00" (a trailing Z or offset is converted to UTC)
    if not isinstance(dt_str, str):
        raise ValueError("datetime must be an ISO-8601 string")
    value = dt_str.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return to_naive_utc(dt)


def to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def iso(dt):
    return dt.isoformat() if dt else None
