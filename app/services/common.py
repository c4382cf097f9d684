import uuid
from datetime import datetime, timezone

from app.core.errors import InvalidArgument


def require_id(value: str | None, label: str = "ID") -> str:
    if not value:
        raise InvalidArgument(f"Invalid {label}")
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid {label}")


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.utcnow()
