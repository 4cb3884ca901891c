from urllib.parse import urlparse

from flask import current_app

from services.errors import ValidationError
from utils.timeutil import parse_iso, utcnow

_TRUE = {"1", "true", "yes"}
_FALSE = {"0", "false", "no"}


def datetime_field(data: dict, name: str, required: bool = True, future: bool = False):
    raw = data.get(name)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{name} is required", field=name)
        return None
    try:
        value = parse_iso(raw)
    except ValueError:
        raise ValidationError(
            f"Invalid {name}. Use ISO e.g. 2026-01-20T18:00:00", field=name,
        ) from None
    if future and value <= utcnow():
        raise ValidationError(f"{name} must be in the future", field=name)
    return value


def int_field(data: dict, name: str, required: bool = True):
    raw = data.get(name)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{name} is required", field=name)
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{name} must be an integer", field=name)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", field=name) from None


def text_field(data: dict, name: str, required: bool = False, min_len: int = 0, max_len: int = None):
    raw = data.get(name)
    if raw is None:
        if required:
            raise ValidationError(f"{name} is required", field=name)
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"{name} must be a string", field=name)
    value = raw.strip()
    if required and not value:
        raise ValidationError(f"{name} is required", field=name)
    if value and len(value) < min_len:
        raise ValidationError(f"{name} must be at least {min_len} characters", field=name)
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f"{name} must be at most {max_len} characters", field=name)
    return value


def url_field(data: dict, name: str):
    value = text_field(data, name, max_len=255)
    if not value:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{name} must be an http(s) URL", field=name)
    return value


def bool_value(raw, name: str):
    if raw is None or isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValidationError(f"{name} must be true or false", field=name)


def page_args(args):
    default_size = current_app.config.get("DEFAULT_PAGE_SIZE", 10)
    max_size = current_app.config.get("MAX_PAGE_SIZE", 100)
    page = args.get("page", type=int) or 1
    limit = args.get("limit", type=int) or default_size
    return max(page, 1), max(1, min(limit, max_size))


def pagination(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": (total + limit - 1) // limit}
