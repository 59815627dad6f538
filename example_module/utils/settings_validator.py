"""
Settings Validation Utilities

Pure functions that turn raw admin-form input into a clean, partial settings
map. Out-of-range integers are clamped to their bounds on every path; nothing
here touches the database.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from example_module.constants.settings import (
    ALLOWED_FILE_EXTENSIONS,
    BOOLEAN_SETTINGS,
    DEFAULT_SETTINGS,
    INTEGER_BOUNDS,
    TEXT_LIMITS,
    TRUTHY_MARKERS,
    WIDGET_STYLES,
)
from example_module.utils.sanitize import (
    is_valid_email,
    sanitize_email,
    sanitize_plain_text,
    sanitize_textarea,
)


def coerce_bool(value: Any) -> bool:
    """Interpret checkbox / query-string style markers as a boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_MARKERS
    return False


def parse_int(value: Any) -> Optional[int]:
    """Parse an integer from form input; None when it is not a number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except (ValueError, OverflowError):
                return None
    return None


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def filter_file_types(requested: Any, allowed: Iterable[str] = ALLOWED_FILE_EXTENSIONS) -> list[str]:
    """
    Intersect requested extensions with an allow-list.

    Order of the request is kept, duplicates and unknown extensions are
    dropped. A single string counts as a one-element request.

    >>> filter_file_types(["jpg", "exe"], ["jpg", "png"])
    ['jpg']
    """
    if isinstance(requested, str):
        requested = [requested]
    if not isinstance(requested, (list, tuple, set, frozenset)):
        return []

    allowed_set = {ext.lower() for ext in allowed}
    result: list[str] = []
    for ext in requested:
        if not isinstance(ext, str):
            continue
        ext = ext.strip().lower().lstrip(".")
        if ext in allowed_set and ext not in result:
            result.append(ext)
    return result


def unwrap_legacy_value(value: Any) -> Any:
    """
    Flatten an old-style `{"default": x}` / `{"value": x}` setting object.

    Plain lists (file types) and scalars are returned untouched.
    """
    if isinstance(value, Mapping):
        if value.get("default") is not None:
            return value["default"]
        if value.get("value") is not None:
            return value["value"]
    return value


def _getlist(form: Mapping[str, Any], key: str) -> Optional[list[Any]]:
    """Read a multi-valued field from a plain dict or a Starlette FormData."""
    for name in (key, f"{key}[]"):
        if hasattr(form, "getlist"):
            values = form.getlist(name)
            if values:
                return list(values)
        elif name in form:
            value = form[name]
            return list(value) if isinstance(value, (list, tuple, set)) else [value]
    return None


def sanitize_settings(
    form: Mapping[str, Any],
    allowed_extensions: Iterable[str] = ALLOWED_FILE_EXTENSIONS,
) -> dict[str, Any]:
    """
    Sanitize settings input from the admin form.

    - booleans use checkbox semantics and are always present in the result
    - free text is stripped of markup and truncated
    - `notification_email` is kept only when empty or valid
    - `widget_style` falls back to the default when not an allowed style
    - integers are clamped to their bounds; non-numeric input is dropped
    - `allowed_file_types` is intersected with `allowed_extensions`

    Only recognized setting keys can appear in the result.
    """
    sanitized: dict[str, Any] = {}

    for field in BOOLEAN_SETTINGS:
        sanitized[field] = coerce_bool(form.get(field))

    if form.get("welcome_title") is not None:
        sanitized["welcome_title"] = sanitize_plain_text(form["welcome_title"])[: TEXT_LIMITS["welcome_title"]]

    if form.get("welcome_message") is not None:
        sanitized["welcome_message"] = sanitize_textarea(form["welcome_message"])[: TEXT_LIMITS["welcome_message"]]

    if form.get("notification_email") is not None:
        email = sanitize_email(form["notification_email"])
        if not email or is_valid_email(email):
            sanitized["notification_email"] = email

    if form.get("widget_style") is not None:
        style = form["widget_style"]
        sanitized["widget_style"] = style if style in WIDGET_STYLES else DEFAULT_SETTINGS["widget_style"]

    for field, (minimum, maximum) in INTEGER_BOUNDS.items():
        if form.get(field) is None:
            continue
        value = parse_int(form[field])
        if value is not None:
            sanitized[field] = clamp_int(value, minimum, maximum)

    file_types = _getlist(form, "allowed_file_types")
    if file_types is not None:
        sanitized["allowed_file_types"] = filter_file_types(file_types, allowed_extensions)

    return sanitized
