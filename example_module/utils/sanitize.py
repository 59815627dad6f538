"""
Input Sanitization Utilities

Strips markup from user-supplied text. Values are stored as plain text and
escaped once, at render time, by the autoescaping template environment.
"""

import html
import re
from typing import Optional

import bleach
from pydantic import EmailStr, TypeAdapter, ValidationError

_email_adapter = TypeAdapter(EmailStr)


def sanitize_plain_text(text: Optional[str]) -> str:
    """
    Strip all HTML tags and return plain text only.
    Useful for titles, names and other single-line fields.

    Args:
        text: The text to sanitize

    Returns:
        Plain text with HTML tags stripped and whitespace collapsed
    """
    if text is None:
        return ""

    cleaned = html.unescape(bleach.clean(str(text), tags=[], strip=True))

    # Normalize whitespace
    return re.sub(r"\s+", " ", cleaned).strip()


def sanitize_textarea(text: Optional[str]) -> str:
    """
    Strip all HTML tags but keep line breaks.

    Args:
        text: Multi-line text to sanitize

    Returns:
        Plain text with tags removed, each line trimmed
    """
    if text is None:
        return ""

    cleaned = html.unescape(bleach.clean(str(text), tags=[], strip=True))
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in cleaned.splitlines()]
    return "\n".join(lines).strip()


def sanitize_email(email: Optional[str]) -> str:
    """
    Basic email sanitization: strip tags, whitespace and case.
    Does not validate; see is_valid_email.
    """
    if not email:
        return ""

    return sanitize_plain_text(email).replace(" ", "").lower()


def is_valid_email(email: str) -> bool:
    """Validate an address with pydantic's EmailStr."""
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Sanitize filenames to prevent directory traversal attacks.

    Args:
        filename: The filename to sanitize

    Returns:
        Safe filename
    """
    if not filename:
        return "unnamed"

    # Remove path separators
    filename = filename.replace("/", "_").replace("\\", "_")

    # Remove potentially dangerous characters
    filename = re.sub(r"[^\w\s.-]", "", filename)

    # Limit length
    if len(filename) > 255:
        name, ext = filename.rsplit(".", 1) if "." in filename else (filename, "")
        filename = f"{name[:250]}.{ext}" if ext else name[:255]

    return filename or "unnamed"


def file_extension(filename: Optional[str]) -> str:
    """Return the lower-cased extension without the dot, or ''."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def parse_tags(raw: Optional[str], limit: int = 20) -> list[str]:
    """Split a comma-separated tag string into unique, clean tags."""
    if not raw:
        return []

    tags: list[str] = []
    for part in raw.split(","):
        tag = sanitize_plain_text(part)[:50]
        if tag and tag.lower() not in (t.lower() for t in tags):
            tags.append(tag)
    return tags[:limit]
