"""
Input clean-up for user display names, which show up on every scoreboard,
plus the email format check used by registration.
"""

import html
import re

from pydantic import EmailStr, TypeAdapter, ValidationError

_TAG_RE = re.compile(r"<[^>]*>")

# Backed by email-validator (pydantic[email]); no DNS lookups
_EMAIL = TypeAdapter(EmailStr)


def strip_tags(value: str) -> str:
    return _TAG_RE.sub("", value)


def sanitize_input(value):
    """
    Trim, drop HTML tags and HTML-escape *value*.  Lists and dicts are
    cleaned recursively; non-string scalars pass through untouched.
    """
    if isinstance(value, str):
        return html.escape(strip_tags(value.strip()), quote=True)
    if isinstance(value, list):
        return [sanitize_input(v) for v in value]
    if isinstance(value, dict):
        return {k: sanitize_input(v) for k, v in value.items()}
    return value


def is_valid_email(value: str) -> bool:
    try:
        _EMAIL.validate_python(value or "")
    except ValidationError:
        return False
    return True
