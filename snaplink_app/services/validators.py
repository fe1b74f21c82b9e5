"""
Pure validation rules for URLs and custom short codes.

Nothing here touches the request or the database, so every rule can be
unit-tested on its own.
"""

import re
from urllib.parse import urlsplit

from snaplink_app.services.exceptions import InvalidCustomCode, InvalidUrl, ReservedCode

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = frozenset({"http", "https"})

CUSTOM_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,12}$")
RESERVED_CODES = frozenset({"api", "admin", "analytics", "health", "shorten"})


def normalize_url(url: str) -> str:
    """
    Trim the URL and default the scheme to https when none is given.

    Raises:
        InvalidUrl: empty, too long, not http(s) or without a host
    """
    if url is None:
        raise InvalidUrl("URL is required")

    candidate = url.strip()
    if not candidate:
        raise InvalidUrl("URL is required")

    if "://" not in candidate:
        candidate = f"https://{candidate}"

    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidUrl(
            f"URL is too long. Maximum length is {MAX_URL_LENGTH} characters."
        )

    try:
        parts = urlsplit(candidate)
        parts.port  # raises on a non-numeric port
    except ValueError:
        raise InvalidUrl()

    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        raise InvalidUrl()
    if any(ch.isspace() for ch in candidate):
        raise InvalidUrl()

    return candidate


def is_reserved_code(code: str) -> bool:
    return code.lower() in RESERVED_CODES


def validate_custom_code(code: str) -> str:
    """
    Check a requested custom code and return its stored (lowercase) form.

    Raises:
        ReservedCode: the code collides with a route keyword
        InvalidCustomCode: length or character class is wrong
    """
    trimmed = code.strip()
    if is_reserved_code(trimmed):
        raise ReservedCode()
    if not CUSTOM_CODE_PATTERN.match(trimmed):
        raise InvalidCustomCode()
    return trimmed.lower()
