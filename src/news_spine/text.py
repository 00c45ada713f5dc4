"""String helpers shared by transformers and entity resolution."""

import hashlib
import re
import unicodedata
from datetime import datetime

_BYLINE_PREFIX = re.compile(r"^(By\b\s*|Author:\s*)", re.IGNORECASE)
_PARENTHETICAL_EMAIL = re.compile(r"\s*\([^)]*@[^)]*\)")
_PIPE_SUFFIX = re.compile(r"\s*\|\s*.*$")
_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def make_unique_id(provider: str, natural_key: str) -> str:
    """Stable id for an article: provider tag plus md5 of its natural key."""
    digest = hashlib.md5(natural_key.encode("utf-8")).hexdigest()
    return f"{provider}_{digest}"


def slugify(value: str) -> str:
    """ASCII, lowercase, hyphen-separated slug. May return ``""``."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _SLUG_INVALID.sub("-", normalized.lower()).strip("-")


def strip_byline_prefix(value: str) -> str:
    return _BYLINE_PREFIX.sub("", value.lstrip())


def strip_parenthetical_email(value: str) -> str:
    return _PARENTHETICAL_EMAIL.sub("", value)


def clean_author_name(value: str | None) -> str | None:
    """Normalize a byline into a plain author name; ``None`` if nothing is left.

    >>> clean_author_name("By Jane Doe (jane@example.com) | Staff")
    'Jane Doe'
    """
    if value is None:
        return None
    cleaned = strip_byline_prefix(value)
    cleaned = strip_parenthetical_email(cleaned)
    cleaned = _PIPE_SUFFIX.sub("", cleaned).strip()
    return cleaned or None


def capitalize_words(value: str) -> str:
    """Upper-case the first letter of each space-separated word, keep the rest."""
    return " ".join(word[:1].upper() + word[1:] for word in value.split(" "))


def blank_to_none(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_timestamp(value: object) -> datetime | None:
    """Parse provider ISO-8601 timestamps (``Z``, ``+00:00`` or ``+0000`` offsets)."""
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return None
