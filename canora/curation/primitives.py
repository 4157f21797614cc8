"""
Common primitives shared by the curation services.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone

from ulid import ULID

_SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SLUG_BASE_MAX_LENGTH = 50
SLUG_SUFFIX_LENGTH = 4


def generate_id() -> str:
    """Generate a ULID for stored records.

    ULIDs are globally unique and sort lexicographically by creation
    millisecond.
    """
    return str(ULID())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def slugify(title: str) -> str:
    """Reduce a title to its URL-safe slug base.

    "Midnight Echoes!" -> "midnight-echoes"
    """
    base = title.lower().strip()
    base = re.sub(r"[^\w\s-]", "", base, flags=re.ASCII)
    base = re.sub(r"\s+", "-", base)
    base = re.sub(r"-+", "-", base)
    return base[:SLUG_BASE_MAX_LENGTH]


def generate_slug(title: str) -> str:
    """Slug with a short random suffix, e.g. "midnight-echoes-a3b2"."""
    suffix = "".join(
        secrets.choice(_SLUG_SUFFIX_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH)
    )
    return f"{slugify(title)}-{suffix}"
