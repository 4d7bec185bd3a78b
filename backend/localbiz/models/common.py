"""
Shared column helpers for ORM models.

Identifiers are UUID4 strings: every record is addressed by an opaque text id
(accounts, profiles and businesses share the same id).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional


def new_id() -> str:
    """Generate a new opaque record identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read back from the database to aware UTC.

    SQLite drops tzinfo on round-trip; PostgreSQL TIMESTAMPTZ keeps it.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
