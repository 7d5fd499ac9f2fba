"""Shared column helpers for the SQLModel tables."""
from datetime import datetime, timezone
from uuid import uuid4


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid4())
