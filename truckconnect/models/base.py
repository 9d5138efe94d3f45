"""
Shared column helpers for TruckConnect models
"""
import uuid
from datetime import datetime, timezone


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """Serialize a date/datetime column value, passing None through."""
    return value.isoformat() if value else None
