# billing/services/clock.py

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in created_at/updated_at columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
