# billing/services/numbering.py

import re
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select

from billing.config import INVOICE_NUMBER_PREFIX, MAX_MONTHLY_SEQUENCE, timezone
from billing.db.schema import invoices
from billing.errors import ConflictError

INVOICE_NUMBER_RE = re.compile(r"^INV-\d{6}-\d{4}$")


def month_prefix(day: date) -> str:
    return f"{INVOICE_NUMBER_PREFIX}-{day.year:04d}{day.month:02d}-"


def current_month_day(now: Optional[datetime] = None) -> date:
    """Today's date in the configured billing time zone."""
    if now is None:
        return datetime.now(timezone()).date()
    if now.tzinfo is not None:
        return now.astimezone(timezone()).date()
    return now.date()


def next_invoice_number(conn, day: date) -> str:
    """
    Next number in the month of `day`: highest existing suffix + 1, or 0001.

    Derived from the table on every call. Two concurrent callers can get
    the same answer; the unique constraint on invoice_number makes the
    loser's insert fail and the caller retries.

    Raises ConflictError once the month has used all 9999 numbers.
    """
    prefix = month_prefix(day)

    stmt = (
        select(invoices.c.invoice_number)
        .where(invoices.c.invoice_number.like(f"{prefix}%"))
        .order_by(invoices.c.invoice_number.desc())
        .limit(1)
    )
    last = conn.execute(stmt).scalar()

    next_seq = 1
    if last is not None:
        next_seq = int(last.rsplit("-", 1)[1]) + 1

    if next_seq > MAX_MONTHLY_SEQUENCE:
        raise ConflictError(f"invoice number range for {prefix[:-1]} is exhausted")

    return f"{prefix}{next_seq:04d}"
