# billing/config.py
"""
Runtime settings, read from the environment.

Every setting has a development default so `uvicorn billing:app` works
out of the box against a local SQLite file.
"""

import os
from decimal import Decimal
from zoneinfo import ZoneInfo

DEFAULT_DB_URL = "sqlite:///db.sqlite"  # file in project root

# Fixed for the lifetime of the system: one currency, one tax rate.
TAX_RATE = Decimal("0.1100")

INVOICE_NUMBER_PREFIX = "INV"
MAX_MONTHLY_SEQUENCE = 9999
MAX_NUMBER_ATTEMPTS = 5
RECENT_INVOICES_LIMIT = 10


def database_url() -> str:
    return os.getenv("BILLING_DATABASE_URL", DEFAULT_DB_URL)


def timezone() -> ZoneInfo:
    """Zone that decides which calendar month an invoice is numbered in."""
    return ZoneInfo(os.getenv("BILLING_TIMEZONE", "UTC"))


def secret_key() -> str:
    return os.getenv("BILLING_SECRET_KEY", "dev-only-change-me")


def token_ttl_seconds() -> int:
    return int(os.getenv("BILLING_TOKEN_TTL_SECONDS", "86400"))


def log_level() -> str:
    return os.getenv("BILLING_LOG_LEVEL", "INFO").upper()
