# billing/errors.py
"""
Domain errors raised by the service layer.

The API layer maps each class to an HTTP status in `billing.main`; nothing
here knows about HTTP.
"""

from typing import Optional


class BillingError(Exception):
    """Base class for every error a billing operation can surface."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BillingError):
    """A required client, item or invoice does not exist."""

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity.capitalize()} not found")
        self.entity = entity


class ConflictError(BillingError):
    pass


class InvalidCredentialsError(BillingError):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class ValidationError(BillingError):
    pass
