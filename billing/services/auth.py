# billing/services/auth.py
"""
Credential handling for the billing API.

Passwords are stored as ``pbkdf2_sha256$<iterations>$<salt>$<hash>``.
Tokens are stateless and HMAC-signed::

    <user_id>.<expires_unix>.<nonce>.<hex signature>

so nothing about a session is persisted and logout has nothing to revoke.
"""

import hashlib
import hmac
import logging
import secrets
import time
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from billing.config import secret_key, token_ttl_seconds
from billing.db.schema import users
from billing.errors import ConflictError, InvalidCredentialsError
from billing.services.clock import utcnow

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000


# ---- Passwords ----

def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    )
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False

    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(digest.hex(), expected)


# ---- Tokens ----

def _sign(message: str) -> str:
    return hmac.new(secret_key().encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_token(user_id: int) -> str:
    expires = int(time.time()) + token_ttl_seconds()
    message = f"{user_id}.{expires}.{secrets.token_urlsafe(8)}"
    return f"{message}.{_sign(message)}"


def verify_token(token: str) -> Optional[int]:
    """Return the user id a valid, unexpired token was issued for."""
    message, _, signature = token.rpartition(".")
    if not message or not hmac.compare_digest(
        _sign(message).encode("utf-8"), signature.encode("utf-8")
    ):
        return None

    user_id, expires, _nonce = message.split(".", 2)
    if int(expires) < time.time():
        return None
    return int(user_id)


# ---- Operations ----

def _find_user(conn, email: str) -> Optional[dict]:
    row = conn.execute(select(users).where(users.c.email == email)).mappings().first()
    return dict(row) if row is not None else None


def register_user(engine: Engine, email: str, password: str) -> Tuple[dict, str]:
    email = email.strip().lower()
    stamp = utcnow()

    try:
        with engine.begin() as conn:
            if _find_user(conn, email) is not None:
                raise ConflictError("User already exists")
            conn.execute(
                users.insert().values(
                    email=email,
                    password_hash=hash_password(password),
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
            user = _find_user(conn, email)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same email.
        raise ConflictError("User already exists") from exc

    logger.info("Registered user id=%s", user["id"])
    return user, issue_token(user["id"])


def login_user(engine: Engine, email: str, password: str) -> Tuple[dict, str]:
    email = email.strip().lower()
    with engine.connect() as conn:
        user = _find_user(conn, email)

    if user is None or not verify_password(password, user["password_hash"]):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError()

    return user, issue_token(user["id"])


def get_user(engine: Engine, user_id: int) -> Optional[dict]:
    with engine.connect() as conn:
        row = conn.execute(select(users).where(users.c.id == user_id)).mappings().first()
    return dict(row) if row is not None else None
