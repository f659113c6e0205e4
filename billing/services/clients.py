# billing/services/clients.py

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from billing.db.schema import clients
from billing.errors import ConflictError, NotFoundError
from billing.services.clock import utcnow
from billing.services.guards import CLIENT_IN_USE, ensure_client_unreferenced

logger = logging.getLogger(__name__)

# Columns that cannot be cleared by sending null.
_REQUIRED = ("name", "email")


def _fetch(conn, client_id: int) -> Optional[dict]:
    row = conn.execute(select(clients).where(clients.c.id == client_id)).mappings().first()
    return dict(row) if row is not None else None


def create_client(engine: Engine, payload) -> dict:
    stamp = utcnow()
    with engine.begin() as conn:
        result = conn.execute(
            clients.insert().values(
                name=payload.name,
                email=str(payload.email),
                phone=payload.phone,
                address=payload.address,
                created_at=stamp,
                updated_at=stamp,
            )
        )
        return _fetch(conn, result.inserted_primary_key[0])


def list_clients(engine: Engine) -> List[dict]:
    stmt = select(clients).order_by(clients.c.created_at.desc(), clients.c.id.desc())
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(stmt).mappings().all()]


def get_client(engine: Engine, client_id: int) -> Optional[dict]:
    with engine.connect() as conn:
        return _fetch(conn, client_id)


def update_client(engine: Engine, client_id: int, payload) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    values = {
        key: (str(value) if key == "email" else value)
        for key, value in changes.items()
        if value is not None or key not in _REQUIRED
    }
    values["updated_at"] = utcnow()

    with engine.begin() as conn:
        result = conn.execute(
            clients.update().where(clients.c.id == client_id).values(**values)
        )
        if result.rowcount == 0:
            raise NotFoundError("client")
        return _fetch(conn, client_id)


def delete_client(engine: Engine, client_id: int) -> bool:
    """Delete a client with no invoices. Raises NotFoundError or ConflictError."""
    try:
        with engine.begin() as conn:
            if _fetch(conn, client_id) is None:
                raise NotFoundError("client")
            ensure_client_unreferenced(conn, client_id)
            conn.execute(clients.delete().where(clients.c.id == client_id))
    except IntegrityError as exc:
        # An invoice was created after the guard ran; the foreign key caught it.
        raise ConflictError(CLIENT_IN_USE) from exc

    logger.info("Deleted client id=%s", client_id)
    return True
