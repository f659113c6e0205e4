# billing/services/items.py

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from billing.db.schema import items
from billing.errors import ConflictError, NotFoundError
from billing.services.clock import utcnow
from billing.services.guards import ITEM_IN_USE, ensure_item_unreferenced

logger = logging.getLogger(__name__)


def _not_found(item_id: int) -> NotFoundError:
    return NotFoundError("item", f"Item with ID {item_id} not found")


def _fetch(conn, item_id: int) -> Optional[dict]:
    row = conn.execute(select(items).where(items.c.id == item_id)).mappings().first()
    return dict(row) if row is not None else None


def create_item(engine: Engine, payload) -> dict:
    stamp = utcnow()
    with engine.begin() as conn:
        result = conn.execute(
            items.insert().values(
                name=payload.name,
                price=payload.price,
                unit=payload.unit,
                created_at=stamp,
                updated_at=stamp,
            )
        )
        return _fetch(conn, result.inserted_primary_key[0])


def list_items(engine: Engine) -> List[dict]:
    stmt = select(items).order_by(items.c.created_at.desc(), items.c.id.desc())
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(stmt).mappings().all()]


def get_item(engine: Engine, item_id: int) -> Optional[dict]:
    with engine.connect() as conn:
        return _fetch(conn, item_id)


def update_item(engine: Engine, item_id: int, payload) -> dict:
    """
    Changing an item's price does not touch existing invoice lines; they
    keep the unit price captured when the invoice was written.
    """
    values = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }
    values["updated_at"] = utcnow()

    with engine.begin() as conn:
        result = conn.execute(items.update().where(items.c.id == item_id).values(**values))
        if result.rowcount == 0:
            raise _not_found(item_id)
        return _fetch(conn, item_id)


def delete_item(engine: Engine, item_id: int) -> bool:
    try:
        with engine.begin() as conn:
            if _fetch(conn, item_id) is None:
                raise _not_found(item_id)
            ensure_item_unreferenced(conn, item_id)
            conn.execute(items.delete().where(items.c.id == item_id))
    except IntegrityError as exc:
        raise ConflictError(ITEM_IN_USE) from exc

    logger.info("Deleted item id=%s", item_id)
    return True
