# billing/services/references.py

from typing import Iterable

from sqlalchemy import func, select

from billing.db.schema import clients, items
from billing.errors import NotFoundError


def ensure_client_exists(conn, client_id: int) -> None:
    # FOR UPDATE holds the row until commit on PostgreSQL; SQLite ignores it
    # and serialises writers on its own.
    stmt = select(clients.c.id).where(clients.c.id == client_id).with_for_update()
    if conn.execute(stmt).first() is None:
        raise NotFoundError("client")


def ensure_items_exist(conn, item_ids: Iterable[int]) -> None:
    wanted = sorted(set(item_ids))
    if not wanted:
        return

    stmt = (
        select(func.count())
        .select_from(items)
        .where(items.c.id.in_(wanted))
    )
    found = conn.execute(stmt).scalar_one()

    if found != len(wanted):
        raise NotFoundError("items", "One or more items not found")

    # Take the row locks separately; FOR UPDATE is not allowed with aggregates.
    conn.execute(select(items.c.id).where(items.c.id.in_(wanted)).with_for_update())
