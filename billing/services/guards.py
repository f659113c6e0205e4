# billing/services/guards.py

from sqlalchemy import func, select

from billing.db.schema import invoice_lines, invoices
from billing.errors import ConflictError

CLIENT_IN_USE = "cannot delete client with existing invoices"
ITEM_IN_USE = "cannot delete item used in invoices"


def ensure_client_unreferenced(conn, client_id: int) -> None:
    stmt = (
        select(func.count())
        .select_from(invoices)
        .where(invoices.c.client_id == client_id)
    )
    if conn.execute(stmt).scalar_one() > 0:
        raise ConflictError(CLIENT_IN_USE)


def ensure_item_unreferenced(conn, item_id: int) -> None:
    stmt = (
        select(func.count())
        .select_from(invoice_lines)
        .where(invoice_lines.c.item_id == item_id)
    )
    if conn.execute(stmt).scalar_one() > 0:
        raise ConflictError(ITEM_IN_USE)
