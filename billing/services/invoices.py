# billing/services/invoices.py
"""
Invoice lifecycle: create, update, status change, delete, and reads.

Every mutation runs inside a single `engine.begin()` block, so an invoice
and its line set are written or removed together.

Not-found handling differs per operation and callers rely on it:
create/update/update_status raise NotFoundError, while get_invoice returns
None, get_invoice_lines returns [] and delete_invoice returns False.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from billing.config import MAX_NUMBER_ATTEMPTS
from billing.db.schema import clients, invoice_lines, invoices, items
from billing.errors import ConflictError, NotFoundError
from billing.services.clock import utcnow
from billing.services.numbering import current_month_day, next_invoice_number
from billing.services.references import ensure_client_exists, ensure_items_exist
from billing.services.totals import LineInput, compute_totals, to_lines

logger = logging.getLogger(__name__)


@dataclass
class InvoiceView:
    """An invoice resolved with its client and lines, ready for rendering."""
    invoice: dict
    client: dict
    lines: List[dict]


# ---- Helpers ----

def _fetch_invoice(conn, invoice_id: int, for_update: bool = False) -> Optional[dict]:
    stmt = select(invoices).where(invoices.c.id == invoice_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row is not None else None


def _fetch_lines(conn, invoice_id: int) -> List[dict]:
    stmt = (
        select(invoice_lines)
        .where(invoice_lines.c.invoice_id == invoice_id)
        .order_by(invoice_lines.c.created_at.asc(), invoice_lines.c.id.asc())
    )
    return [dict(row) for row in conn.execute(stmt).mappings().all()]


def _insert_lines(conn, invoice_id: int, lines: List[LineInput], stamp: datetime) -> None:
    if not lines:
        return
    conn.execute(
        invoice_lines.insert(),
        [
            {
                "invoice_id": invoice_id,
                "item_id": line.item_id,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
                "line_total": line.line_total,
                "created_at": stamp,
            }
            for line in lines
        ],
    )


def _number_exists(conn, invoice_number: str) -> bool:
    stmt = select(invoices.c.id).where(invoices.c.invoice_number == invoice_number)
    return conn.execute(stmt).first() is not None


# ---- Operations ----

def create_invoice(engine: Engine, payload, now: Optional[datetime] = None) -> dict:
    """
    Validate references, allocate the month's next number, compute totals
    and persist the invoice (status draft) with its lines.

    `now` only decides the numbering month; it defaults to the current time
    in the configured billing time zone.
    """
    lines = to_lines(payload.items)
    totals = compute_totals(lines, payload.discount)
    day = current_month_day(now)
    item_ids = [line.item_id for line in lines]

    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        invoice_number = None
        try:
            with engine.begin() as conn:
                ensure_client_exists(conn, payload.client_id)
                ensure_items_exist(conn, item_ids)

                invoice_number = next_invoice_number(conn, day)
                stamp = utcnow()

                result = conn.execute(
                    invoices.insert().values(
                        invoice_number=invoice_number,
                        client_id=payload.client_id,
                        invoice_date=payload.invoice_date,
                        due_date=payload.due_date,
                        subtotal=totals.subtotal,
                        discount=totals.discount,
                        tax_rate=totals.tax_rate,
                        tax_amount=totals.tax_amount,
                        total_amount=totals.total_amount,
                        status="draft",
                        notes=payload.notes,
                        created_at=stamp,
                        updated_at=stamp,
                    )
                )
                invoice_id = result.inserted_primary_key[0]
                _insert_lines(conn, invoice_id, lines, stamp)
                created = _fetch_invoice(conn, invoice_id)
        except IntegrityError:
            with engine.connect() as conn:
                if invoice_number is not None and _number_exists(conn, invoice_number):
                    logger.warning(
                        "Invoice number %s taken concurrently (attempt %s/%s), retrying",
                        invoice_number, attempt, MAX_NUMBER_ATTEMPTS,
                    )
                    continue
                # A referenced client/item vanished between check and insert.
                ensure_client_exists(conn, payload.client_id)
                ensure_items_exist(conn, item_ids)
            raise

        logger.info(
            "Created invoice %s (id=%s, client_id=%s, total=%s)",
            created["invoice_number"], created["id"], created["client_id"],
            created["total_amount"],
        )
        return created

    raise ConflictError("could not allocate a unique invoice number")


def update_invoice(engine: Engine, invoice_id: int, payload) -> dict:
    """
    Partial update. Omitted fields stay as they are; `invoice_number` never
    changes. Supplying `items` replaces the whole line set. Totals are
    recomputed whenever the lines or the discount change.
    """
    changes = payload.model_dump(exclude_unset=True)

    with engine.begin() as conn:
        current = _fetch_invoice(conn, invoice_id, for_update=True)
        if current is None:
            raise NotFoundError("invoice")

        values = {"updated_at": utcnow()}

        client_id = changes.get("client_id")
        if client_id is not None and client_id != current["client_id"]:
            ensure_client_exists(conn, client_id)

        for field in ("client_id", "invoice_date", "due_date"):
            if changes.get(field) is not None:
                values[field] = changes[field]
        if "notes" in changes:
            values["notes"] = changes["notes"]

        discount = changes.get("discount")
        if discount is None:
            discount = current["discount"]

        if payload.items is not None:
            lines = to_lines(payload.items)
            ensure_items_exist(conn, [line.item_id for line in lines])

            conn.execute(
                invoice_lines.delete().where(invoice_lines.c.invoice_id == invoice_id)
            )
            _insert_lines(conn, invoice_id, lines, values["updated_at"])
        elif changes.get("discount") is not None:
            lines = to_lines(_fetch_lines(conn, invoice_id))
        else:
            lines = None

        if lines is not None:
            totals = compute_totals(lines, discount)
            values.update(
                subtotal=totals.subtotal,
                discount=totals.discount,
                tax_amount=totals.tax_amount,
                total_amount=totals.total_amount,
            )

        conn.execute(invoices.update().where(invoices.c.id == invoice_id).values(**values))
        updated = _fetch_invoice(conn, invoice_id)

    logger.info("Updated invoice %s (fields: %s)", updated["invoice_number"], sorted(changes))
    return updated


def update_invoice_status(engine: Engine, invoice_id: int, status: str) -> dict:
    """Any status may move to any other; only the existence of the invoice is checked."""
    with engine.begin() as conn:
        result = conn.execute(
            invoices.update()
            .where(invoices.c.id == invoice_id)
            .values(status=status, updated_at=utcnow())
        )
        if result.rowcount == 0:
            raise NotFoundError("invoice")
        updated = _fetch_invoice(conn, invoice_id)

    logger.info("Invoice %s status -> %s", updated["invoice_number"], status)
    return updated


def delete_invoice(engine: Engine, invoice_id: int) -> bool:
    with engine.begin() as conn:
        conn.execute(invoice_lines.delete().where(invoice_lines.c.invoice_id == invoice_id))
        result = conn.execute(invoices.delete().where(invoices.c.id == invoice_id))
        deleted = result.rowcount > 0

    if deleted:
        logger.info("Deleted invoice id=%s", invoice_id)
    return deleted


def get_invoice(engine: Engine, invoice_id: int) -> Optional[dict]:
    with engine.connect() as conn:
        return _fetch_invoice(conn, invoice_id)


def get_invoice_lines(engine: Engine, invoice_id: int) -> List[dict]:
    with engine.connect() as conn:
        return _fetch_lines(conn, invoice_id)


def list_invoices(
    engine: Engine,
    status: Optional[str] = None,
    client_id: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """
    All invoices matching every given filter, newest first. `search` is a
    case-insensitive substring match on the invoice number or client name.
    """
    conditions = []
    if status is not None:
        conditions.append(invoices.c.status == status)
    if client_id is not None:
        conditions.append(invoices.c.client_id == client_id)
    if search:
        term = search.lower()
        conditions.append(
            or_(
                func.lower(invoices.c.invoice_number).contains(term, autoescape=True),
                func.lower(clients.c.name).contains(term, autoescape=True),
            )
        )

    stmt = (
        select(invoices)
        .select_from(invoices.outerjoin(clients, invoices.c.client_id == clients.c.id))
        .order_by(invoices.c.created_at.desc(), invoices.c.id.desc())
    )
    if conditions:
        stmt = stmt.where(and_(*conditions))

    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(stmt).mappings().all()]


def get_invoice_view(engine: Engine, invoice_id: int) -> InvoiceView:
    """Invoice + client + lines (with item names) for PDF rendering."""
    with engine.connect() as conn:
        invoice = _fetch_invoice(conn, invoice_id)
        if invoice is None:
            raise NotFoundError("invoice")

        client = conn.execute(
            select(clients).where(clients.c.id == invoice["client_id"])
        ).mappings().first()

        stmt = (
            select(invoice_lines, items.c.name.label("item_name"), items.c.unit.label("item_unit"))
            .select_from(invoice_lines.join(items, invoice_lines.c.item_id == items.c.id))
            .where(invoice_lines.c.invoice_id == invoice_id)
            .order_by(invoice_lines.c.created_at.asc(), invoice_lines.c.id.asc())
        )
        lines = [dict(row) for row in conn.execute(stmt).mappings().all()]

    return InvoiceView(invoice=invoice, client=dict(client), lines=lines)
