# billing/services/dashboard.py

from sqlalchemy import case, func, select
from sqlalchemy.engine import Engine

from billing.config import RECENT_INVOICES_LIMIT
from billing.db.schema import invoices
from billing.services.totals import round2


def dashboard_summary(engine: Engine) -> dict:
    """
    Counts and sums over every invoice, plus the newest few. Read-only; an
    empty store gives zeros and an empty list.
    """
    totals_stmt = select(
        func.count().label("total_invoices"),
        func.coalesce(func.sum(invoices.c.total_amount), 0).label("total_amount"),
        func.coalesce(
            func.sum(case((invoices.c.status == "paid", invoices.c.total_amount), else_=0)),
            0,
        ).label("paid_amount"),
        func.coalesce(
            func.sum(case((invoices.c.status == "overdue", 1), else_=0)),
            0,
        ).label("overdue_count"),
    ).select_from(invoices)

    recent_stmt = (
        select(invoices)
        .order_by(invoices.c.created_at.desc(), invoices.c.id.desc())
        .limit(RECENT_INVOICES_LIMIT)
    )

    with engine.connect() as conn:
        row = conn.execute(totals_stmt).first()
        recent = [dict(r) for r in conn.execute(recent_stmt).mappings().all()]

    return {
        "total_invoices": row.total_invoices or 0,
        "total_amount": round2(row.total_amount or 0),
        "paid_amount": round2(row.paid_amount or 0),
        "overdue_count": int(row.overdue_count or 0),
        "recent_invoices": recent,
    }
