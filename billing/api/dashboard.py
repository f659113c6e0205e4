# billing/api/dashboard.py

from fastapi import APIRouter

from billing.db.engine import get_engine
from billing.models.invoices import DashboardSummaryOut, InvoiceOut
from billing.services.dashboard import dashboard_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummaryOut)
def summary() -> DashboardSummaryOut:
    data = dashboard_summary(get_engine())
    return DashboardSummaryOut(
        total_invoices=data["total_invoices"],
        total_amount=data["total_amount"],
        paid_amount=data["paid_amount"],
        overdue_count=data["overdue_count"],
        recent_invoices=[InvoiceOut(**row) for row in data["recent_invoices"]],
    )
