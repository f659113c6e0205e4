# billing/models/invoices.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from billing.db.schema import INVOICE_STATUSES
from billing.models.common import Money

InvoiceStatus = Literal[INVOICE_STATUSES]


class InvoiceLineIn(BaseModel):
    item_id: int
    quantity: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    unit_price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class InvoiceCreate(BaseModel):
    client_id: int
    invoice_date: date
    due_date: date
    discount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    items: List[InvoiceLineIn]


class InvoiceUpdate(BaseModel):
    """
    Partial update. Totals are never accepted from the caller; they are
    recomputed when `items` is supplied.
    """
    client_id: Optional[int] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    discount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    items: Optional[List[InvoiceLineIn]] = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceOut(BaseModel):
    id: int
    invoice_number: str
    client_id: int
    invoice_date: date
    due_date: date
    subtotal: Money
    discount: Money
    tax_rate: Money
    tax_amount: Money
    total_amount: Money
    status: InvoiceStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceLineOut(BaseModel):
    id: int
    invoice_id: int
    item_id: int
    quantity: Money
    unit_price: Money
    line_total: Money
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardSummaryOut(BaseModel):
    total_invoices: int
    total_amount: Money
    paid_amount: Money
    overdue_count: int
    recent_invoices: List[InvoiceOut]
