# billing/api/invoices.py

from typing import List, Optional

from fastapi import APIRouter, Query, Response

from billing.db.engine import get_engine
from billing.models.common import SuccessOut
from billing.models.invoices import (
    InvoiceCreate,
    InvoiceLineOut,
    InvoiceOut,
    InvoiceStatus,
    InvoiceStatusUpdate,
    InvoiceUpdate,
)
from billing.services import invoices as service
from billing.services.pdf import export_invoice_pdf

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/", response_model=InvoiceOut, status_code=201)
def create_invoice(payload: InvoiceCreate) -> InvoiceOut:
    """
    Create a draft invoice. Number and totals are assigned server-side.
    """
    row = service.create_invoice(get_engine(), payload)
    return InvoiceOut(**row)


@router.get("/", response_model=List[InvoiceOut])
def list_invoices(
    status: Optional[InvoiceStatus] = Query(default=None),
    client_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive match on invoice number or client name",
    ),
) -> List[InvoiceOut]:
    rows = service.list_invoices(
        get_engine(), status=status, client_id=client_id, search=search
    )
    return [InvoiceOut(**row) for row in rows]


@router.get("/{invoice_id}", response_model=Optional[InvoiceOut])
def get_invoice(invoice_id: int) -> Optional[InvoiceOut]:
    """
    Look up a single invoice. Unknown ids give null rather than 404.
    """
    row = service.get_invoice(get_engine(), invoice_id)
    return InvoiceOut(**row) if row is not None else None


@router.patch("/{invoice_id}", response_model=InvoiceOut)
def update_invoice(invoice_id: int, payload: InvoiceUpdate) -> InvoiceOut:
    row = service.update_invoice(get_engine(), invoice_id, payload)
    return InvoiceOut(**row)


@router.patch("/{invoice_id}/status", response_model=InvoiceOut)
def update_invoice_status(invoice_id: int, payload: InvoiceStatusUpdate) -> InvoiceOut:
    row = service.update_invoice_status(get_engine(), invoice_id, payload.status)
    return InvoiceOut(**row)


@router.delete("/{invoice_id}", response_model=SuccessOut)
def delete_invoice(invoice_id: int) -> SuccessOut:
    return SuccessOut(success=service.delete_invoice(get_engine(), invoice_id))


@router.get("/{invoice_id}/items", response_model=List[InvoiceLineOut])
def get_invoice_items(invoice_id: int) -> List[InvoiceLineOut]:
    rows = service.get_invoice_lines(get_engine(), invoice_id)
    return [InvoiceLineOut(**row) for row in rows]


@router.get("/{invoice_id}/pdf")
def export_pdf(invoice_id: int) -> Response:
    content, filename = export_invoice_pdf(get_engine(), invoice_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
