# billing/services/pdf.py

from decimal import Decimal
from typing import Tuple

from fpdf import FPDF
from sqlalchemy.engine import Engine

from billing.services.invoices import InvoiceView, get_invoice_view


def _money(value) -> str:
    return f"{Decimal(value):,.2f}"


def _latin1(text) -> str:
    # Core PDF fonts only cover latin-1.
    return str(text).encode("latin-1", "replace").decode("latin-1")


def pdf_filename(invoice_number: str) -> str:
    return f"invoice-{invoice_number.lower()}.pdf"


def render_invoice_pdf(view: InvoiceView) -> bytes:
    inv, client = view.invoice, view.client

    pdf = FPDF(format="A4")
    pdf.add_page()
    pdf.set_auto_page_break(auto=True, margin=15)

    # --- Header ---
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, "INVOICE", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(2)

    pdf.set_fill_color(240, 240, 240)
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(95, 6, f"Invoice #: {inv['invoice_number']}", new_x="RIGHT")
    pdf.cell(95, 6, f"Date: {inv['invoice_date']}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(95, 6, f"Status: {inv['status'].upper()}", new_x="RIGHT")
    pdf.cell(95, 6, f"Due Date: {inv['due_date']}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # --- Bill To ---
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, "  Bill To", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 10)
    for value in (client["name"], client["email"], client.get("phone"), client.get("address")):
        if value:
            pdf.cell(0, 6, _latin1(f"  {value}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # --- Lines ---
    pdf.set_font("Helvetica", "B", 9)
    pdf.cell(80, 6, "  Item", border="B")
    pdf.cell(25, 6, "Qty", border="B", align="C")
    pdf.cell(35, 6, "Unit Price", border="B", align="R")
    pdf.cell(40, 6, "Total", border="B", align="R", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 9)
    for line in view.lines:
        pdf.cell(80, 5, _latin1(f"  {line['item_name']} ({line['item_unit']})"))
        pdf.cell(25, 5, f"{Decimal(line['quantity']).normalize():f}", align="C")
        pdf.cell(35, 5, _money(line["unit_price"]), align="R")
        pdf.cell(40, 5, _money(line["line_total"]), align="R", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # --- Summary ---
    pdf.set_font("Helvetica", "", 10)
    tax_pct = (Decimal(inv["tax_rate"]) * 100).normalize()
    for label, value in (
        ("Subtotal", inv["subtotal"]),
        ("Discount", inv["discount"]),
        (f"Tax ({tax_pct:f}%)", inv["tax_amount"]),
    ):
        pdf.cell(140, 6, f"  {label}:", new_x="RIGHT")
        pdf.cell(40, 6, _money(value), align="R", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(140, 8, "  TOTAL:", new_x="RIGHT")
    pdf.cell(40, 8, _money(inv["total_amount"]), align="R", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    if inv.get("notes"):
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 7, "  Notes", new_x="LMARGIN", new_y="NEXT", fill=True)
        pdf.set_font("Helvetica", "", 10)
        pdf.multi_cell(0, 5, _latin1(f"  {inv['notes']}"))

    return bytes(pdf.output())


def export_invoice_pdf(engine: Engine, invoice_id: int) -> Tuple[bytes, str]:
    """Raises NotFoundError for an unknown invoice."""
    view = get_invoice_view(engine, invoice_id)
    return render_invoice_pdf(view), pdf_filename(view.invoice["invoice_number"])
