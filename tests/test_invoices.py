from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from billing.db.schema import invoices
from billing.errors import NotFoundError
from billing.models.clients import ClientCreate
from billing.models.invoices import InvoiceLineIn, InvoiceUpdate
from billing.models.items import ItemCreate, ItemUpdate
from billing.services.clients import create_client
from billing.services.invoices import (
    create_invoice,
    delete_invoice,
    get_invoice,
    get_invoice_lines,
    list_invoices,
    update_invoice,
    update_invoice_status,
)
from billing.services.items import create_item, update_item


# ---- create ----

def test_create_invoice_with_calculated_totals(engine, client_row, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    assert inv["client_id"] == client_row["id"]
    assert inv["status"] == "draft"
    assert inv["notes"] == "Test invoice"
    assert inv["subtotal"] == Decimal("35.00")
    assert inv["discount"] == Decimal("5.00")
    assert inv["tax_rate"] == Decimal("0.1100")
    assert inv["tax_amount"] == Decimal("3.30")
    assert inv["total_amount"] == Decimal("33.30")
    assert inv["invoice_date"] == date(2024, 1, 15)
    assert inv["due_date"] == date(2024, 2, 15)


def test_create_saves_lines(engine, item_rows, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    lines = get_invoice_lines(engine, inv["id"])

    assert [line["item_id"] for line in lines] == [item_rows[0]["id"], item_rows[1]["id"]]
    assert lines[0]["quantity"] == Decimal("2")
    assert lines[0]["unit_price"] == Decimal("10.00")
    assert lines[0]["line_total"] == Decimal("20.00")
    assert lines[1]["line_total"] == Decimal("15.00")


def test_create_rejects_unknown_client(engine, invoice_payload):
    payload = invoice_payload()
    payload.client_id = 999

    with pytest.raises(NotFoundError, match="Client not found") as exc_info:
        create_invoice(engine, payload)
    assert exc_info.value.entity == "client"
    assert list_invoices(engine) == []


def test_create_rejects_unknown_items(engine, invoice_payload):
    payload = invoice_payload()
    payload.items.append(InvoiceLineIn(item_id=999, quantity=1, unit_price=Decimal("1.00")))

    with pytest.raises(NotFoundError, match="One or more items not found") as exc_info:
        create_invoice(engine, payload)
    assert exc_info.value.entity == "items"
    assert list_invoices(engine) == []


def test_duplicate_item_ids_are_allowed(engine, item_rows, invoice_payload):
    payload = invoice_payload(discount="0")
    payload.items.append(
        InvoiceLineIn(item_id=item_rows[0]["id"], quantity=3, unit_price=Decimal("9.00"))
    )

    inv = create_invoice(engine, payload)

    assert inv["subtotal"] == Decimal("62.00")
    assert len(get_invoice_lines(engine, inv["id"])) == 3


def test_line_price_is_captured_at_invoice_time(engine, item_rows, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    update_item(engine, item_rows[0]["id"], ItemUpdate(price=Decimal("99.00")))

    lines = get_invoice_lines(engine, inv["id"])
    assert lines[0]["unit_price"] == Decimal("10.00")
    assert get_invoice(engine, inv["id"])["subtotal"] == Decimal("35.00")


# ---- read ----

def test_get_invoice_returns_none_when_missing(engine):
    assert get_invoice(engine, 999) is None


def test_get_lines_of_unknown_invoice_is_empty(engine):
    assert get_invoice_lines(engine, 999) == []


def test_list_is_newest_first(engine, invoice_payload):
    first = create_invoice(engine, invoice_payload())
    second = create_invoice(engine, invoice_payload())
    third = create_invoice(engine, invoice_payload())

    assert [inv["id"] for inv in list_invoices(engine)] == [third["id"], second["id"], first["id"]]


def test_list_filters_by_status_and_client(engine, client_row, item_rows, invoice_payload):
    other = create_client(engine, ClientCreate(name="Globex", email="ap@globex.com"))
    mine = create_invoice(engine, invoice_payload())
    paid = create_invoice(engine, invoice_payload())
    update_invoice_status(engine, paid["id"], "paid")

    payload = invoice_payload()
    payload.client_id = other["id"]
    theirs = create_invoice(engine, payload)

    assert [i["id"] for i in list_invoices(engine, status="paid")] == [paid["id"]]
    assert [i["id"] for i in list_invoices(engine, client_id=other["id"])] == [theirs["id"]]
    assert [i["id"] for i in list_invoices(engine, status="draft", client_id=client_row["id"])] == [
        mine["id"]
    ]


def test_list_search_matches_number_or_client_name(engine, invoice_payload):
    globex = create_client(engine, ClientCreate(name="Globex Industries", email="ap@globex.com"))
    acme_inv = create_invoice(engine, invoice_payload())

    payload = invoice_payload()
    payload.client_id = globex["id"]
    globex_inv = create_invoice(engine, payload)

    assert [i["id"] for i in list_invoices(engine, search="gLoBeX")] == [globex_inv["id"]]
    assert [i["id"] for i in list_invoices(engine, search=acme_inv["invoice_number"].lower())] == [
        acme_inv["id"]
    ]
    assert len(list_invoices(engine, search="inv-")) == 2
    assert list_invoices(engine, search="nobody") == []


def test_search_treats_wildcards_literally(engine, invoice_payload):
    create_invoice(engine, invoice_payload())
    assert list_invoices(engine, search="%") == []


# ---- update ----

def test_partial_update_only_touches_given_fields(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    updated = update_invoice(engine, inv["id"], InvoiceUpdate(notes="Updated notes"))

    assert updated["notes"] == "Updated notes"
    for field in (
        "client_id", "invoice_date", "due_date", "discount",
        "subtotal", "tax_amount", "total_amount", "invoice_number", "status",
    ):
        assert updated[field] == inv[field]
    assert updated["updated_at"] > inv["updated_at"]
    assert len(get_invoice_lines(engine, inv["id"])) == 2


def test_update_can_clear_notes(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    assert update_invoice(engine, inv["id"], InvoiceUpdate(notes=None))["notes"] is None


def test_update_items_replaces_lines_and_totals(engine, item_rows, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    old_line_ids = {line["id"] for line in get_invoice_lines(engine, inv["id"])}

    updated = update_invoice(
        engine,
        inv["id"],
        InvoiceUpdate(
            items=[InvoiceLineIn(item_id=item_rows[1]["id"], quantity=4, unit_price=Decimal("25.00"))]
        ),
    )

    lines = get_invoice_lines(engine, inv["id"])
    assert len(lines) == 1
    assert lines[0]["id"] not in old_line_ids
    assert lines[0]["line_total"] == Decimal("100.00")

    # 100.00 - 5.00 stored discount = 95.00; tax 10.45
    assert updated["subtotal"] == Decimal("100.00")
    assert updated["discount"] == Decimal("5.00")
    assert updated["tax_amount"] == Decimal("10.45")
    assert updated["total_amount"] == Decimal("105.45")
    assert updated["invoice_number"] == inv["invoice_number"]


def test_update_items_with_new_discount(engine, item_rows, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    updated = update_invoice(
        engine,
        inv["id"],
        InvoiceUpdate(
            discount=Decimal("0"),
            items=[InvoiceLineIn(item_id=item_rows[0]["id"], quantity=1, unit_price=Decimal("10.00"))],
        ),
    )

    assert updated["subtotal"] == Decimal("10.00")
    assert updated["tax_amount"] == Decimal("1.10")
    assert updated["total_amount"] == Decimal("11.10")


def test_update_discount_alone_recomputes_from_stored_lines(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    updated = update_invoice(engine, inv["id"], InvoiceUpdate(discount=Decimal("15.00")))

    assert updated["subtotal"] == Decimal("35.00")
    assert updated["discount"] == Decimal("15.00")
    assert updated["tax_amount"] == Decimal("2.20")
    assert updated["total_amount"] == Decimal("22.20")


def test_update_unknown_invoice(engine):
    with pytest.raises(NotFoundError, match="Invoice not found"):
        update_invoice(engine, 999, InvoiceUpdate(notes="x"))


def test_update_to_unknown_client(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    with pytest.raises(NotFoundError, match="Client not found"):
        update_invoice(engine, inv["id"], InvoiceUpdate(client_id=999))
    assert get_invoice(engine, inv["id"])["client_id"] == inv["client_id"]


def test_update_with_unknown_item_keeps_old_lines(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    with pytest.raises(NotFoundError, match="One or more items not found"):
        update_invoice(
            engine,
            inv["id"],
            InvoiceUpdate(items=[InvoiceLineIn(item_id=999, quantity=1, unit_price=Decimal("1.00"))]),
        )
    assert len(get_invoice_lines(engine, inv["id"])) == 2
    assert get_invoice(engine, inv["id"])["subtotal"] == Decimal("35.00")


def test_update_moves_invoice_to_other_client(engine, invoice_payload):
    other = create_client(engine, ClientCreate(name="Globex", email="ap@globex.com"))
    inv = create_invoice(engine, invoice_payload())

    updated = update_invoice(engine, inv["id"], InvoiceUpdate(client_id=other["id"]))
    assert updated["client_id"] == other["id"]


# ---- status ----

@pytest.mark.parametrize("path", [
    ["sent", "paid"],
    ["sent", "overdue"],
    ["paid", "draft"],
    ["overdue", "sent", "draft"],
])
def test_any_status_transition_is_allowed(engine, invoice_payload, path):
    inv = create_invoice(engine, invoice_payload())
    for status in path:
        inv = update_invoice_status(engine, inv["id"], status)
        assert inv["status"] == status


def test_status_update_advances_updated_at(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())
    updated = update_invoice_status(engine, inv["id"], "sent")
    assert updated["updated_at"] > inv["updated_at"]
    assert updated["total_amount"] == inv["total_amount"]


def test_status_update_unknown_invoice(engine):
    with pytest.raises(NotFoundError, match="Invoice not found"):
        update_invoice_status(engine, 999, "paid")


# ---- delete ----

def test_delete_removes_invoice_and_lines(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    assert delete_invoice(engine, inv["id"]) is True
    assert get_invoice(engine, inv["id"]) is None
    assert get_invoice_lines(engine, inv["id"]) == []


def test_delete_twice_returns_false_second_time(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    assert delete_invoice(engine, inv["id"]) is True
    assert delete_invoice(engine, inv["id"]) is False


def test_delete_only_touches_its_own_lines(engine, invoice_payload):
    keep = create_invoice(engine, invoice_payload())
    drop = create_invoice(engine, invoice_payload())

    delete_invoice(engine, drop["id"])
    assert len(get_invoice_lines(engine, keep["id"])) == 2


def test_items_created_later_can_be_invoiced(engine, client_row, invoice_payload):
    extra = create_item(engine, ItemCreate(name="Hosting", price=Decimal("7.50"), unit="month"))
    payload = invoice_payload(discount="0")
    payload.items = [InvoiceLineIn(item_id=extra["id"], quantity=2, unit_price=extra["price"])]

    inv = create_invoice(engine, payload)
    assert inv["subtotal"] == Decimal("15.00")


def test_fractional_quantities_keep_lines_and_subtotal_in_step(engine, item_rows, invoice_payload):
    payload = invoice_payload(discount="0")
    payload.items = [
        InvoiceLineIn(item_id=item_rows[0]["id"], quantity=Decimal("1.5"), unit_price=Decimal("0.33")),
        InvoiceLineIn(item_id=item_rows[1]["id"], quantity=Decimal("1.5"), unit_price=Decimal("0.33")),
    ]

    inv = create_invoice(engine, payload)
    lines = get_invoice_lines(engine, inv["id"])

    assert [line["line_total"] for line in lines] == [Decimal("0.50"), Decimal("0.50")]
    assert inv["subtotal"] == sum(line["line_total"] for line in lines) == Decimal("1.00")


def test_ids_of_deleted_invoices_are_not_reused(engine, invoice_payload):
    newest = create_invoice(engine, invoice_payload())
    delete_invoice(engine, newest["id"])

    replacement = create_invoice(engine, invoice_payload())

    assert replacement["id"] != newest["id"]
    assert get_invoice(engine, newest["id"]) is None
    assert delete_invoice(engine, newest["id"]) is False


def test_status_column_only_accepts_known_statuses(engine, invoice_payload):
    inv = create_invoice(engine, invoice_payload())

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(
                invoices.update().where(invoices.c.id == inv["id"]).values(status="void")
            )
    assert get_invoice(engine, inv["id"])["status"] == "draft"
