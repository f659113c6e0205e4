# billing/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, String,
    Numeric, Date, DateTime, ForeignKey, CheckConstraint, Text
)

metadata = MetaData()

INVOICE_STATUSES = ("draft", "sent", "paid", "overdue")

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    sqlite_autoincrement=True,
)

clients = Table(
    "clients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("phone", String(50), nullable=True),
    Column("address", Text, nullable=True),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    sqlite_autoincrement=True,
)

items = Table(
    "items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("price", Numeric(10, 2), nullable=False),
    Column("unit", String(50), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    CheckConstraint("price > 0", name="ck_items_price_pos"),
    sqlite_autoincrement=True,
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("invoice_number", String(50), unique=True, nullable=False),
    Column(
        "client_id",
        Integer,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column("invoice_date", Date, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("subtotal", Numeric(10, 2), nullable=False),
    Column("discount", Numeric(10, 2), nullable=False, default=0),
    Column("tax_rate", Numeric(5, 4), nullable=False),
    Column("tax_amount", Numeric(10, 2), nullable=False),
    Column("total_amount", Numeric(10, 2), nullable=False),
    Column("status", String(16), nullable=False, default="draft"),
    Column("notes", Text),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    CheckConstraint(
        "status IN ({})".format(", ".join(f"'{s}'" for s in INVOICE_STATUSES)),
        name="ck_invoices_status",
    ),
    sqlite_autoincrement=True,
)

invoice_lines = Table(
    "invoice_lines",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "invoice_id",
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "item_id",
        Integer,
        ForeignKey("items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column("quantity", Numeric(10, 2), nullable=False),
    Column("unit_price", Numeric(10, 2), nullable=False),
    Column("line_total", Numeric(10, 2), nullable=False),
    Column("created_at", DateTime, nullable=False),
    CheckConstraint("quantity > 0", name="ck_invoice_lines_quantity_pos"),
    CheckConstraint("unit_price > 0", name="ck_invoice_lines_unit_price_pos"),
    sqlite_autoincrement=True,
)
