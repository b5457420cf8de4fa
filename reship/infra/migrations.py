# reship/infra/migrations.py
"""
Schema migrations driven by PRAGMA user_version.

V1: reference data, orders, shipments/boxes, drawers, entity history
V2: global audit log and split lineage on orders
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Settings K/V
    """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT
    );
    """,
    # Exchange rates against the base currency
    """
    CREATE TABLE IF NOT EXISTS currency (
        code TEXT PRIMARY KEY,
        name TEXT,
        rate REAL NOT NULL CHECK (rate > 0)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS client (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        phone TEXT,
        whatsapp_number TEXT,
        address TEXT,
        gender TEXT -- 'male' | 'female'
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS store (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        country TEXT,
        website TEXT,
        estimated_delivery_days INTEGER DEFAULT 0
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS shipping_company (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        origin_country TEXT,
        destination_country TEXT
    );
    """,
    # Shipments and their boxes
    """
    CREATE TABLE IF NOT EXISTS shipment (
        id TEXT PRIMARY KEY,
        shipment_number TEXT NOT NULL UNIQUE,
        number_of_boxes INTEGER NOT NULL CHECK (number_of_boxes >= 1),
        status TEXT NOT NULL,
        shipping_type TEXT NOT NULL,
        country TEXT,
        shipping_company_id TEXT,
        tracking_number TEXT,
        departure_date TEXT,
        expected_arrival_date TEXT,
        total_weight REAL,
        total_shipping_cost REAL,
        FOREIGN KEY (shipping_company_id) REFERENCES shipping_company(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS box (
        id TEXT PRIMARY KEY,
        shipment_id TEXT NOT NULL,
        box_number INTEGER NOT NULL,
        status TEXT NOT NULL, -- 'in_transit' | 'arrived'
        arrival_date TEXT,
        UNIQUE (shipment_id, box_number),
        FOREIGN KEY (shipment_id) REFERENCES shipment(id) ON DELETE CASCADE
    );
    """,
    # Orders (derived money fields are never stored)
    """
    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        local_order_id TEXT NOT NULL UNIQUE COLLATE NOCASE,
        global_order_id TEXT,
        client_id TEXT NOT NULL,
        store_id TEXT NOT NULL,
        price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
        currency TEXT,
        quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
        commission_type TEXT NOT NULL DEFAULT 'percentage',
        commission_rate REAL,
        commission_value REAL,
        amount_paid REAL NOT NULL DEFAULT 0 CHECK (amount_paid >= 0),
        payment_method TEXT,
        shipping_type TEXT NOT NULL DEFAULT 'normal',
        status TEXT NOT NULL,
        order_date TEXT,
        expected_arrival_date TEXT,
        arrival_date_at_office TEXT,
        tracking_number TEXT,
        weight REAL,
        shipping_cost REAL,
        storage_location TEXT,
        storage_date TEXT,
        withdrawal_date TEXT,
        shipment_id TEXT,
        box_id TEXT,
        origin_center TEXT,
        receiving_company_id TEXT,
        notes TEXT,
        CHECK ((shipment_id IS NULL) = (box_id IS NULL)),
        CHECK (storage_location IS NULL OR status = 'stored'),
        FOREIGN KEY (client_id) REFERENCES client(id),
        FOREIGN KEY (store_id) REFERENCES store(id),
        FOREIGN KEY (shipment_id) REFERENCES shipment(id),
        FOREIGN KEY (box_id) REFERENCES box(id),
        FOREIGN KEY (receiving_company_id) REFERENCES shipping_company(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS storage_drawer (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        rows INTEGER,
        columns INTEGER,
        capacity INTEGER NOT NULL CHECK (capacity >= 1)
    );
    """,
    # Append-only history of orders and shipments (order = insertion id)
    """
    CREATE TABLE IF NOT EXISTS history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entity_type TEXT NOT NULL, -- 'order' | 'shipment'
        entity_id TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        activity TEXT NOT NULL,
        user TEXT
    );
    """,
    "CREATE INDEX IF NOT EXISTS ix_history_entity ON history(entity_type, entity_id);",
    "CREATE INDEX IF NOT EXISTS ix_orders_status ON orders(status);",
    "CREATE INDEX IF NOT EXISTS ix_orders_shipment ON orders(shipment_id);",
]

# V2: global audit log and split lineage
SCHEMA_V2: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        user TEXT,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT,
        details TEXT
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Add a column when it is missing (SQLite has no ADD COLUMN IF NOT EXISTS)."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    for sql in SCHEMA_V2:
        conn.executescript(sql)
    _ensure_column(conn, "orders", "split_from", "split_from TEXT")


def apply_migrations(db_path: str) -> None:
    """Apply incremental migrations according to PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
