# reship/infra/repositories.py
"""
Repositories (DAO) over SQLite.

Every repository is bound to an open connection (see `reship.infra.db.connect`)
so that one use case can write orders, boxes, shipments and history rows in a
single transaction.

Classes:
- SettingsRepo
- CurrencyRepo
- ClientRepo / StoreRepo / CompanyRepo
- OrderRepo
- ShipmentRepo
- DrawerRepo
- HistoryRepo
- AuditRepo
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

from reship.config import DEFAULTS
from reship.domain.errors import ValidationError
from reship.domain.models import (
    ActivityLog,
    AppSettings,
    AuditEntry,
    Box,
    BoxStatus,
    Client,
    CommissionType,
    Currency,
    Order,
    OrderStatus,
    Shipment,
    ShipmentStatus,
    ShippingCompany,
    ShippingType,
    StorageDrawer,
    Store,
)


# -------------------------
# Helpers
# -------------------------

def _row_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return dict(zip(row.keys(), row))


def _columns(cls, exclude: Iterable[str] = ()) -> List[str]:
    skip = set(exclude)
    return [f.name for f in fields(cls) if f.name not in skip]


def _plain(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


# -------------------------
# Settings
# -------------------------

# Accepted keys and the kind of value they hold
SETTING_KEYS: Dict[str, str] = {
    "shipping_rate_fast": "float",
    "shipping_rate_normal": "float",
    "commission_rate": "float",
    "commission_type": "str",
    "order_id_prefix": "str",
    "order_id_start": "int",
    "base_currency": "str",
    "default_currency": "str",
    "default_origin_center": "str",
    "default_shipping_type": "str",
    "delivery_days_fast": "range",
    "delivery_days_normal": "range",
    "default_drawer_rows": "int",
    "default_drawer_columns": "int",
    "floor_location": "str",
    "default_language": "str",
    "business_name": "str",
    "template_ar": "template",
    "template_en": "template",
    "template_fr": "template",
}


def parse_range(value: str) -> Tuple[int, int]:
    """'3-5' or '3,5' -> (3, 5)."""
    parts = value.replace(",", "-").split("-")
    low, high = int(parts[0]), int(parts[-1])
    return (min(low, high), max(low, high))


class SettingsRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        items = list(items)
        for key, _ in items:
            if key not in SETTING_KEYS:
                raise ValidationError("UNKNOWN_SETTING", key=key)
        self.conn.executemany(
            """
            INSERT INTO settings (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            items,
        )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row[0] if row else default

    def get_float(self, key: str, default: float) -> float:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return float(v)
        except ValueError:
            return default

    def get_int(self, key: str, default: int) -> int:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return int(float(v))
        except ValueError:
            return default

    def stored(self) -> Dict[str, str]:
        cur = self.conn.execute("SELECT key, value FROM settings ORDER BY key")
        return {k: v for k, v in cur.fetchall()}

    def load(self) -> AppSettings:
        """Effective settings: stored overrides on top of `DEFAULTS`."""
        base = AppSettings.from_defaults(DEFAULTS)
        stored = self.stored()

        def _range(key: str, fallback: Tuple[int, int]) -> Tuple[int, int]:
            try:
                return parse_range(stored[key]) if key in stored else fallback
            except (ValueError, IndexError):
                return fallback

        templates = dict(base.templates)
        for lang in ("ar", "en", "fr"):
            if stored.get(f"template_{lang}"):
                templates[lang] = stored[f"template_{lang}"]

        return AppSettings(
            shipping_rates={
                ShippingType.FAST.value: self.get_float("shipping_rate_fast", DEFAULTS.shipping_rate_fast),
                ShippingType.NORMAL.value: self.get_float("shipping_rate_normal", DEFAULTS.shipping_rate_normal),
            },
            commission_rate=self.get_float("commission_rate", DEFAULTS.commission_rate),
            commission_type=stored.get("commission_type", base.commission_type),
            order_id_prefix=stored.get("order_id_prefix", base.order_id_prefix),
            order_id_start=self.get_int("order_id_start", DEFAULTS.order_id_start),
            base_currency=stored.get("base_currency", base.base_currency).upper(),
            default_currency=stored.get("default_currency", base.default_currency).upper(),
            default_origin_center=stored.get("default_origin_center", base.default_origin_center),
            default_shipping_type=stored.get("default_shipping_type", base.default_shipping_type),
            delivery_days={
                ShippingType.FAST.value: _range("delivery_days_fast", base.delivery_days["fast"]),
                ShippingType.NORMAL.value: _range("delivery_days_normal", base.delivery_days["normal"]),
            },
            default_drawer_rows=self.get_int("default_drawer_rows", DEFAULTS.default_drawer_rows),
            default_drawer_columns=self.get_int("default_drawer_columns", DEFAULTS.default_drawer_columns),
            floor_location=stored.get("floor_location", base.floor_location),
            default_language=stored.get("default_language", base.default_language),
            business_name=stored.get("business_name", base.business_name),
            templates=templates,
        )


# -------------------------
# Currency
# -------------------------

class CurrencyRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def upsert(self, currency: Currency) -> None:
        self.conn.execute(
            """
            INSERT INTO currency (code, name, rate)
            VALUES (:code, :name, :rate)
            ON CONFLICT(code) DO UPDATE SET
                name=COALESCE(excluded.name, currency.name),
                rate=excluded.rate
            """,
            {"code": currency.code.upper(), "name": currency.name, "rate": currency.rate},
        )

    def rates(self) -> Dict[str, float]:
        cur = self.conn.execute("SELECT code, rate FROM currency")
        return {code.upper(): float(rate) for code, rate in cur.fetchall()}

    def get_all(self) -> List[Currency]:
        cur = self.conn.execute("SELECT code, rate, name FROM currency ORDER BY code")
        return [Currency(code=r["code"], rate=r["rate"], name=r["name"]) for r in cur.fetchall()]


# -------------------------
# Reference data
# -------------------------

class _SimpleRepo:
    """Insert/get for the small reference tables."""
    table = ""
    model = None

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, entity) -> None:
        cols = _columns(self.model)
        self.conn.execute(
            f"INSERT INTO {self.table} ({','.join(cols)}) VALUES ({','.join(':' + c for c in cols)})",
            asdict(entity),
        )

    def get(self, entity_id: Optional[str]):
        if not entity_id:
            return None
        cols = _columns(self.model)
        row = self.conn.execute(
            f"SELECT {','.join(cols)} FROM {self.table} WHERE id = ?", (entity_id,)
        ).fetchone()
        return self.model(**_row_dict(row)) if row else None

    def exists(self, entity_id: Optional[str]) -> bool:
        if not entity_id:
            return False
        row = self.conn.execute(f"SELECT 1 FROM {self.table} WHERE id = ?", (entity_id,)).fetchone()
        return row is not None

    def get_all(self) -> List[Any]:
        cols = _columns(self.model)
        cur = self.conn.execute(f"SELECT {','.join(cols)} FROM {self.table} ORDER BY name")
        return [self.model(**_row_dict(r)) for r in cur.fetchall()]


class ClientRepo(_SimpleRepo):
    table = "client"
    model = Client


class StoreRepo(_SimpleRepo):
    table = "store"
    model = Store


class CompanyRepo(_SimpleRepo):
    table = "shipping_company"
    model = ShippingCompany


# -------------------------
# History / Audit
# -------------------------

class HistoryRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def append(self, entity_type: str, entity_id: str, entry: ActivityLog) -> None:
        self.conn.execute(
            """
            INSERT INTO history (entity_type, entity_id, timestamp, activity, user)
            VALUES (?, ?, ?, ?, ?)
            """,
            (entity_type, entity_id, entry.timestamp, entry.activity, entry.user),
        )

    def for_entity(self, entity_type: str, entity_id: str) -> List[ActivityLog]:
        cur = self.conn.execute(
            """
            SELECT timestamp, activity, user FROM history
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY id
            """,
            (entity_type, entity_id),
        )
        return [ActivityLog(timestamp=r["timestamp"], activity=r["activity"], user=r["user"]) for r in cur.fetchall()]


class AuditRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, entry: AuditEntry) -> None:
        self.conn.execute(
            """
            INSERT INTO audit_log (timestamp, user, action, entity_type, entity_id, details)
            VALUES (:timestamp, :user, :action, :entity_type, :entity_id, :details)
            """,
            {k: v for k, v in asdict(entry).items() if k != "id"},
        )

    def recent(self, limit: int = 50) -> List[AuditEntry]:
        cur = self.conn.execute(
            """
            SELECT id, timestamp, user, action, entity_type, entity_id, details
            FROM audit_log ORDER BY id DESC LIMIT ?
            """,
            (limit,),
        )
        return [AuditEntry(**_row_dict(r)) for r in cur.fetchall()]


# -------------------------
# Orders
# -------------------------

_ORDER_COLS = _columns(Order, exclude=("history",))


def _order_from_row(row: sqlite3.Row) -> Order:
    d = _row_dict(row)
    d["status"] = OrderStatus(d["status"])
    d["shipping_type"] = ShippingType(d["shipping_type"])
    d["commission_type"] = CommissionType(d["commission_type"])
    return Order(**d)


class OrderRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, order: Order) -> None:
        row = {c: _plain(getattr(order, c)) for c in _ORDER_COLS}
        self.conn.execute(
            f"INSERT INTO orders ({','.join(_ORDER_COLS)}) VALUES ({','.join(':' + c for c in _ORDER_COLS)})",
            row,
        )

    def update(self, order: Order) -> None:
        """Write back every column (last writer wins at field level)."""
        row = {c: _plain(getattr(order, c)) for c in _ORDER_COLS}
        sets = ",".join(f"{c}=:{c}" for c in _ORDER_COLS if c != "id")
        self.conn.execute(f"UPDATE orders SET {sets} WHERE id = :id", row)

    def _select(self, where: str = "", params: Tuple = (), order_by: str = "local_order_id") -> List[Order]:
        sql = f"SELECT {','.join(_ORDER_COLS)} FROM orders"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order_by}"
        return [_order_from_row(r) for r in self.conn.execute(sql, params).fetchall()]

    def get(self, order_id: str, with_history: bool = False) -> Optional[Order]:
        found = self._select("id = ?", (order_id,))
        if not found:
            return None
        order = found[0]
        if with_history:
            order.history = HistoryRepo(self.conn).for_entity("order", order.id)
        return order

    def get_by_local_id(self, local_order_id: str) -> Optional[Order]:
        found = self._select("local_order_id = ? COLLATE NOCASE", (local_order_id,))
        return found[0] if found else None

    def resolve(self, ref: str) -> Optional[Order]:
        """Find an order by internal id or by its human-facing id."""
        return self.get(ref) or self.get_by_local_id(ref)

    def get_all(self) -> List[Order]:
        return self._select()

    def by_status(self, *statuses: OrderStatus) -> List[Order]:
        marks = ",".join("?" for _ in statuses)
        return self._select(f"status IN ({marks})", tuple(_plain(s) for s in statuses))

    def by_shipment(self, shipment_id: str) -> List[Order]:
        return self._select("shipment_id = ?", (shipment_id,))

    def by_box(self, box_id: str) -> List[Order]:
        return self._select("box_id = ?", (box_id,))

    def by_client(self, client_id: str) -> List[Order]:
        return self._select("client_id = ?", (client_id,))

    def count_by_client(self, client_id: str) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM orders WHERE client_id = ?", (client_id,)).fetchone()
        return int(row[0])

    def local_ids(self) -> List[str]:
        return [r[0] for r in self.conn.execute("SELECT local_order_id FROM orders").fetchall()]

    def stored_in_drawer(self, drawer_name: str) -> List[Order]:
        return self._select(
            "status = 'stored' AND substr(storage_location, 1, ?) = ?",
            (len(drawer_name) + 1, f"{drawer_name}-"),
        )


# -------------------------
# Shipments / Boxes
# -------------------------

_SHIPMENT_COLS = _columns(Shipment, exclude=("boxes", "history"))
_BOX_COLS = _columns(Box)


def _shipment_from_row(row: sqlite3.Row) -> Shipment:
    d = _row_dict(row)
    d["status"] = ShipmentStatus(d["status"])
    d["shipping_type"] = ShippingType(d["shipping_type"])
    return Shipment(**d)


def _box_from_row(row: sqlite3.Row) -> Box:
    d = _row_dict(row)
    d["status"] = BoxStatus(d["status"])
    return Box(**d)


class ShipmentRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, shipment: Shipment) -> None:
        row = {c: _plain(getattr(shipment, c)) for c in _SHIPMENT_COLS}
        self.conn.execute(
            f"INSERT INTO shipment ({','.join(_SHIPMENT_COLS)}) VALUES ({','.join(':' + c for c in _SHIPMENT_COLS)})",
            row,
        )
        for b in shipment.boxes:
            self.insert_box(b)

    def update(self, shipment: Shipment) -> None:
        row = {c: _plain(getattr(shipment, c)) for c in _SHIPMENT_COLS}
        sets = ",".join(f"{c}=:{c}" for c in _SHIPMENT_COLS if c != "id")
        self.conn.execute(f"UPDATE shipment SET {sets} WHERE id = :id", row)

    def insert_box(self, box: Box) -> None:
        row = {c: _plain(getattr(box, c)) for c in _BOX_COLS}
        self.conn.execute(
            f"INSERT INTO box ({','.join(_BOX_COLS)}) VALUES ({','.join(':' + c for c in _BOX_COLS)})",
            row,
        )

    def update_box(self, box: Box) -> None:
        self.conn.execute(
            "UPDATE box SET status = ?, arrival_date = ? WHERE id = ?",
            (_plain(box.status), box.arrival_date, box.id),
        )

    def delete_boxes(self, box_ids: Iterable[str]) -> int:
        ids = list(box_ids)
        if not ids:
            return 0
        marks = ",".join("?" for _ in ids)
        cur = self.conn.execute(f"DELETE FROM box WHERE id IN ({marks})", tuple(ids))
        return cur.rowcount

    def boxes(self, shipment_id: str) -> List[Box]:
        cur = self.conn.execute(
            f"SELECT {','.join(_BOX_COLS)} FROM box WHERE shipment_id = ? ORDER BY box_number",
            (shipment_id,),
        )
        return [_box_from_row(r) for r in cur.fetchall()]

    def get(self, shipment_id: str, with_history: bool = False) -> Optional[Shipment]:
        row = self.conn.execute(
            f"SELECT {','.join(_SHIPMENT_COLS)} FROM shipment WHERE id = ?", (shipment_id,)
        ).fetchone()
        if row is None:
            return None
        shipment = _shipment_from_row(row)
        shipment.boxes = self.boxes(shipment.id)
        if with_history:
            shipment.history = HistoryRepo(self.conn).for_entity("shipment", shipment.id)
        return shipment

    def get_by_number(self, shipment_number: str) -> Optional[Shipment]:
        row = self.conn.execute(
            "SELECT id FROM shipment WHERE shipment_number = ?", (shipment_number,)
        ).fetchone()
        return self.get(row[0]) if row else None

    def resolve(self, ref: str) -> Optional[Shipment]:
        return self.get(ref) or self.get_by_number(ref)

    def get_all(self) -> List[Shipment]:
        cur = self.conn.execute("SELECT id FROM shipment ORDER BY shipment_number")
        return [self.get(r[0]) for r in cur.fetchall()]

    def by_status(self, *statuses: ShipmentStatus) -> List[Shipment]:
        marks = ",".join("?" for _ in statuses)
        cur = self.conn.execute(
            f"SELECT id FROM shipment WHERE status IN ({marks}) ORDER BY shipment_number",
            tuple(_plain(s) for s in statuses),
        )
        return [self.get(r[0]) for r in cur.fetchall()]


# -------------------------
# Drawers
# -------------------------

class DrawerRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def insert(self, drawer: StorageDrawer) -> None:
        self.conn.execute(
            """
            INSERT INTO storage_drawer (id, name, rows, columns, capacity)
            VALUES (:id, :name, :rows, :columns, :capacity)
            """,
            asdict(drawer),
        )

    def delete(self, drawer_id: str) -> None:
        self.conn.execute("DELETE FROM storage_drawer WHERE id = ?", (drawer_id,))

    def get_by_name(self, name: str) -> Optional[StorageDrawer]:
        row = self.conn.execute(
            "SELECT id, name, capacity, rows, columns FROM storage_drawer WHERE name = ?", (name,)
        ).fetchone()
        return StorageDrawer(**_row_dict(row)) if row else None

    def get_all(self) -> List[StorageDrawer]:
        cur = self.conn.execute("SELECT id, name, capacity, rows, columns FROM storage_drawer ORDER BY name")
        return [StorageDrawer(**_row_dict(r)) for r in cur.fetchall()]

    def occupancy(self) -> List[Dict[str, Any]]:
        cur = self.conn.execute(
            "SELECT name, rows, columns, capacity, stored_orders, used_slots FROM vw_drawer_occupancy ORDER BY name"
        )
        return [_row_dict(r) for r in cur.fetchall()]
