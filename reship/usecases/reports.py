# reship/usecases/reports.py
"""
Read-only reports.

- late_orders, storage_occupancy, shipments_overview, orders_overview, audit_trail
  (the `rel` CLI group)
- billing lives in `reship.usecases.billing`.

The SQL views from `reship.infra.views` must exist (run `migrate`).
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from reship.config import DB_PATH
from reship.domain import lifecycle
from reship.domain.models import OrderStatus, ShipmentStatus
from reship.domain.policies import is_late_order
from reship.infra.db import connect
from reship.infra.logger import log_system_event
from reship.infra.repositories import AuditRepo, ClientRepo, DrawerRepo, OrderRepo, ShipmentRepo


def late_orders(today: Optional[date] = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Open orders whose expected arrival date has passed, oldest first."""
    today = today or date.today()
    with connect(db_path) as c:
        orders = [o for o in OrderRepo(c).get_all() if is_late_order(o, today)]
        clients = {cl.id: cl.name for cl in ClientRepo(c).get_all()}
    rows = []
    for o in orders:
        expected = date.fromisoformat(o.expected_arrival_date[:10])
        rows.append({
            "order": o.local_order_id,
            "client": clients.get(o.client_id, "N/A"),
            "status": OrderStatus(o.status).value,
            "expected": expected.isoformat(),
            "days_late": (today - expected).days,
        })
    rows.sort(key=lambda r: (-r["days_late"], r["order"]))
    log_system_event("late_orders_report", {"count": len(rows)})
    return rows


def storage_occupancy(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Stored orders and used slots per drawer (view vw_drawer_occupancy)."""
    with connect(db_path) as c:
        rows = DrawerRepo(c).occupancy()
    for r in rows:
        cap = r["capacity"] or 0
        r["fill_pct"] = round(r["stored_orders"] / cap * 100) if cap else 0
        r["full"] = bool(cap) and r["stored_orders"] >= cap
    return rows


def shipments_overview(status: Optional[str] = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        repo = ShipmentRepo(c)
        shipments = repo.by_status(ShipmentStatus(status)) if status else repo.get_all()
        counts = {s.id: len(OrderRepo(c).by_shipment(s.id)) for s in shipments}
    return [
        {
            "shipment": s.shipment_number,
            "status": ShipmentStatus(s.status).value,
            "boxes": f"{lifecycle.arrived_count(s.boxes)}/{s.number_of_boxes}",
            "orders": counts[s.id],
            "tracking": s.tracking_number or "",
            "departure": s.departure_date or "",
            "expected": s.expected_arrival_date or "",
        }
        for s in shipments
    ]


def orders_overview(status: Optional[str] = None, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Orders with client/store/shipment names (view vw_order_overview)."""
    sql = """
        SELECT local_order_id AS "order", status, client_name AS client, store_name AS store,
               shipment_number AS shipment, box_number AS box, storage_location AS location,
               expected_arrival_date AS expected
        FROM vw_order_overview
    """
    params: tuple = ()
    if status:
        sql += " WHERE status = ?"
        params = (OrderStatus(status).value,)
    sql += " ORDER BY local_order_id"
    with connect(db_path) as c:
        cur = c.execute(sql, params)
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r)) for r in cur.fetchall()]


def audit_trail(limit: int = 50, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        entries = AuditRepo(c).recent(limit)
    return [
        {
            "timestamp": e.timestamp,
            "user": e.user,
            "action": e.action,
            "entity": e.entity_type,
            "details": e.details or "",
        }
        for e in entries
    ]
