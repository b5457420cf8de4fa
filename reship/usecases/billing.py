# reship/usecases/billing.py
"""
UC: billing views over the financial aggregator.

- order_financials:  figures of one order (logs missing exchange rates)
- billing_report:    per-order grand total / paid / remaining + global stats
- client_balance:    what one client still owes
"""
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Mapping

from reship.config import DB_PATH
from reship.domain.errors import MissingReferenceError
from reship.domain.finance import OrderFinancials, billing_stats, compute_financials, settlement_totals
from reship.domain.models import AppSettings, Order, OrderStatus
from reship.infra.db import connect
from reship.infra.logger import log_system_event
from reship.infra.repositories import ClientRepo, CurrencyRepo, OrderRepo, SettingsRepo

# Orders that take part in billing
_BILLABLE_EXCLUDED = (OrderStatus.NEW, OrderStatus.CANCELLED)


def financials_of(order: Order, rates: Mapping[str, float], settings: AppSettings) -> OrderFinancials:
    """`compute_financials` plus a warning line for every data-quality issue."""
    fin = compute_financials(order, rates, settings)
    for issue in fin.issues:
        log_system_event(
            "data_quality",
            {"order": order.local_order_id, "issue": issue},
            level="warning",
        )
    return fin


def load_financials(conn: sqlite3.Connection, orders: List[Order]) -> Dict[str, OrderFinancials]:
    settings = SettingsRepo(conn).load()
    rates = CurrencyRepo(conn).rates()
    return {o.id: financials_of(o, rates, settings) for o in orders}


def order_financials(order_ref: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    with connect(db_path) as c:
        order = OrderRepo(c).resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        fin = load_financials(c, [order])[order.id]
    return {"order": order.local_order_id, **fin.as_dict()}


def billing_report(db_path: str = DB_PATH) -> Dict[str, Any]:
    """
    Billing over every order except new and cancelled ones.

    Returns:
        {"orders": [...one row per order...], "stats": {...}}
    """
    log_system_event("billing_report_start")
    with connect(db_path) as c:
        orders = [o for o in OrderRepo(c).get_all() if OrderStatus(o.status) not in _BILLABLE_EXCLUDED]
        fins = load_financials(c, orders)
        clients = {cl.id: cl.name for cl in ClientRepo(c).get_all()}

    rows = []
    for o in orders:
        f = fins[o.id]
        rows.append({
            "order": o.local_order_id,
            "client": clients.get(o.client_id, "N/A"),
            "status": OrderStatus(o.status).value,
            "product_total": f.product_total,
            "shipping_cost": f.shipping_cost,
            "grand_total": f.grand_total,
            "paid": f.amount_paid,
            "remaining": f.balance,
            "payment_status": f.payment_status,
            "issues": "; ".join(f.issues),
        })
    stats = billing_stats(fins.values())
    log_system_event("billing_report_success", {"orders": len(rows)})
    return {"orders": rows, "stats": stats}


def client_balance(client_id: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Outstanding amounts of one client over its orders that are not cancelled."""
    with connect(db_path) as c:
        client = ClientRepo(c).get(client_id)
        if client is None:
            raise MissingReferenceError("CLIENT_NOT_FOUND", client=client_id)
        orders = [o for o in OrderRepo(c).by_client(client_id) if OrderStatus(o.status) != OrderStatus.CANCELLED]
        fins = load_financials(c, orders)

    totals = settlement_totals(fins.values())
    return {
        "client": client.name,
        **totals,
        "incomplete": sum(1 for f in fins.values() if not f.complete),
    }
