# reship/usecases/delivery.py
"""
UC: handing stored orders over to their client (stored -> completed).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from reship.config import DB_PATH
from reship.domain.errors import LifecycleError, MissingReferenceError, ValidationError
from reship.domain.finance import require_complete, settlement_totals
from reship.domain.lifecycle import check_order_transition, now_iso
from reship.domain.models import OrderStatus
from reship.infra.db import connect
from reship.infra.logger import log_order
from reship.infra.repositories import ClientRepo, OrderRepo
from reship.usecases.billing import load_financials
from reship.usecases.journal import DEFAULT_USER, audit, logged, record_order


@logged("confirm_delivery")
def confirm_delivery(
    client_id: str,
    order_refs: List[str],
    note: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Deliver a client's stored orders.

    Every selected order must belong to the client and be stored, and its
    totals must rest on configured exchange rates. Delivered orders release
    their slot and get a withdrawal date.

    Returns:
        The settlement: product remaining, shipping and total due over the
        delivered orders.
    """
    refs = [r for r in (order_refs or []) if r]
    if not refs:
        raise ValidationError("NO_ORDERS_SELECTED")

    with connect(db_path) as c:
        client = ClientRepo(c).get(client_id)
        if client is None:
            raise MissingReferenceError("CLIENT_NOT_FOUND", client=client_id)
        repo = OrderRepo(c)

        orders = []
        for ref in refs:
            order = repo.resolve(ref)
            if order is None:
                raise MissingReferenceError("ORDER_NOT_FOUND", order=ref)
            if order.client_id != client.id:
                raise ValidationError("ORDER_OF_OTHER_CLIENT", order=order.local_order_id, client=client.name)
            if OrderStatus(order.status) != OrderStatus.STORED:
                raise LifecycleError("ORDER_NOT_STORED", order=order.local_order_id, status=OrderStatus(order.status).value)
            check_order_transition(order, OrderStatus.COMPLETED)
            orders.append(order)

        fins = load_financials(c, orders)
        for order in orders:
            require_complete(order, fins[order.id])

        when = now_iso()
        for order in orders:
            released = order.storage_location
            order.status = OrderStatus.COMPLETED
            order.withdrawal_date = when
            order.storage_location = None
            repo.update(order)
            text = f"Delivered to client (from {released})"
            if note:
                text += f" | {note}"
            record_order(c, order, text, user)
        audit(
            c, user, "delivery", "client", client.id,
            f"Delivered {len(orders)} orders to {client.name}",
        )

    for order in orders:
        log_order("deliver", order.local_order_id, OrderStatus.COMPLETED.value, client=client.name)
    return {
        "client": client.name,
        "delivered": [o.local_order_id for o in orders],
        **settlement_totals(fins[o.id] for o in orders),
    }


def deliverable_orders(client_id: str, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Stored orders of a client with what is still due on each."""
    with connect(db_path) as c:
        if not ClientRepo(c).exists(client_id):
            raise MissingReferenceError("CLIENT_NOT_FOUND", client=client_id)
        orders = [o for o in OrderRepo(c).by_client(client_id) if OrderStatus(o.status) == OrderStatus.STORED]
        fins = load_financials(c, orders)
    return [
        {
            "order": o.local_order_id,
            "location": o.storage_location,
            "weight": o.weight,
            "total_due": fins[o.id].total_due,
            "complete": fins[o.id].complete,
        }
        for o in orders
    ]
