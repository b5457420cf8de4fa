# reship/domain/lifecycle.py
"""
Status rules for Orders, Shipments and Boxes.

Pure functions only: they inspect entities and either return the next state or
raise `LifecycleError`. Writing the result is the job of the use cases, which
apply every change of one operation inside a single transaction.

Order flow:

    new -> ordered -> shipped_from_store -> arrived_at_hub        (manual)
        -> in_transit          (shipment confirmed shipped)
        -> arrived_at_office   (box confirmed arrived)
        -> stored              (storage confirmed)
        -> completed           (delivery confirmed)

    any status except completed -> cancelled

Shipment flow:

    new -> shipped -> partially_arrived -> arrived -> received
                  \\-> delayed (past expected arrival, no box arrived yet)
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from reship.domain.errors import LifecycleError
from reship.domain.models import (
    ActivityLog,
    Box,
    BoxStatus,
    Order,
    OrderStatus,
    Shipment,
    ShipmentStatus,
)


ORDER_FLOW: List[OrderStatus] = [
    OrderStatus.NEW,
    OrderStatus.ORDERED,
    OrderStatus.SHIPPED_FROM_STORE,
    OrderStatus.ARRIVED_AT_HUB,
    OrderStatus.IN_TRANSIT,
    OrderStatus.ARRIVED_AT_OFFICE,
    OrderStatus.STORED,
    OrderStatus.COMPLETED,
]

# Statuses the operator sets by hand; the rest follow shipment/storage/delivery events
MANUAL_TARGETS = {
    OrderStatus.ORDERED,
    OrderStatus.SHIPPED_FROM_STORE,
    OrderStatus.ARRIVED_AT_HUB,
}

EVENT_TRIGGERS: Dict[OrderStatus, str] = {
    OrderStatus.IN_TRANSIT: "shipment confirm-ship",
    OrderStatus.ARRIVED_AT_OFFICE: "box arrival confirmation",
    OrderStatus.STORED: "storage confirmation",
    OrderStatus.COMPLETED: "delivery confirmation",
}

# Statuses that can step back by one (stored releases its slot)
REVERTIBLE = {
    OrderStatus.ORDERED,
    OrderStatus.SHIPPED_FROM_STORE,
    OrderStatus.ARRIVED_AT_HUB,
    OrderStatus.STORED,
}

STATUS_LABELS: Dict[str, str] = {
    OrderStatus.NEW: "New",
    OrderStatus.ORDERED: "Ordered",
    OrderStatus.SHIPPED_FROM_STORE: "Shipped from Store",
    OrderStatus.ARRIVED_AT_HUB: "Arrived at Hub",
    OrderStatus.IN_TRANSIT: "In Transit",
    OrderStatus.ARRIVED_AT_OFFICE: "Arrived at Office",
    OrderStatus.STORED: "Stored",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
    ShipmentStatus.SHIPPED: "Shipped",
    ShipmentStatus.PARTIALLY_ARRIVED: "Partially Arrived",
    ShipmentStatus.ARRIVED: "Arrived",
    ShipmentStatus.RECEIVED: "Received",
    ShipmentStatus.DELAYED: "Delayed",
}


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def today_iso() -> str:
    return datetime.now().date().isoformat()


def history_entry(activity: str, user: str, timestamp: Optional[str] = None) -> ActivityLog:
    return ActivityLog(timestamp=timestamp or now_iso(), activity=activity, user=user)


def label(status) -> str:
    return STATUS_LABELS.get(status, str(getattr(status, "value", status)))


# -----------------------
# Order
# -----------------------

def next_order_status(status: OrderStatus) -> Optional[OrderStatus]:
    """Next step on the flow, or None for completed/cancelled."""
    if status not in ORDER_FLOW:
        return None
    idx = ORDER_FLOW.index(status)
    return ORDER_FLOW[idx + 1] if idx + 1 < len(ORDER_FLOW) else None


def previous_order_status(status: OrderStatus) -> Optional[OrderStatus]:
    if status not in ORDER_FLOW:
        return None
    idx = ORDER_FLOW.index(status)
    return ORDER_FLOW[idx - 1] if idx > 0 else None


def check_order_transition(order: Order, target: OrderStatus) -> None:
    """
    Raise `LifecycleError` unless `order` may move to `target`.

    Cancellation is legal from every status except completed (and cancelled,
    which is terminal). Every other move must be exactly one step forward.
    """
    current = OrderStatus(order.status)
    if current in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        raise LifecycleError("ORDER_CLOSED", order=order.local_order_id, status=current.value)
    if target == OrderStatus.CANCELLED:
        return
    if next_order_status(current) != target:
        raise LifecycleError(
            "INVALID_TRANSITION",
            entity=f"order {order.local_order_id}",
            current=current.value,
            target=OrderStatus(target).value,
        )


def manual_advance_target(order: Order) -> OrderStatus:
    """Target of a manual one-step advance, refusing event-driven steps."""
    current = OrderStatus(order.status)
    if current in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        raise LifecycleError("ORDER_CLOSED", order=order.local_order_id, status=current.value)
    target = next_order_status(current)
    if target not in MANUAL_TARGETS:
        raise LifecycleError(
            "TRANSITION_NOT_MANUAL",
            target=target.value,
            trigger=EVENT_TRIGGERS[target],
        )
    return target


def revert_target(order: Order) -> OrderStatus:
    """Target of a one-step revert."""
    current = OrderStatus(order.status)
    if current not in REVERTIBLE:
        raise LifecycleError("CANNOT_REVERT", current=current.value)
    if current == OrderStatus.ARRIVED_AT_HUB and order.shipment_id:
        raise LifecycleError("ORDER_IN_SHIPMENT", order=order.local_order_id, shipment=order.shipment_id)
    return previous_order_status(current)


# -----------------------
# Shipment / Box
# -----------------------

def arrived_count(boxes: Iterable[Box]) -> int:
    return sum(1 for b in boxes if BoxStatus(b.status) == BoxStatus.ARRIVED)


def derive_shipment_status(current: ShipmentStatus, boxes: List[Box]) -> ShipmentStatus:
    """
    Shipment status as a function of its boxes.

    `new` and `received` are set by operator actions and are kept as is.
    Otherwise: every box arrived -> arrived; some -> partially_arrived;
    none -> the current shipped/delayed value. Calling it twice on the same
    boxes gives the same answer.
    """
    current = ShipmentStatus(current)
    if current in (ShipmentStatus.NEW, ShipmentStatus.RECEIVED):
        return current
    total = len(boxes)
    arrived = arrived_count(boxes)
    if total and arrived == total:
        return ShipmentStatus.ARRIVED
    if arrived > 0:
        return ShipmentStatus.PARTIALLY_ARRIVED
    if current == ShipmentStatus.DELAYED:
        return ShipmentStatus.DELAYED
    return ShipmentStatus.SHIPPED


def check_shipment_editable(shipment: Shipment) -> None:
    if ShipmentStatus(shipment.status) != ShipmentStatus.NEW:
        raise LifecycleError(
            "SHIPMENT_NOT_EDITABLE",
            shipment=shipment.shipment_number,
            status=ShipmentStatus(shipment.status).value,
        )


def check_box_can_arrive(shipment: Shipment, box: Box) -> None:
    status = ShipmentStatus(shipment.status)
    if status not in (ShipmentStatus.SHIPPED, ShipmentStatus.PARTIALLY_ARRIVED, ShipmentStatus.DELAYED):
        raise LifecycleError("SHIPMENT_NOT_IN_TRANSIT", shipment=shipment.shipment_number, status=status.value)
    if BoxStatus(box.status) == BoxStatus.ARRIVED:
        raise LifecycleError("BOX_ALREADY_ARRIVED", box=box.box_number, shipment=shipment.shipment_number)


def check_can_receive(shipment: Shipment, linked_orders: List[Order], force: bool = False) -> int:
    """
    Gate for `arrived -> received`. Returns the number of unfinished orders
    (non-zero only when `force` overrides the block).
    """
    status = ShipmentStatus(shipment.status)
    if status != ShipmentStatus.ARRIVED:
        raise LifecycleError("SHIPMENT_NOT_ARRIVED", shipment=shipment.shipment_number, status=status.value)
    pending = sum(1 for o in linked_orders if OrderStatus(o.status) != OrderStatus.COMPLETED)
    if pending and not force:
        raise LifecycleError("ORDERS_NOT_COMPLETED", pending=pending, shipment=shipment.shipment_number)
    return pending


def shipment_eligibility(order: Order, shipment: Shipment) -> Optional[str]:
    """Reason why `order` cannot be linked to `shipment`, or None when it can."""
    if OrderStatus(order.status) != OrderStatus.ARRIVED_AT_HUB:
        return f"status is {OrderStatus(order.status).value}"
    if order.shipment_id and order.shipment_id != shipment.id:
        return "already linked to another shipment"
    if order.origin_center != shipment.country:
        return f"origin {order.origin_center} differs from shipment country {shipment.country}"
    if order.shipping_type != shipment.shipping_type:
        return "shipping type differs"
    if order.receiving_company_id != shipment.shipping_company_id:
        return "receiving company differs"
    return None


def office_arrival_pending(order: Order) -> bool:
    """True for orders in an arrived box that have not reached the office yet."""
    status = OrderStatus(order.status)
    if status == OrderStatus.CANCELLED:
        return False
    return ORDER_FLOW.index(status) < ORDER_FLOW.index(OrderStatus.ARRIVED_AT_OFFICE)
