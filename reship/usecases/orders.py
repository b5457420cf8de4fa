# reship/usecases/orders.py
"""
UC: order lifecycle operations driven by the operator.

- create_order      -> new order with the next human-facing id
- assign_tracking   -> tracking number (new -> ordered)
- advance_order     -> one manual step (ordered, shipped_from_store, arrived_at_hub)
- revert_order      -> one step back
- cancel_order      -> cancelled, with a reason
- split_order       -> move some units of a new order into a new order

Transitions set by shipment, storage or delivery events live in their own
use case modules.
"""
from __future__ import annotations

import sqlite3
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from reship.config import DB_PATH
from reship.domain import lifecycle
from reship.domain.errors import LifecycleError, MissingReferenceError, ValidationError
from reship.domain.models import CommissionType, Order, OrderStatus, Shipment, ShipmentStatus, ShippingType
from reship.domain.policies import expected_arrival_date, next_local_order_id, split_order_id
from reship.infra.db import connect, new_id
from reship.infra.logger import log_order
from reship.infra.repositories import (
    ClientRepo,
    CompanyRepo,
    CurrencyRepo,
    OrderRepo,
    SettingsRepo,
    ShipmentRepo,
    StoreRepo,
)
from reship.usecases.billing import financials_of
from reship.usecases.journal import DEFAULT_USER, audit, logged, record_order


def _get_order(conn: sqlite3.Connection, order_ref: str) -> Order:
    order = OrderRepo(conn).resolve(order_ref)
    if order is None:
        raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
    order.history = []
    return order


def order_summary(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "local_order_id": order.local_order_id,
        "status": OrderStatus(order.status).value,
        "tracking_number": order.tracking_number,
        "shipment_id": order.shipment_id,
        "box_id": order.box_id,
        "storage_location": order.storage_location,
        "weight": order.weight,
        "shipping_cost": order.shipping_cost,
    }


def _shipping_type(value: Optional[str], default: str) -> ShippingType:
    raw = value or default
    try:
        return ShippingType(raw)
    except ValueError:
        raise ValidationError("INVALID_SHIPPING_TYPE", shipping_type=raw) from None


def _commission_type(value: Optional[str], default: str) -> CommissionType:
    raw = value or default
    try:
        return CommissionType(raw)
    except ValueError:
        raise ValidationError("INVALID_COMMISSION_TYPE", commission_type=raw) from None


@logged("create_order")
def create_order(
    client_id: str,
    store_id: str,
    price: float,
    currency: Optional[str] = None,
    quantity: int = 1,
    commission_type: Optional[str] = None,
    commission_rate: Optional[float] = None,
    commission_value: Optional[float] = None,
    amount_paid: float = 0.0,
    payment_method: Optional[str] = None,
    shipping_type: Optional[str] = None,
    local_order_id: Optional[str] = None,
    global_order_id: Optional[str] = None,
    order_date: Optional[str] = None,
    expected_arrival: Optional[str] = None,
    notes: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Validate the input and insert a `new` order."""
    if quantity is None or quantity < 1:
        raise ValidationError("INVALID_QUANTITY", quantity=quantity)
    if price is None or price < 0:
        raise ValidationError("INVALID_AMOUNT", field="price", value=price)
    if amount_paid is None or amount_paid < 0:
        raise ValidationError("INVALID_AMOUNT", field="amount_paid", value=amount_paid)

    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        repo = OrderRepo(c)

        if not ClientRepo(c).exists(client_id):
            raise MissingReferenceError("CLIENT_NOT_FOUND", client=client_id)
        store = StoreRepo(c).get(store_id)
        if store is None:
            raise MissingReferenceError("STORE_NOT_FOUND", store=store_id)

        stype = _shipping_type(shipping_type, settings.default_shipping_type)
        ctype = _commission_type(commission_type, settings.commission_type)
        if ctype == CommissionType.FIXED:
            if commission_value is None or commission_value < 0:
                raise ValidationError("INVALID_AMOUNT", field="commission_value", value=commission_value)
            rate = None
        else:
            rate = settings.commission_rate if commission_rate is None else commission_rate
            if rate < 0:
                raise ValidationError("INVALID_AMOUNT", field="commission_rate", value=rate)
            commission_value = None

        if local_order_id and local_order_id.strip():
            local_order_id = local_order_id.strip()
            if repo.get_by_local_id(local_order_id) is not None:
                raise ValidationError("DUPLICATE_ORDER_ID", local_order_id=local_order_id)
        else:
            local_order_id = next_local_order_id(repo.local_ids(), settings.order_id_prefix, settings.order_id_start)

        placed = date.fromisoformat(order_date[:10]) if order_date else date.today()
        expected = expected_arrival or expected_arrival_date(
            placed, store.estimated_delivery_days, stype.value, settings
        ).isoformat()

        order = Order(
            id=new_id(),
            local_order_id=local_order_id,
            client_id=client_id,
            store_id=store_id,
            price=float(price),
            currency=(currency or settings.default_currency).upper(),
            quantity=int(quantity),
            commission_type=ctype,
            commission_rate=rate,
            commission_value=commission_value,
            amount_paid=float(amount_paid),
            payment_method=payment_method,
            shipping_type=stype,
            status=OrderStatus.NEW,
            global_order_id=global_order_id,
            order_date=placed.isoformat(),
            expected_arrival_date=expected,
            notes=notes,
        )
        repo.insert(order)
        record_order(c, order, "Order Created", user)
        audit(c, user, "order_created", "order", order.id, order.local_order_id)
        fin = financials_of(order, CurrencyRepo(c).rates(), settings)

    log_order("create", order.local_order_id, order.status.value, client=client_id)
    return {**order_summary(order), "financials": fin.as_dict()}


@logged("assign_tracking")
def assign_tracking(
    order_ref: str,
    tracking_number: str,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Set the store tracking number; a `new` order becomes `ordered`."""
    tracking_number = (tracking_number or "").strip()
    if not tracking_number:
        raise ValidationError("FIELD_REQUIRED", field="tracking_number")
    with connect(db_path) as c:
        order = _get_order(c, order_ref)
        if OrderStatus(order.status) in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            raise LifecycleError("ORDER_CLOSED", order=order.local_order_id, status=order.status.value)
        order.tracking_number = tracking_number
        if OrderStatus(order.status) == OrderStatus.NEW:
            lifecycle.check_order_transition(order, OrderStatus.ORDERED)
            order.status = OrderStatus.ORDERED
            text = f"Updated status to: {lifecycle.label(OrderStatus.ORDERED)} | Tracking: {tracking_number}"
        else:
            text = f"Tracking number set: {tracking_number}"
        OrderRepo(c).update(order)
        record_order(c, order, text, user)
        audit(c, user, "order_tracking", "order", order.id, text)
    log_order("tracking", order.local_order_id, order.status.value, tracking=tracking_number)
    return order_summary(order)


@logged("advance_order")
def advance_order(
    order_ref: str,
    origin_center: Optional[str] = None,
    receiving_company_id: Optional[str] = None,
    tracking_number: Optional[str] = None,
    global_order_id: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    One manual step forward.

    Arrival at the hub stamps the origin center (default from settings) and
    the receiving company; both are matched when a shipment claims the order.
    """
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        order = _get_order(c, order_ref)
        target = lifecycle.manual_advance_target(order)
        lifecycle.check_order_transition(order, target)

        details = []
        if tracking_number:
            order.tracking_number = tracking_number.strip()
            details.append(f"Tracking: {order.tracking_number}")
        if global_order_id:
            order.global_order_id = global_order_id.strip()
        if target == OrderStatus.ARRIVED_AT_HUB:
            if receiving_company_id and not CompanyRepo(c).exists(receiving_company_id):
                raise MissingReferenceError("COMPANY_NOT_FOUND", company=receiving_company_id)
            order.origin_center = origin_center or order.origin_center or settings.default_origin_center
            order.receiving_company_id = receiving_company_id or order.receiving_company_id
            details.append(f"Origin: {order.origin_center}")

        order.status = target
        text = " | ".join([f"Updated status to: {lifecycle.label(target)}"] + details)
        OrderRepo(c).update(order)
        record_order(c, order, text, user)
        audit(c, user, "order_advanced", "order", order.id, text)
    log_order("advance", order.local_order_id, target.value)
    return order_summary(order)


@logged("revert_order")
def revert_order(order_ref: str, user: str = DEFAULT_USER, db_path: str = DB_PATH) -> Dict[str, Any]:
    """One step back. Leaving `stored` releases the storage slot."""
    with connect(db_path) as c:
        order = _get_order(c, order_ref)
        current = OrderStatus(order.status)
        target = lifecycle.revert_target(order)

        text = f"Reverted status from {lifecycle.label(current)} to {lifecycle.label(target)}"
        if current == OrderStatus.STORED:
            text += f" (released {order.storage_location})"
            order.storage_location = None
            order.storage_date = None
        order.status = target
        OrderRepo(c).update(order)
        record_order(c, order, text, user)
        audit(c, user, "order_reverted", "order", order.id, text)
    log_order("revert", order.local_order_id, target.value, previous=current.value)
    return order_summary(order)


def _unlink_if_editable(conn: sqlite3.Connection, order: Order) -> Optional[Shipment]:
    if not order.shipment_id:
        return None
    shipment = ShipmentRepo(conn).get(order.shipment_id)
    if shipment is None or ShipmentStatus(shipment.status) != ShipmentStatus.NEW:
        return None
    order.shipment_id = None
    order.box_id = None
    return shipment


@logged("cancel_order")
def cancel_order(
    order_ref: str,
    reason: str,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Cancel an order (any status except completed). Cancelled is terminal.

    A stored order releases its slot. An order sitting in a shipment that has
    not shipped yet is taken out of it.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("REASON_REQUIRED")
    with connect(db_path) as c:
        order = _get_order(c, order_ref)
        lifecycle.check_order_transition(order, OrderStatus.CANCELLED)

        previous = OrderStatus(order.status)
        order.storage_location = None
        unlinked = _unlink_if_editable(c, order)
        order.status = OrderStatus.CANCELLED
        order.notes = f"{order.notes}\n[Cancel]: {reason}" if order.notes else f"[Cancel]: {reason}"

        OrderRepo(c).update(order)
        record_order(c, order, f"Order Cancelled. Reason: {reason}", user)
        if unlinked is not None:
            record_order(c, order, f"Removed from shipment {unlinked.shipment_number}", user)
        audit(c, user, "order_cancelled", "order", order.id, reason)
    log_order("cancel", order.local_order_id, OrderStatus.CANCELLED.value, previous=previous.value, reason=reason)
    return order_summary(order)


@logged("split_order")
def split_order(
    order_ref: str,
    quantity: int,
    tracking_number: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Move `quantity` units of a `new` order into a new order `<id>-S`.

    Price and a fixed commission are split per unit; the amount already paid
    stays on the source order.
    """
    with connect(db_path) as c:
        repo = OrderRepo(c)
        source = _get_order(c, order_ref)
        if OrderStatus(source.status) != OrderStatus.NEW:
            raise LifecycleError("SPLIT_NOT_ALLOWED", order=source.local_order_id, status=source.status.value)
        if quantity is None or quantity < 1 or quantity >= source.quantity:
            raise ValidationError("INVALID_SPLIT", quantity=quantity, available=source.quantity)

        share = Decimal(quantity) / Decimal(source.quantity)
        moved_price = Decimal(str(source.price)) * share
        moved_commission = None
        if source.commission_type == CommissionType.FIXED and source.commission_value is not None:
            moved_commission = Decimal(str(source.commission_value)) * share
            source.commission_value = float(Decimal(str(source.commission_value)) - moved_commission)

        new_local = split_order_id(source.local_order_id, repo.local_ids())
        child = Order(
            id=new_id(),
            local_order_id=new_local,
            client_id=source.client_id,
            store_id=source.store_id,
            price=float(moved_price),
            currency=source.currency,
            quantity=quantity,
            commission_type=source.commission_type,
            commission_rate=source.commission_rate,
            commission_value=float(moved_commission) if moved_commission is not None else None,
            amount_paid=0.0,
            payment_method=source.payment_method,
            shipping_type=source.shipping_type,
            status=OrderStatus.NEW,
            global_order_id=source.global_order_id,
            order_date=source.order_date,
            expected_arrival_date=source.expected_arrival_date,
            tracking_number=(tracking_number or "").strip() or None,
            split_from=source.id,
        )
        source.price = float(Decimal(str(source.price)) - moved_price)
        source.quantity -= quantity

        repo.update(source)
        repo.insert(child)
        record_order(c, source, f"Split {quantity} unit(s) into {new_local}", user)
        record_order(c, child, f"Created as split from {source.local_order_id}", user)
        audit(c, user, "order_split", "order", child.id, f"{source.local_order_id} -> {new_local}")
    log_order("split", source.local_order_id, source.status.value, child=new_local, quantity=quantity)
    return {"source": order_summary(source), "split": order_summary(child)}


def get_order(order_ref: str, db_path: str = DB_PATH) -> Order:
    """Order with its full history."""
    with connect(db_path) as c:
        order = OrderRepo(c).resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        return OrderRepo(c).get(order.id, with_history=True)


def order_detail(order_ref: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    with connect(db_path) as c:
        found = OrderRepo(c).resolve(order_ref)
        if found is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        order = OrderRepo(c).get(found.id, with_history=True)
        client = ClientRepo(c).get(order.client_id)
        store = StoreRepo(c).get(order.store_id)
        fin = financials_of(order, CurrencyRepo(c).rates(), SettingsRepo(c).load())
    return {
        **order_summary(order),
        "client": client.name if client else "N/A",
        "store": store.name if store else "N/A",
        "financials": fin.as_dict(),
        "history": [{"timestamp": h.timestamp, "activity": h.activity, "user": h.user} for h in order.history],
    }
