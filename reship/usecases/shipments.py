# reship/usecases/shipments.py
"""
UC: shipment lifecycle and the cascades it drives onto orders.

Every function reads the shipment, its boxes and its orders once, computes
all new states, then writes them inside one transaction. A rejected
precondition raises before anything is written.

- create_shipment / edit_shipment / link_orders   (while the shipment is new)
- confirm_ship          -> shipped; linked orders arrived_at_hub -> in_transit
- confirm_box_arrival   -> box arrived; shipment status re-derived;
                           orders in the box -> arrived_at_office
- confirm_received      -> received (blocked while orders are not completed)
- reconcile_shipment    -> recompute status and replay pending cascades
- flag_delayed_shipments
"""
from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from reship.config import DB_PATH
from reship.domain import lifecycle
from reship.domain.errors import LifecycleError, MissingReferenceError, ValidationError
from reship.domain.models import (
    Box,
    BoxStatus,
    Order,
    OrderStatus,
    Shipment,
    ShipmentStatus,
    ShippingType,
)
from reship.domain.policies import expected_arrival_date, is_delayed_shipment
from reship.infra.db import connect, new_id
from reship.infra.logger import log_database_operation, log_shipment
from reship.infra.repositories import CompanyRepo, OrderRepo, SettingsRepo, ShipmentRepo
from reship.usecases.journal import DEFAULT_USER, audit, logged, record_order, record_shipment


def _get_shipment(conn: sqlite3.Connection, shipment_ref: str) -> Shipment:
    shipment = ShipmentRepo(conn).resolve(shipment_ref)
    if shipment is None:
        raise MissingReferenceError("SHIPMENT_NOT_FOUND", shipment=shipment_ref)
    return shipment


def shipment_summary(shipment: Shipment) -> Dict[str, Any]:
    return {
        "id": shipment.id,
        "shipment_number": shipment.shipment_number,
        "status": ShipmentStatus(shipment.status).value,
        "tracking_number": shipment.tracking_number,
        "number_of_boxes": shipment.number_of_boxes,
        "boxes_arrived": lifecycle.arrived_count(shipment.boxes),
    }


def _shipping_type(value: Optional[str], default: str) -> ShippingType:
    raw = value or default
    try:
        return ShippingType(raw)
    except ValueError:
        raise ValidationError("INVALID_SHIPPING_TYPE", shipping_type=raw) from None


def _new_boxes(shipment_id: str, first: int, last: int) -> List[Box]:
    return [
        Box(id=new_id(), shipment_id=shipment_id, box_number=n, status=BoxStatus.IN_TRANSIT)
        for n in range(first, last + 1)
    ]


def _unlink(conn: sqlite3.Connection, order: Order, activity: str, user: str) -> None:
    """Take an order out of its shipment; it goes back to waiting at the hub."""
    order.shipment_id = None
    order.box_id = None
    order.status = OrderStatus.ARRIVED_AT_HUB
    OrderRepo(conn).update(order)
    record_order(conn, order, activity, user)


def _apply_assignments(
    conn: sqlite3.Connection,
    shipment: Shipment,
    assignments: Dict[str, int],
    user: str,
) -> Tuple[List[str], List[str]]:
    """
    Make `assignments` (order ref -> box number) the full selection of the
    shipment. Orders linked before but not selected any more are unlinked.

    Returns:
        (linked local ids, unlinked local ids)
    """
    repo = OrderRepo(conn)
    boxes = {b.box_number: b for b in shipment.boxes}

    selected: Dict[str, Tuple[Order, Box]] = {}
    for ref, box_number in assignments.items():
        order = repo.resolve(ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=ref)
        box = boxes.get(int(box_number))
        if box is None:
            raise ValidationError("INVALID_BOX", box=box_number, shipment=shipment.shipment_number)
        reason = lifecycle.shipment_eligibility(order, shipment)
        if reason:
            raise LifecycleError("ORDER_NOT_ELIGIBLE", order=order.local_order_id, reason=reason)
        selected[order.id] = (order, box)

    unlinked = []
    for order in repo.by_shipment(shipment.id):
        if order.id not in selected:
            _unlink(conn, order, f"Removed from shipment {shipment.shipment_number}", user)
            unlinked.append(order.local_order_id)

    linked = []
    for order, box in selected.values():
        if order.shipment_id == shipment.id and order.box_id == box.id:
            continue
        order.shipment_id = shipment.id
        order.box_id = box.id
        repo.update(order)
        record_order(conn, order, f"Linked to shipment {shipment.shipment_number} (box {box.box_number})", user)
        linked.append(order.local_order_id)
    return linked, unlinked


@logged("create_shipment")
def create_shipment(
    shipment_number: str,
    number_of_boxes: int,
    shipping_type: Optional[str] = None,
    country: Optional[str] = None,
    shipping_company_id: Optional[str] = None,
    departure_date: Optional[str] = None,
    expected_arrival: Optional[str] = None,
    assignments: Optional[Dict[str, int]] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Create a `new` shipment with boxes 1..number_of_boxes, optionally linking orders."""
    shipment_number = (shipment_number or "").strip()
    if not shipment_number:
        raise ValidationError("FIELD_REQUIRED", field="shipment_number")
    if number_of_boxes is None or number_of_boxes < 1:
        raise ValidationError("INVALID_BOX_COUNT", count=number_of_boxes)

    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        repo = ShipmentRepo(c)
        if repo.get_by_number(shipment_number) is not None:
            raise ValidationError("DUPLICATE_SHIPMENT_NUMBER", shipment_number=shipment_number)
        if shipping_company_id and not CompanyRepo(c).exists(shipping_company_id):
            raise MissingReferenceError("COMPANY_NOT_FOUND", company=shipping_company_id)

        shipment = Shipment(
            id=new_id(),
            shipment_number=shipment_number,
            number_of_boxes=number_of_boxes,
            status=ShipmentStatus.NEW,
            shipping_type=_shipping_type(shipping_type, settings.default_shipping_type),
            country=country or settings.default_origin_center,
            shipping_company_id=shipping_company_id,
            departure_date=departure_date,
            expected_arrival_date=expected_arrival,
        )
        shipment.boxes = _new_boxes(shipment.id, 1, number_of_boxes)
        repo.insert(shipment)
        record_shipment(c, shipment, "Created", user)

        linked: List[str] = []
        if assignments:
            linked, _ = _apply_assignments(c, shipment, assignments, user)
        audit(c, user, "shipment_created", "shipment", shipment.id, shipment_number)

    log_database_operation("box", "INSERT", number_of_boxes, shipment=shipment_number)
    log_shipment("create", shipment_number, ShipmentStatus.NEW.value, boxes=number_of_boxes, orders=len(linked))
    return {**shipment_summary(shipment), "linked": linked}


@logged("edit_shipment")
def edit_shipment(
    shipment_ref: str,
    number_of_boxes: Optional[int] = None,
    shipping_type: Optional[str] = None,
    country: Optional[str] = None,
    shipping_company_id: Optional[str] = None,
    departure_date: Optional[str] = None,
    expected_arrival: Optional[str] = None,
    assignments: Optional[Dict[str, int]] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Edit a shipment that has not shipped yet.

    Growing the box count appends empty boxes. Shrinking it drops the
    highest-numbered boxes; their orders are unlinked and go back to
    `arrived_at_hub`. When `assignments` is None the current links are kept
    and re-checked against the edited fields.
    """
    with connect(db_path) as c:
        repo = ShipmentRepo(c)
        orders = OrderRepo(c)
        shipment = _get_shipment(c, shipment_ref)
        lifecycle.check_shipment_editable(shipment)

        changes: List[str] = []
        unlinked: List[str] = []
        if number_of_boxes is not None and number_of_boxes != shipment.number_of_boxes:
            if number_of_boxes < 1:
                raise ValidationError("INVALID_BOX_COUNT", count=number_of_boxes)
            old = shipment.number_of_boxes
            if number_of_boxes > old:
                added = _new_boxes(shipment.id, old + 1, number_of_boxes)
                for b in added:
                    repo.insert_box(b)
                shipment.boxes.extend(added)
            else:
                removed = [b for b in shipment.boxes if b.box_number > number_of_boxes]
                for b in removed:
                    for order in orders.by_box(b.id):
                        _unlink(c, order, f"Unlinked: box {b.box_number} removed from shipment {shipment.shipment_number}", user)
                        unlinked.append(order.local_order_id)
                repo.delete_boxes(b.id for b in removed)
                shipment.boxes = [b for b in shipment.boxes if b.box_number <= number_of_boxes]
            shipment.number_of_boxes = number_of_boxes
            changes.append(f"boxes {old} -> {number_of_boxes}")

        if shipping_type is not None and shipping_type != ShippingType(shipment.shipping_type).value:
            shipment.shipping_type = _shipping_type(shipping_type, shipping_type)
            changes.append(f"type {shipment.shipping_type.value}")
        if country is not None and country != shipment.country:
            shipment.country = country
            changes.append(f"country {country}")
        if shipping_company_id is not None and shipping_company_id != shipment.shipping_company_id:
            if shipping_company_id and not CompanyRepo(c).exists(shipping_company_id):
                raise MissingReferenceError("COMPANY_NOT_FOUND", company=shipping_company_id)
            shipment.shipping_company_id = shipping_company_id or None
            changes.append("shipping company")
        if departure_date is not None:
            shipment.departure_date = departure_date
        if expected_arrival is not None:
            shipment.expected_arrival_date = expected_arrival

        if assignments is None:
            boxes_by_id = {b.id: b.box_number for b in shipment.boxes}
            assignments = {o.id: boxes_by_id[o.box_id] for o in orders.by_shipment(shipment.id)}
        linked, dropped = _apply_assignments(c, shipment, assignments, user)
        unlinked.extend(dropped)

        repo.update(shipment)
        if changes or linked or unlinked:
            parts = list(changes)
            if linked:
                parts.append(f"linked {len(linked)}")
            if unlinked:
                parts.append(f"unlinked {len(unlinked)}")
            record_shipment(c, shipment, "Updated: " + ", ".join(parts), user)
            audit(c, user, "shipment_edited", "shipment", shipment.id, ", ".join(parts))

    log_shipment("edit", shipment.shipment_number, ShipmentStatus(shipment.status).value, changes=changes)
    return {**shipment_summary(shipment), "linked": linked, "unlinked": unlinked}


def link_orders(
    shipment_ref: str,
    assignments: Dict[str, int],
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Replace the order selection of a new shipment (order ref -> box number)."""
    return edit_shipment(shipment_ref, assignments=assignments, user=user, db_path=db_path)


def eligible_orders(shipment_ref: str, db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Orders waiting at the hub that this shipment may claim."""
    with connect(db_path) as c:
        shipment = _get_shipment(c, shipment_ref)
        candidates = OrderRepo(c).by_status(OrderStatus.ARRIVED_AT_HUB)
    return [
        {"id": o.id, "local_order_id": o.local_order_id, "linked": o.shipment_id == shipment.id}
        for o in candidates
        if lifecycle.shipment_eligibility(o, shipment) is None
    ]


@logged("confirm_ship")
def confirm_ship(
    shipment_ref: str,
    tracking_number: str,
    departure_date: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """new -> shipped. Linked orders waiting at the hub move to in_transit."""
    tracking_number = (tracking_number or "").strip()
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        shipment = _get_shipment(c, shipment_ref)
        if not tracking_number:
            raise LifecycleError("TRACKING_REQUIRED", shipment=shipment.shipment_number)
        if ShipmentStatus(shipment.status) != ShipmentStatus.NEW:
            raise LifecycleError(
                "INVALID_TRANSITION",
                entity=f"shipment {shipment.shipment_number}",
                current=ShipmentStatus(shipment.status).value,
                target=ShipmentStatus.SHIPPED.value,
            )

        linked = OrderRepo(c).by_shipment(shipment.id)
        moving = [o for o in linked if OrderStatus(o.status) == OrderStatus.ARRIVED_AT_HUB]
        for o in moving:
            lifecycle.check_order_transition(o, OrderStatus.IN_TRANSIT)

        shipment.status = ShipmentStatus.SHIPPED
        shipment.tracking_number = tracking_number
        shipment.departure_date = departure_date or shipment.departure_date or lifecycle.today_iso()
        if not shipment.expected_arrival_date:
            shipment.expected_arrival_date = expected_arrival_date(
                date.fromisoformat(shipment.departure_date[:10]), 0, shipment.shipping_type, settings
            ).isoformat()
        ShipmentRepo(c).update(shipment)
        record_shipment(c, shipment, f"Updated status to: Shipped | Tracking: {tracking_number}", user)

        for o in moving:
            o.status = OrderStatus.IN_TRANSIT
            OrderRepo(c).update(o)
            record_order(c, o, lifecycle.label(OrderStatus.IN_TRANSIT), user)
        audit(c, user, "shipment_shipped", "shipment", shipment.id, tracking_number)

    log_database_operation("orders", "UPDATE", len(moving), shipment=shipment.shipment_number)
    log_shipment("ship", shipment.shipment_number, ShipmentStatus.SHIPPED.value, tracking=tracking_number)
    return {**shipment_summary(shipment), "orders_in_transit": [o.local_order_id for o in moving]}


@logged("confirm_box_arrival")
def confirm_box_arrival(
    shipment_ref: str,
    box_number: int,
    arrival_date: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Confirm one box. In one transaction: the box is stamped arrived, the
    shipment status is re-derived from all its boxes, and every order in the
    box moves to arrived_at_office.
    """
    with connect(db_path) as c:
        shipment = _get_shipment(c, shipment_ref)
        box = shipment.box(int(box_number))
        if box is None:
            raise ValidationError("INVALID_BOX", box=box_number, shipment=shipment.shipment_number)
        lifecycle.check_box_can_arrive(shipment, box)

        when = arrival_date or lifecycle.today_iso()
        box.status = BoxStatus.ARRIVED
        box.arrival_date = when
        shipment.status = lifecycle.derive_shipment_status(shipment.status, shipment.boxes)

        arriving = [o for o in OrderRepo(c).by_box(box.id) if lifecycle.office_arrival_pending(o)]

        ShipmentRepo(c).update_box(box)
        ShipmentRepo(c).update(shipment)
        outcome = "Shipment Arrived." if shipment.status == ShipmentStatus.ARRIVED else "Partial Arrival."
        record_shipment(c, shipment, f"Box {box.box_number} arrived. {outcome}", user)
        for o in arriving:
            o.status = OrderStatus.ARRIVED_AT_OFFICE
            o.arrival_date_at_office = when
            OrderRepo(c).update(o)
            record_order(c, o, lifecycle.label(OrderStatus.ARRIVED_AT_OFFICE), user)
        audit(c, user, "box_arrived", "shipment", shipment.id, f"box {box.box_number}")

    log_database_operation("orders", "UPDATE", len(arriving), shipment=shipment.shipment_number)
    log_shipment("box_arrival", shipment.shipment_number, shipment.status.value, box=box.box_number)
    return {
        **shipment_summary(shipment),
        "box": box.box_number,
        "orders_arrived": [o.local_order_id for o in arriving],
    }


@logged("confirm_received")
def confirm_received(
    shipment_ref: str,
    total_weight: Optional[float] = None,
    total_shipping_cost: Optional[float] = None,
    force: bool = False,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    arrived -> received. Refused while any linked order is not completed,
    unless `force` is set.
    """
    if total_weight is not None and total_weight < 0:
        raise ValidationError("INVALID_AMOUNT", field="total_weight", value=total_weight)
    if total_shipping_cost is not None and total_shipping_cost < 0:
        raise ValidationError("INVALID_AMOUNT", field="total_shipping_cost", value=total_shipping_cost)

    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        shipment = _get_shipment(c, shipment_ref)
        pending = lifecycle.check_can_receive(shipment, OrderRepo(c).by_shipment(shipment.id), force=force)

        shipment.status = ShipmentStatus.RECEIVED
        parts = ["Received all items"]
        if total_weight is not None:
            shipment.total_weight = total_weight
            parts.append(f"Weight: {total_weight:g}kg")
        if total_shipping_cost is not None:
            shipment.total_shipping_cost = total_shipping_cost
            parts.append(f"Cost: {total_shipping_cost:g} {settings.base_currency}")
        if pending:
            parts.append(f"Forced with {pending} pending order(s)")
        ShipmentRepo(c).update(shipment)
        record_shipment(c, shipment, " | ".join(parts), user)
        audit(c, user, "shipment_received", "shipment", shipment.id, " | ".join(parts[1:]) or None)

    log_shipment("receive", shipment.shipment_number, ShipmentStatus.RECEIVED.value, forced=bool(pending))
    return {**shipment_summary(shipment), "forced_pending": pending}


@logged("reconcile_shipment")
def reconcile_shipment(shipment_ref: str, user: str = DEFAULT_USER, db_path: str = DB_PATH) -> Dict[str, Any]:
    """
    Recompute the shipment status from its boxes and replay any cascade that
    did not reach its orders. Running it twice changes nothing the second time.
    """
    with connect(db_path) as c:
        shipment = _get_shipment(c, shipment_ref)
        orders = OrderRepo(c)
        changed: List[str] = []

        derived = lifecycle.derive_shipment_status(shipment.status, shipment.boxes)
        if derived != ShipmentStatus(shipment.status):
            text = f"Status reconciled: {ShipmentStatus(shipment.status).value} -> {derived.value}"
            shipment.status = derived
            ShipmentRepo(c).update(shipment)
            record_shipment(c, shipment, text, user)

        shipped = ShipmentStatus(shipment.status) != ShipmentStatus.NEW
        arrived_boxes = {b.id: b for b in shipment.boxes if BoxStatus(b.status) == BoxStatus.ARRIVED}
        for o in orders.by_shipment(shipment.id):
            box = arrived_boxes.get(o.box_id)
            if box is not None and lifecycle.office_arrival_pending(o):
                o.status = OrderStatus.ARRIVED_AT_OFFICE
                o.arrival_date_at_office = o.arrival_date_at_office or box.arrival_date
                orders.update(o)
                record_order(c, o, lifecycle.label(OrderStatus.ARRIVED_AT_OFFICE), user)
                changed.append(o.local_order_id)
            elif box is None and shipped and OrderStatus(o.status) == OrderStatus.ARRIVED_AT_HUB:
                o.status = OrderStatus.IN_TRANSIT
                orders.update(o)
                record_order(c, o, lifecycle.label(OrderStatus.IN_TRANSIT), user)
                changed.append(o.local_order_id)

        if changed:
            audit(c, user, "shipment_reconciled", "shipment", shipment.id, ", ".join(changed))

    log_shipment("reconcile", shipment.shipment_number, ShipmentStatus(shipment.status).value, orders=len(changed))
    return {**shipment_summary(shipment), "orders_updated": changed}


@logged("flag_delayed_shipments")
def flag_delayed_shipments(
    today: Optional[date] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> List[str]:
    """Shipped shipments past their expected arrival with no box in yet become delayed."""
    today = today or date.today()
    flagged: List[str] = []
    with connect(db_path) as c:
        repo = ShipmentRepo(c)
        for shipment in repo.by_status(ShipmentStatus.SHIPPED):
            if not is_delayed_shipment(shipment, today):
                continue
            shipment.status = ShipmentStatus.DELAYED
            repo.update(shipment)
            record_shipment(c, shipment, f"Updated status to: {lifecycle.label(ShipmentStatus.DELAYED)}", user)
            flagged.append(shipment.shipment_number)
        if flagged:
            audit(c, user, "shipments_delayed", "shipment", None, ", ".join(flagged))
    return flagged


def get_shipment(shipment_ref: str, db_path: str = DB_PATH) -> Shipment:
    """Shipment with boxes and history."""
    with connect(db_path) as c:
        shipment = _get_shipment(c, shipment_ref)
        return ShipmentRepo(c).get(shipment.id, with_history=True)


def shipment_detail(shipment_ref: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    with connect(db_path) as c:
        shipment = ShipmentRepo(c).get(_get_shipment(c, shipment_ref).id, with_history=True)
        linked = OrderRepo(c).by_shipment(shipment.id)
    numbers = {b.id: b.box_number for b in shipment.boxes}
    return {
        **shipment_summary(shipment),
        "country": shipment.country,
        "shipping_type": ShippingType(shipment.shipping_type).value,
        "departure_date": shipment.departure_date,
        "expected_arrival_date": shipment.expected_arrival_date,
        "boxes": [
            {"box": b.box_number, "status": BoxStatus(b.status).value, "arrival_date": b.arrival_date or ""}
            for b in shipment.boxes
        ],
        "orders": [
            {"order": o.local_order_id, "box": numbers.get(o.box_id), "status": OrderStatus(o.status).value}
            for o in linked
        ],
        "history": [{"timestamp": h.timestamp, "activity": h.activity, "user": h.user} for h in shipment.history],
    }
