# reship/usecases/storage.py
"""
UC: warehouse storage.

- create_drawer / delete_drawer
- suggest_storage   -> scored slot suggestion for an order at the office
- confirm_storage   -> arrived_at_office -> stored, with weight and shipping cost
- drawer_layout     -> slot contents per drawer
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from reship.config import DB_PATH
from reship.domain.errors import LifecycleError, MissingReferenceError, StorageError, ValidationError
from reship.domain.finance import shipping_cost_for
from reship.domain.lifecycle import check_order_transition, now_iso
from reship.domain.models import OrderStatus, ShippingType, StorageDrawer
from reship.domain.storage import (
    drawer_capacity,
    drawer_grid,
    is_valid_location,
    parse_slot_address,
    slot_contents,
    slot_position,
    suggest_location,
)
from reship.infra.db import connect, new_id
from reship.infra.logger import log_storage
from reship.infra.repositories import CurrencyRepo, DrawerRepo, OrderRepo, SettingsRepo
from reship.usecases.billing import financials_of
from reship.usecases.journal import DEFAULT_USER, audit, logged, record_order
from reship.usecases.orders import order_summary


def _positive(value: Optional[int], field: str) -> Optional[int]:
    if value is None:
        return None
    if int(value) < 1:
        raise ValidationError("INVALID_VALUE", field=field, value=value)
    return int(value)


@logged("create_drawer")
def create_drawer(
    name: str,
    rows: Optional[int] = None,
    columns: Optional[int] = None,
    capacity: Optional[int] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    Add a drawer. Without a capacity, missing dimensions fall back to the
    default grid. With a capacity, a missing dimension is derived from it
    (columns default to the configured width) and rows x columns must equal
    the capacity exactly.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("FIELD_REQUIRED", field="name")
    if "-" in name:
        raise ValidationError("INVALID_DRAWER", name=name, reason="name must not contain '-'")
    rows = _positive(rows, "rows")
    columns = _positive(columns, "columns")
    capacity = _positive(capacity, "capacity")

    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        if name == settings.floor_location:
            raise ValidationError("INVALID_DRAWER", name=name, reason="name is reserved for floor storage")
        repo = DrawerRepo(c)
        if repo.get_by_name(name) is not None:
            raise ValidationError("DUPLICATE_DRAWER", name=name)
        if capacity is None:
            rows = rows or settings.default_drawer_rows
            columns = columns or settings.default_drawer_columns
            capacity = rows * columns
        else:
            if rows is None and columns is None:
                columns = settings.default_drawer_columns
            if rows is None:
                rows = capacity // columns
            elif columns is None:
                columns = capacity // rows
            if rows * columns != capacity:
                raise ValidationError(
                    "INVALID_DRAWER", name=name, reason=f"capacity {capacity} does not fill a {rows} x {columns} grid"
                )

        drawer = StorageDrawer(id=new_id(), name=name, capacity=capacity, rows=rows, columns=columns)
        repo.insert(drawer)
        audit(c, user, "drawer_created", "drawer", drawer.id, f"{name} ({capacity} slots)")
        grid = drawer_grid(drawer, settings)

    log_storage("drawer_create", None, drawer=name, capacity=capacity)
    return {"name": name, "capacity": capacity, "rows": grid[0], "columns": grid[1]}


@logged("delete_drawer")
def delete_drawer(name: str, user: str = DEFAULT_USER, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Remove a drawer; refused while any stored order points at one of its slots."""
    with connect(db_path) as c:
        repo = DrawerRepo(c)
        drawer = repo.get_by_name(name)
        if drawer is None:
            raise MissingReferenceError("DRAWER_NOT_FOUND", name=name)
        inside = OrderRepo(c).stored_in_drawer(drawer.name)
        if inside:
            raise StorageError("DRAWER_NOT_EMPTY", name=name, count=len(inside))
        repo.delete(drawer.id)
        audit(c, user, "drawer_deleted", "drawer", drawer.id, name)
    log_storage("drawer_delete", None, drawer=name)
    return {"name": name, "deleted": True}


def suggest_storage(order_ref: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Best slot for an order waiting at the office (no write)."""
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        order = OrderRepo(c).resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        if OrderStatus(order.status) != OrderStatus.ARRIVED_AT_OFFICE:
            raise LifecycleError(
                "ORDER_NOT_AWAITING_STORAGE", order=order.local_order_id, status=OrderStatus(order.status).value
            )
        stored = OrderRepo(c).by_status(OrderStatus.STORED)
        drawers = DrawerRepo(c).get_all()

    suggestion = suggest_location(order, stored, drawers, settings)
    log_storage("suggest", suggestion.location, order.local_order_id, score=suggestion.score)
    return {"order": order.local_order_id, **suggestion.as_dict()}


@logged("confirm_storage")
def confirm_storage(
    order_ref: str,
    weight: float,
    location: str,
    shipping_type: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """
    arrived_at_office -> stored.

    Requires a positive weight and a location: the floor sentinel or an
    existing `<drawer>-<NN>` slot. Shipping cost = weight x per-kg rate.
    Only orders still at the office are accepted, so a repeated submission
    is rejected instead of overwriting the first one.
    """
    location = (location or "").strip()
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        repo = OrderRepo(c)
        order = repo.resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        if OrderStatus(order.status) != OrderStatus.ARRIVED_AT_OFFICE:
            raise LifecycleError(
                "ORDER_NOT_AWAITING_STORAGE", order=order.local_order_id, status=OrderStatus(order.status).value
            )
        if weight is None or weight <= 0:
            raise ValidationError("INVALID_WEIGHT", weight=weight)
        if not location:
            raise ValidationError("LOCATION_REQUIRED")
        if not is_valid_location(location, DrawerRepo(c).get_all(), settings):
            raise StorageError("INVALID_LOCATION", location=location)
        check_order_transition(order, OrderStatus.STORED)

        if shipping_type:
            try:
                order.shipping_type = ShippingType(shipping_type)
            except ValueError:
                raise ValidationError("INVALID_SHIPPING_TYPE", shipping_type=shipping_type) from None

        order.weight = float(weight)
        order.shipping_cost = shipping_cost_for(order.weight, order.shipping_type, settings)
        order.storage_location = location
        order.storage_date = now_iso()
        order.status = OrderStatus.STORED
        repo.update(order)
        record_order(c, order, f"Stored at {location}", user)
        audit(c, user, "order_stored", "order", order.id, location)
        fin = financials_of(order, CurrencyRepo(c).rates(), settings)

    log_storage("confirm", location, order.local_order_id, weight=order.weight, shipping_cost=order.shipping_cost)
    return {**order_summary(order), "financials": fin.as_dict()}


def drawer_layout(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    """Per drawer: capacity, fill and the set of order ids in each used slot."""
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        drawers = DrawerRepo(c).get_all()
        stored = OrderRepo(c).by_status(OrderStatus.STORED)

    local_ids = {o.id: o.local_order_id for o in stored}
    contents = slot_contents(stored)
    out = []
    for d in drawers:
        capacity = drawer_capacity(d, settings)
        slots = {}
        for addr, ids in sorted(contents.items()):
            parsed = parse_slot_address(addr)
            if parsed is None or parsed[0] != d.name:
                continue
            slots[addr] = {
                "position": slot_position(d, parsed[1], settings),
                "orders": sorted(local_ids[i] for i in ids),
            }
        count = sum(len(s["orders"]) for s in slots.values())
        out.append({
            "drawer": d.name,
            "capacity": capacity,
            "grid": "{}x{}".format(*drawer_grid(d, settings)),
            "orders": count,
            "fill": round(count / capacity * 100) if capacity else 0,
            "slots": slots,
        })
    floor = contents.get(settings.floor_location, set())
    if floor:
        out.append({
            "drawer": settings.floor_location,
            "capacity": None,
            "grid": "",
            "orders": len(floor),
            "fill": None,
            "slots": {settings.floor_location: {"position": None, "orders": sorted(local_ids[i] for i in floor)}},
        })
    return out
