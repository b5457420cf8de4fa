# reship/domain/policies.py
"""
Business rules that are not status transitions: order numbering, expected
dates and lateness.
"""

from __future__ import annotations

import math
import re
from datetime import date, timedelta
from typing import Iterable, Optional

from reship.domain.models import AppSettings, Order, OrderStatus, Shipment, ShipmentStatus


def next_local_order_id(existing_ids: Iterable[str], prefix: str, start: int) -> str:
    """Next human-facing order id.

    Only ids of the form ``<prefix><digits>`` (case-insensitive) take part.
    The next id is the highest numeric suffix plus one, or ``start`` when
    there is none.

    Examples:
        (["FCD1001", "FCD1005", "FCD1003-S"], "FCD", 1001) → "FCD1006"
        ([], "FCD", 1001)                                  → "FCD1001"
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$", re.IGNORECASE)
    numbers = []
    for oid in existing_ids:
        m = pattern.match((oid or "").strip())
        if m:
            numbers.append(int(m.group(1)))
    nxt = max(numbers) + 1 if numbers else start
    return f"{prefix}{nxt}"


def split_order_id(local_order_id: str, existing_ids: Iterable[str]) -> str:
    """`<id>-S`, then `<id>-S2`, `<id>-S3`... until a free id is found."""
    taken = {oid.upper() for oid in existing_ids if oid}
    candidate = f"{local_order_id}-S"
    n = 2
    while candidate.upper() in taken:
        candidate = f"{local_order_id}-S{n}"
        n += 1
    return candidate


def expected_arrival_date(
    order_date: date,
    store_days: Optional[int],
    shipping_type: str,
    settings: AppSettings,
) -> date:
    """Order date + store handling days + mean of the shipping-type range (rounded up)."""
    low, high = settings.delivery_days.get(str(getattr(shipping_type, "value", shipping_type)), (0, 0))
    shipping_days = math.ceil((low + high) / 2)
    return order_date + timedelta(days=(store_days or 0) + shipping_days)


def is_late_order(order: Order, today: date) -> bool:
    if OrderStatus(order.status) in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        return False
    if not order.expected_arrival_date:
        return False
    return date.fromisoformat(order.expected_arrival_date[:10]) < today


def is_delayed_shipment(shipment: Shipment, today: date) -> bool:
    """Shipped, no box arrived yet and past its expected arrival date."""
    if ShipmentStatus(shipment.status) != ShipmentStatus.SHIPPED:
        return False
    if not shipment.expected_arrival_date:
        return False
    return date.fromisoformat(shipment.expected_arrival_date[:10]) < today
