# reship/domain/storage.py
"""
Storage capacity model and slot allocation heuristic.

A drawer named "A" with capacity 10 exposes slots "A-01" .. "A-10". A slot is
a bin: several stored orders may share it. Occupancy is never kept as a
counter; it is derived from the current orders on every call.

Scoring of an eligible drawer (drawers at or above capacity are skipped):
    +40  an order of the same shipment is already stored in the drawer
    +25  an order of the same client is already stored in the drawer
    +20  fill ratio strictly between 10% and 90%

The best drawer wins; ties go to the alphabetically first drawer name. The
first free slot (ascending) of that drawer is suggested.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from reship.domain.models import AppSettings, Order, OrderStatus, StorageDrawer


SCORE_SAME_SHIPMENT = 40
SCORE_SAME_CLIENT = 25
SCORE_GOOD_SPACE = 20
FILL_LOW = 0.1
FILL_HIGH = 0.9

_SLOT_RE = re.compile(r"^(?P<drawer>.+)-(?P<slot>\d+)$")


@dataclass
class DrawerScore:
    drawer: StorageDrawer
    score: int
    reasons: List[str]
    orders_in_drawer: int
    capacity: int


@dataclass
class StorageSuggestion:
    """Result of `suggest_location`. `location` is None when nothing fits."""
    location: Optional[str]
    score: int = 0
    reasons: List[str] = field(default_factory=list)
    drawer: Optional[str] = None
    fallback: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "location": self.location,
            "score": self.score,
            "reasons": list(self.reasons),
            "drawer": self.drawer,
            "fallback": self.fallback,
        }


# -----------------------
# Capacity model
# -----------------------

def drawer_grid(drawer: StorageDrawer, settings: AppSettings) -> Tuple[int, int]:
    """(rows, columns) of a drawer, falling back to the configured default grid."""
    columns = drawer.columns or settings.default_drawer_columns
    if drawer.rows:
        rows = drawer.rows
    elif drawer.capacity:
        rows = max(1, math.ceil(drawer.capacity / columns))
    else:
        rows = settings.default_drawer_rows
    return rows, columns


def drawer_capacity(drawer: StorageDrawer, settings: AppSettings) -> int:
    if drawer.capacity:
        return int(drawer.capacity)
    rows, columns = drawer_grid(drawer, settings)
    return rows * columns


def slot_address(drawer_name: str, slot_number: int) -> str:
    """`slot_address("B", 3)` -> "B-03"."""
    return f"{drawer_name}-{slot_number:02d}"


def parse_slot_address(location: Optional[str]) -> Optional[Tuple[str, int]]:
    """Inverse of `slot_address`; None for anything that is not `<drawer>-<number>`."""
    if not location:
        return None
    m = _SLOT_RE.match(location.strip())
    if not m:
        return None
    return m.group("drawer"), int(m.group("slot"))


def slot_position(drawer: StorageDrawer, slot_number: int, settings: AppSettings) -> Tuple[int, int]:
    """1-based (row, column) of a slot on the drawer grid."""
    _, columns = drawer_grid(drawer, settings)
    idx = slot_number - 1
    return idx // columns + 1, idx % columns + 1


def is_valid_location(location: str, drawers: Iterable[StorageDrawer], settings: AppSettings) -> bool:
    if location == settings.floor_location:
        return True
    parsed = parse_slot_address(location)
    if parsed is None:
        return False
    name, number = parsed
    for d in drawers:
        if d.name == name:
            return 1 <= number <= drawer_capacity(d, settings)
    return False


# -----------------------
# Occupancy (derived from orders)
# -----------------------

def stored_orders(orders: Iterable[Order]) -> List[Order]:
    return [o for o in orders if OrderStatus(o.status) == OrderStatus.STORED and o.storage_location]


def slot_contents(orders: Iterable[Order]) -> Dict[str, Set[str]]:
    """Slot address -> set of order ids stored there."""
    contents: Dict[str, Set[str]] = {}
    for o in stored_orders(orders):
        contents.setdefault(o.storage_location, set()).add(o.id)
    return contents


def occupied_slots(orders: Iterable[Order]) -> Set[str]:
    return {slot for slot, ids in slot_contents(orders).items() if ids}


def orders_in_drawer(drawer: StorageDrawer, orders: Iterable[Order]) -> List[Order]:
    prefix = f"{drawer.name}-"
    return [o for o in stored_orders(orders) if o.storage_location.startswith(prefix)]


# -----------------------
# Scoring
# -----------------------

def score_drawer(
    order: Order,
    drawer: StorageDrawer,
    all_orders: Iterable[Order],
    settings: AppSettings,
) -> Optional[DrawerScore]:
    """Score of `drawer` for `order`, or None when the drawer is full."""
    capacity = drawer_capacity(drawer, settings)
    inside = orders_in_drawer(drawer, all_orders)
    if capacity <= 0 or len(inside) >= capacity:
        return None

    score = 0
    reasons: List[str] = []
    if order.shipment_id and any(o.shipment_id == order.shipment_id for o in inside):
        score += SCORE_SAME_SHIPMENT
        reasons.append("same shipment")
    if any(o.client_id == order.client_id for o in inside):
        score += SCORE_SAME_CLIENT
        reasons.append("same client")
    fill = len(inside) / capacity
    if FILL_LOW < fill < FILL_HIGH:
        score += SCORE_GOOD_SPACE
        reasons.append("good space")
    return DrawerScore(drawer=drawer, score=score, reasons=reasons, orders_in_drawer=len(inside), capacity=capacity)


def rank_drawers(
    order: Order,
    all_orders: List[Order],
    drawers: Iterable[StorageDrawer],
    settings: AppSettings,
) -> List[DrawerScore]:
    """Eligible drawers, best first (score descending, then drawer name)."""
    scored = [s for s in (score_drawer(order, d, all_orders, settings) for d in drawers) if s is not None]
    scored.sort(key=lambda s: (-s.score, s.drawer.name))
    return scored


def first_free_slot(drawer: StorageDrawer, occupied: Set[str], settings: AppSettings) -> Optional[str]:
    for n in range(1, drawer_capacity(drawer, settings) + 1):
        addr = slot_address(drawer.name, n)
        if addr not in occupied:
            return addr
    return None


def suggest_location(
    order: Order,
    all_orders: List[Order],
    drawers: Iterable[StorageDrawer],
    settings: AppSettings,
) -> StorageSuggestion:
    """
    Suggest a slot for `order`.

    Orders other than `order` itself are considered when computing occupancy.
    When no drawer is eligible the suggestion has no location and offers the
    floor sentinel as fallback.
    """
    others = [o for o in all_orders if o.id != order.id]
    ranking = rank_drawers(order, others, drawers, settings)
    if not ranking:
        return StorageSuggestion(location=None, fallback=settings.floor_location)

    best = ranking[0]
    slot = first_free_slot(best.drawer, occupied_slots(others), settings)
    if slot is None:
        return StorageSuggestion(
            location=None,
            score=best.score,
            reasons=best.reasons,
            drawer=best.drawer.name,
            fallback=settings.floor_location,
        )
    return StorageSuggestion(location=slot, score=best.score, reasons=best.reasons, drawer=best.drawer.name)
