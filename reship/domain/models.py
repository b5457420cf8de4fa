# reship/domain/models.py
"""
Domain models (dataclasses and status enums).

Notes:
- Repositories read and write these dataclasses; status fields hold the
  `str` enums below so they compare equal to their plain string values.
- Monetary fields are raw inputs. Derived amounts (price in base currency,
  commission, remaining balance) are never stored: see `reship.domain.finance`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class OrderStatus(str, Enum):
    NEW = "new"
    ORDERED = "ordered"
    SHIPPED_FROM_STORE = "shipped_from_store"
    ARRIVED_AT_HUB = "arrived_at_hub"
    IN_TRANSIT = "in_transit"
    ARRIVED_AT_OFFICE = "arrived_at_office"
    STORED = "stored"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ShipmentStatus(str, Enum):
    NEW = "new"
    SHIPPED = "shipped"
    PARTIALLY_ARRIVED = "partially_arrived"
    ARRIVED = "arrived"
    RECEIVED = "received"
    DELAYED = "delayed"


class BoxStatus(str, Enum):
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"


class ShippingType(str, Enum):
    FAST = "fast"
    NORMAL = "normal"


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass
class ActivityLog:
    """One entry of an append-only entity history."""
    timestamp: str
    activity: str
    user: str


@dataclass
class AuditEntry:
    """Global operator action log."""
    timestamp: str
    user: str
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Client:
    id: str
    name: str
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    address: Optional[str] = None
    gender: Optional[str] = None     # 'male' | 'female'


@dataclass
class Store:
    id: str
    name: str
    country: Optional[str] = None
    website: Optional[str] = None
    estimated_delivery_days: int = 0


@dataclass
class ShippingCompany:
    id: str
    name: str
    origin_country: Optional[str] = None
    destination_country: Optional[str] = None


@dataclass
class Currency:
    """Exchange rate of a currency against the base currency."""
    code: str
    rate: float
    name: Optional[str] = None


@dataclass
class Order:
    """A parcel bought at a foreign store on behalf of a client."""
    id: str
    local_order_id: str
    client_id: str
    store_id: str
    price: float = 0.0
    currency: Optional[str] = None
    quantity: int = 1
    commission_type: CommissionType = CommissionType.PERCENTAGE
    commission_rate: Optional[float] = None     # percent, when percentage
    commission_value: Optional[float] = None    # base currency, when fixed
    amount_paid: float = 0.0
    payment_method: Optional[str] = None
    shipping_type: ShippingType = ShippingType.NORMAL
    status: OrderStatus = OrderStatus.NEW
    global_order_id: Optional[str] = None
    order_date: Optional[str] = None
    expected_arrival_date: Optional[str] = None
    arrival_date_at_office: Optional[str] = None
    tracking_number: Optional[str] = None
    weight: Optional[float] = None
    shipping_cost: Optional[float] = None
    storage_location: Optional[str] = None
    storage_date: Optional[str] = None
    withdrawal_date: Optional[str] = None
    shipment_id: Optional[str] = None
    box_id: Optional[str] = None
    origin_center: Optional[str] = None
    receiving_company_id: Optional[str] = None
    notes: Optional[str] = None
    split_from: Optional[str] = None
    history: List[ActivityLog] = field(default_factory=list)


@dataclass
class Box:
    id: str
    shipment_id: str
    box_number: int
    status: BoxStatus = BoxStatus.IN_TRANSIT
    arrival_date: Optional[str] = None


@dataclass
class Shipment:
    """A consolidated transit unit made of numbered boxes."""
    id: str
    shipment_number: str
    number_of_boxes: int
    status: ShipmentStatus = ShipmentStatus.NEW
    shipping_type: ShippingType = ShippingType.NORMAL
    country: Optional[str] = None
    shipping_company_id: Optional[str] = None
    tracking_number: Optional[str] = None
    departure_date: Optional[str] = None
    expected_arrival_date: Optional[str] = None
    total_weight: Optional[float] = None
    total_shipping_cost: Optional[float] = None
    boxes: List[Box] = field(default_factory=list)
    history: List[ActivityLog] = field(default_factory=list)

    def box(self, box_number: int) -> Optional[Box]:
        for b in self.boxes:
            if b.box_number == box_number:
                return b
        return None


@dataclass
class StorageDrawer:
    """Fixed-capacity storage unit; slots are addressed `<name>-<NN>`."""
    id: str
    name: str
    capacity: int
    rows: Optional[int] = None
    columns: Optional[int] = None


@dataclass(frozen=True)
class AppSettings:
    """Effective configuration, loaded once per operation and passed explicitly."""
    shipping_rates: Dict[str, float]
    commission_rate: float
    commission_type: str
    order_id_prefix: str
    order_id_start: int
    base_currency: str
    default_currency: str
    default_origin_center: str
    default_shipping_type: str
    delivery_days: Dict[str, Tuple[int, int]]
    default_drawer_rows: int
    default_drawer_columns: int
    floor_location: str
    default_language: str
    business_name: str
    templates: Dict[str, str]

    @classmethod
    def from_defaults(cls, defaults) -> "AppSettings":
        """Build from a `reship.config.DefaultConfig` without any stored override."""
        return cls(
            shipping_rates={
                ShippingType.FAST.value: defaults.shipping_rate_fast,
                ShippingType.NORMAL.value: defaults.shipping_rate_normal,
            },
            commission_rate=defaults.commission_rate,
            commission_type=defaults.commission_type,
            order_id_prefix=defaults.order_id_prefix,
            order_id_start=defaults.order_id_start,
            base_currency=defaults.base_currency,
            default_currency=defaults.default_currency,
            default_origin_center=defaults.default_origin_center,
            default_shipping_type=defaults.default_shipping_type,
            delivery_days={
                ShippingType.FAST.value: tuple(defaults.delivery_days_fast),
                ShippingType.NORMAL.value: tuple(defaults.delivery_days_normal),
            },
            default_drawer_rows=defaults.default_drawer_rows,
            default_drawer_columns=defaults.default_drawer_columns,
            floor_location=defaults.floor_location,
            default_language=defaults.default_language,
            business_name=defaults.business_name,
            templates=dict(defaults.templates),
        )
