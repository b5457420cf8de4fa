# reship/domain/errors.py
"""
Structured exceptions for the reshipping core.

Every error carries a `code` for programmatic handling, a human-readable
`message` and a `data` dict with the context that triggered it.

Usage:
    try:
        confirm_received(shipment_id, db_path=db)
    except LifecycleError as e:
        if e.code == "ORDERS_NOT_COMPLETED":
            print(f"{e.data['pending']} order(s) still pending")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ReshipError(Exception):
    """Base error. Subclasses only add their own message table."""

    _default_messages: Dict[str, str] = {}

    def __init__(self, code: str, message: Optional[str] = None, **data: Any):
        self.code = code
        self.data = data
        if message is None:
            template = self._default_messages.get(code, code)
            try:
                message = template.format(**data)
            except (KeyError, IndexError):
                message = template
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> Dict[str, Any]:
        """Serialize to dict (useful for the CLI and for logs)."""
        return {
            "code": self.code,
            "message": self.message,
            "data": {k: (v.value if hasattr(v, "value") else v) for k, v in self.data.items()},
        }


class LifecycleError(ReshipError):
    """A status transition whose precondition is not met."""

    _default_messages = {
        "INVALID_TRANSITION": "Cannot move {entity} from {current} to {target}",
        "TRANSITION_NOT_MANUAL": "Status {target} is set by {trigger}, not manually",
        "CANNOT_REVERT": "Cannot revert order from status {current}",
        "SPLIT_NOT_ALLOWED": "Only new orders can be split (order {order} is {status})",
        "ORDER_IN_SHIPMENT": "Order {order} is linked to shipment {shipment}",
        "ORDER_CLOSED": "Order {order} is {status} and cannot be changed",
        "ORDER_NOT_AWAITING_STORAGE": "Order {order} is {status}, expected arrived_at_office",
        "ORDER_NOT_STORED": "Order {order} is {status}, expected stored",
        "ORDER_NOT_ELIGIBLE": "Order {order} cannot be linked to this shipment: {reason}",
        "SHIPMENT_NOT_EDITABLE": "Shipment {shipment} is {status}; only new shipments can be edited",
        "SHIPMENT_NOT_IN_TRANSIT": "Shipment {shipment} is {status}; no box arrival expected",
        "SHIPMENT_NOT_ARRIVED": "Shipment {shipment} is {status}; all boxes must arrive first",
        "TRACKING_REQUIRED": "A tracking number is required to ship {shipment}",
        "BOX_ALREADY_ARRIVED": "Box {box} of shipment {shipment} already arrived",
        "ORDERS_NOT_COMPLETED": "{pending} linked order(s) are not completed yet",
    }


class ValidationError(ReshipError):
    """Invalid input or a duplicate identifier."""

    _default_messages = {
        "DUPLICATE_ORDER_ID": "Order id {local_order_id} already exists",
        "DUPLICATE_SHIPMENT_NUMBER": "Shipment number {shipment_number} already exists",
        "DUPLICATE_DRAWER": "Drawer {name} already exists",
        "INVALID_QUANTITY": "Quantity must be at least 1 (got {quantity})",
        "INVALID_AMOUNT": "{field} must be zero or positive (got {value})",
        "INVALID_VALUE": "Invalid {field}: {value}",
        "FIELD_REQUIRED": "{field} is required",
        "INVALID_WEIGHT": "Weight must be greater than zero (got {weight})",
        "INVALID_BOX_COUNT": "A shipment needs at least one box (got {count})",
        "INVALID_BOX": "Box {box} does not exist in shipment {shipment}",
        "INVALID_SHIPPING_TYPE": "Unknown shipping type {shipping_type}",
        "INVALID_COMMISSION_TYPE": "Unknown commission type {commission_type}",
        "INVALID_SPLIT": "Cannot split {quantity} unit(s) out of {available}",
        "INVALID_DRAWER": "Drawer {name}: {reason}",
        "LOCATION_REQUIRED": "A storage location is required",
        "NO_ORDERS_SELECTED": "Select at least one order",
        "ORDER_OF_OTHER_CLIENT": "Order {order} does not belong to client {client}",
        "REASON_REQUIRED": "A cancellation reason is required",
        "UNKNOWN_SETTING": "Unknown setting {key}",
    }


class MissingReferenceError(ReshipError):
    """A write touches an entity that does not exist."""

    _default_messages = {
        "CLIENT_NOT_FOUND": "Client {client} not found",
        "STORE_NOT_FOUND": "Store {store} not found",
        "COMPANY_NOT_FOUND": "Shipping company {company} not found",
        "ORDER_NOT_FOUND": "Order {order} not found",
        "SHIPMENT_NOT_FOUND": "Shipment {shipment} not found",
        "DRAWER_NOT_FOUND": "Drawer {name} not found",
    }


class StorageError(ReshipError):
    """Drawer and slot problems."""

    _default_messages = {
        "INVALID_LOCATION": "Location {location} is not a valid slot",
        "DRAWER_NOT_EMPTY": "Drawer {name} still holds {count} stored order(s)",
    }


class DataQualityError(ReshipError):
    """Data that would produce a misleading total."""

    _default_messages = {
        "MISSING_EXCHANGE_RATE": "No exchange rate configured for currency {currency}",
    }
