# reship/usecases/notifications.py
"""
UC: data handed to the notification and print collaborators.

Neither function sends or lays out anything; they only assemble values.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from reship.config import DB_PATH
from reship.domain.errors import MissingReferenceError
from reship.domain.messages import LANGUAGES, notification_values, render_message
from reship.domain.models import OrderStatus, ShippingType
from reship.infra.db import connect
from reship.infra.repositories import ClientRepo, OrderRepo, SettingsRepo, StoreRepo
from reship.usecases.billing import load_financials


def arrival_notification(order_ref: str, language: Optional[str] = None, db_path: str = DB_PATH) -> Dict[str, Any]:
    """
    Placeholder values and the rendered text of the arrival message.

    Returns:
        {"language", "values", "text", "phone", "complete", "issues"}; phone is
        the client's messaging number when known. When a figure rests on a
        missing exchange rate, `complete` is False, `issues` lists the
        problems and `text` is None.
    """
    with connect(db_path) as c:
        settings = SettingsRepo(c).load()
        repo = OrderRepo(c)
        order = repo.resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        client = ClientRepo(c).get(order.client_id)
        count = repo.count_by_client(order.client_id)
        fin = load_financials(c, [order])[order.id]

    lang = language if language in LANGUAGES else settings.default_language
    values = notification_values(order, client, fin, count, lang, settings)
    template = settings.templates.get(lang, "")
    return {
        "language": lang,
        "values": values,
        "text": render_message(template, values) if fin.complete else None,
        "phone": (client.whatsapp_number or client.phone) if client else None,
        "complete": fin.complete,
        "issues": list(fin.issues),
    }


def label_data(order_ref: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """Fields printed on a parcel label ("N/A" for missing references)."""
    with connect(db_path) as c:
        order = OrderRepo(c).resolve(order_ref)
        if order is None:
            raise MissingReferenceError("ORDER_NOT_FOUND", order=order_ref)
        client = ClientRepo(c).get(order.client_id)
        store = StoreRepo(c).get(order.store_id)
    return {
        "order": order.local_order_id,
        "client": client.name if client else "N/A",
        "phone": (client.phone or "N/A") if client else "N/A",
        "address": (client.address or "N/A") if client else "N/A",
        "store": store.name if store else "N/A",
        "shipping_type": ShippingType(order.shipping_type).value,
        "weight": order.weight if order.weight is not None else "N/A",
        "location": order.storage_location or "N/A",
        "status": OrderStatus(order.status).value,
    }
