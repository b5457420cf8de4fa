# reship/domain/messages.py
"""
Substitution values for client notifications.

The core only produces the values (and can fill a template with them);
building a messaging link and sending it is done elsewhere.
"""

from __future__ import annotations

from typing import Dict, Optional

from reship.domain.finance import OrderFinancials
from reship.domain.models import AppSettings, Client, Order

LANGUAGES = ("ar", "en", "fr")

PLACEHOLDERS = (
    "greeting",
    "clientName",
    "orderId",
    "location",
    "weight",
    "shippingCost",
    "productRemaining",
    "totalDue",
    "loyaltyMessage",
)

_GREETINGS = {
    "ar": ("مرحباً السيد", "مرحباً السيدة"),
    "fr": ("Bonjour M.", "Bonjour Mme"),
    "en": ("Hello Mr.", "Hello Ms."),
}

_LOYALTY_FIRST = {
    "ar": "شكرا على الثقة و نتمنى ان نكون عند حسن ظنك.",
    "fr": "Merci de votre confiance, nous espérons être à la hauteur de vos attentes.",
    "en": "Thank you for your trust, we hope to meet your expectations.",
}

_LOYALTY_RETURNING = {
    "ar": "شكرا لك مرة اخرى و دائما على ثقتك بنا ،{business} دائما في خدمتكم.",
    "fr": "Merci encore pour votre confiance continue, {business} est toujours à votre service.",
    "en": "Thanks again for your continued trust, {business} is always at your service.",
}


def _lang(language: Optional[str]) -> str:
    return language if language in LANGUAGES else "en"


def greeting(client: Optional[Client], language: str) -> str:
    male, female = _GREETINGS[_lang(language)]
    return female if client is not None and client.gender == "female" else male


def loyalty_message(client_order_count: int, language: str, business_name: str) -> str:
    """First-order thanks for 0 or 1 orders, returning-client thanks otherwise."""
    lang = _lang(language)
    if client_order_count <= 1:
        return _LOYALTY_FIRST[lang]
    return _LOYALTY_RETURNING[lang].format(business=business_name)


def _amount(value: int) -> str:
    return f"{value:,}"


def _weight(value: Optional[float]) -> str:
    if value is None:
        return "0"
    return f"{value:g}"


def notification_values(
    order: Order,
    client: Optional[Client],
    financials: OrderFinancials,
    client_order_count: int,
    language: str,
    settings: AppSettings,
) -> Dict[str, str]:
    return {
        "greeting": greeting(client, language),
        "clientName": client.name if client else "N/A",
        "orderId": order.local_order_id,
        "location": order.storage_location or "N/A",
        "weight": _weight(order.weight),
        "shippingCost": _amount(financials.shipping_cost),
        "productRemaining": _amount(financials.product_remaining),
        "totalDue": _amount(financials.total_due),
        "loyaltyMessage": loyalty_message(client_order_count, language, settings.business_name),
    }


def render_message(template: str, values: Dict[str, str]) -> str:
    """Replace every `{placeholder}`; unknown braces are left untouched."""
    out = template
    for key, val in values.items():
        out = out.replace("{" + key + "}", val)
    return out
