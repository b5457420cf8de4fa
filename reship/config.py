# reship/config.py
"""
Global configuration and default values for the reshipping core.

Values here are only defaults: the operator can override them through the
`settings` table (see `reship.infra.repositories.SettingsRepo`). Use cases
load the effective values once per operation into an `AppSettings` object and
pass it explicitly to the domain functions.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple


# Default SQLite database path
DB_PATH = os.path.join(os.getcwd(), "reship.db")


# Arrival notification templates, one per language
DEFAULT_TEMPLATES: Dict[str, str] = {
    "ar": (
        "{greeting} {clientName}،\n"
        "نخبرك أن طلبك رقم {orderId} قد وصل وهو جاهز للتسليم في ({location}).\n"
        "وزنه: {weight} كغ\n"
        "قيمة الشحن: {shippingCost}\n"
        "الباقي من قيمة الطلب: {productRemaining}\n"
        "المجموع الذي يجب دفعه: {totalDue}\n\n"
        "{loyaltyMessage}"
    ),
    "en": (
        "{greeting} {clientName},\n"
        "We are pleased to inform you that your order #{orderId} has arrived "
        "and is ready for pickup at ({location}).\n"
        "Weight: {weight} kg\n"
        "Shipping Cost: {shippingCost}\n"
        "Remaining Item Cost: {productRemaining}\n"
        "Total Due: {totalDue}\n\n"
        "{loyaltyMessage}"
    ),
    "fr": (
        "{greeting} {clientName},\n"
        "Nous avons le plaisir de vous informer que votre commande #{orderId} est arrivée "
        "et est prête à être récupérée à ({location}).\n"
        "Poids: {weight} kg\n"
        "Frais de livraison: {shippingCost}\n"
        "Reste du prix de l'article: {productRemaining}\n"
        "Total à payer: {totalDue}\n\n"
        "{loyaltyMessage}"
    ),
}


@dataclass
class DefaultConfig:
    """Default values for the system settings."""
    shipping_rate_fast: float = 450.0     # base currency per kg
    shipping_rate_normal: float = 280.0   # base currency per kg
    commission_rate: float = 10.0         # percent
    commission_type: str = "percentage"   # 'percentage' | 'fixed'
    order_id_prefix: str = "FCD"
    order_id_start: int = 1001
    base_currency: str = "MRU"
    default_currency: str = "AED"
    default_origin_center: str = "Dubai"
    default_shipping_type: str = "normal"
    delivery_days_fast: Tuple[int, int] = (3, 5)
    delivery_days_normal: Tuple[int, int] = (9, 12)
    default_drawer_rows: int = 1
    default_drawer_columns: int = 5
    floor_location: str = "Floor"
    default_language: str = "en"
    business_name: str = "Fast Comand"
    templates: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEMPLATES))


# Global instance with the default values
DEFAULTS = DefaultConfig()
