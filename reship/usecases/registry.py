# reship/usecases/registry.py
"""
UC: reference data (clients, stores, shipping companies, exchange rates) and
system settings.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from reship.config import DB_PATH
from reship.domain.errors import ValidationError
from reship.domain.models import Client, Currency, ShippingCompany, ShippingType, Store
from reship.infra.db import connect, new_id
from reship.infra.logger import log_database_operation
from reship.infra.repositories import (
    SETTING_KEYS,
    ClientRepo,
    CompanyRepo,
    CurrencyRepo,
    SettingsRepo,
    StoreRepo,
    parse_range,
)
from reship.usecases.journal import DEFAULT_USER, audit, logged


def _normalize_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


@logged("add_client")
def add_client(
    name: str,
    phone: Optional[str] = None,
    whatsapp_number: Optional[str] = None,
    address: Optional[str] = None,
    gender: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    if not _normalize_str(name):
        raise ValidationError("FIELD_REQUIRED", field="name")
    if gender is not None and gender not in ("male", "female"):
        raise ValidationError("INVALID_VALUE", field="gender", value=gender)
    client = Client(
        id=new_id(),
        name=name.strip(),
        phone=_normalize_str(phone),
        whatsapp_number=_normalize_str(whatsapp_number) or _normalize_str(phone),
        address=_normalize_str(address),
        gender=gender,
    )
    with connect(db_path) as c:
        ClientRepo(c).insert(client)
        audit(c, user, "client_created", "client", client.id, client.name)
    log_database_operation("client", "INSERT", 1, client=client.id)
    return {"id": client.id, "name": client.name}


@logged("add_store")
def add_store(
    name: str,
    country: Optional[str] = None,
    website: Optional[str] = None,
    estimated_delivery_days: int = 0,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    if not _normalize_str(name):
        raise ValidationError("FIELD_REQUIRED", field="name")
    if estimated_delivery_days < 0:
        raise ValidationError("INVALID_AMOUNT", field="estimated_delivery_days", value=estimated_delivery_days)
    store = Store(
        id=new_id(),
        name=name.strip(),
        country=_normalize_str(country),
        website=_normalize_str(website),
        estimated_delivery_days=estimated_delivery_days,
    )
    with connect(db_path) as c:
        StoreRepo(c).insert(store)
        audit(c, user, "store_created", "store", store.id, store.name)
    log_database_operation("store", "INSERT", 1, store=store.id)
    return {"id": store.id, "name": store.name}


@logged("add_company")
def add_company(
    name: str,
    origin_country: Optional[str] = None,
    destination_country: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    if not _normalize_str(name):
        raise ValidationError("FIELD_REQUIRED", field="name")
    company = ShippingCompany(
        id=new_id(),
        name=name.strip(),
        origin_country=_normalize_str(origin_country),
        destination_country=_normalize_str(destination_country),
    )
    with connect(db_path) as c:
        CompanyRepo(c).insert(company)
        audit(c, user, "company_created", "shipping_company", company.id, company.name)
    log_database_operation("shipping_company", "INSERT", 1, company=company.id)
    return {"id": company.id, "name": company.name}


@logged("set_currency")
def set_currency(
    code: str,
    rate: float,
    name: Optional[str] = None,
    user: str = DEFAULT_USER,
    db_path: str = DB_PATH,
) -> Dict[str, Any]:
    """Create or update the rate of `code` against the base currency."""
    if rate is None or rate <= 0:
        raise ValidationError("INVALID_AMOUNT", field="rate", value=rate)
    currency = Currency(code=code.strip().upper(), rate=float(rate), name=_normalize_str(name))
    with connect(db_path) as c:
        CurrencyRepo(c).upsert(currency)
        audit(c, user, "currency_rate_set", "currency", currency.code, f"rate={currency.rate}")
    log_database_operation("currency", "UPSERT", 1, code=currency.code)
    return {"code": currency.code, "rate": currency.rate}


def list_currencies(db_path: str = DB_PATH) -> List[Dict[str, Any]]:
    with connect(db_path) as c:
        return [{"code": x.code, "name": x.name or "", "rate": x.rate} for x in CurrencyRepo(c).get_all()]


# -----------------------
# Settings
# -----------------------

def _check_setting(key: str, value: str) -> str:
    kind = SETTING_KEYS.get(key)
    if kind is None:
        raise ValidationError("UNKNOWN_SETTING", key=key)
    try:
        if kind == "float" and float(value) < 0:
            raise ValueError(value)
        if kind == "int" and int(float(value)) < 1:
            raise ValueError(value)
        if kind == "range":
            parse_range(value)
    except (ValueError, IndexError):
        raise ValidationError("INVALID_VALUE", field=key, value=value)
    if key == "commission_type" and value not in ("percentage", "fixed"):
        raise ValidationError("INVALID_COMMISSION_TYPE", commission_type=value)
    if key == "default_shipping_type" and value not in {t.value for t in ShippingType}:
        raise ValidationError("INVALID_SHIPPING_TYPE", shipping_type=value)
    return str(value)


@logged("update_settings")
def update_settings(values: Dict[str, Any], user: str = DEFAULT_USER, db_path: str = DB_PATH) -> Dict[str, str]:
    """Validate and store setting overrides; returns what was written."""
    items = [(k, _check_setting(k, str(v))) for k, v in values.items() if v is not None]
    with connect(db_path) as c:
        SettingsRepo(c).set_many(items)
        audit(c, user, "settings_updated", "settings", None, ", ".join(k for k, _ in items))
    log_database_operation("settings", "UPSERT", len(items))
    return dict(items)


def get_setting(key: str, db_path: str = DB_PATH) -> Optional[str]:
    """Effective value of one setting (stored override or default)."""
    if key not in SETTING_KEYS:
        raise ValidationError("UNKNOWN_SETTING", key=key)
    with connect(db_path) as c:
        stored = SettingsRepo(c).get(key)
        if stored is not None:
            return stored
        return str(show_settings_from(SettingsRepo(c))[key])


def show_settings_from(repo: SettingsRepo) -> Dict[str, Any]:
    s = repo.load()
    out: Dict[str, Any] = {
        "shipping_rate_fast": s.shipping_rates["fast"],
        "shipping_rate_normal": s.shipping_rates["normal"],
        "commission_rate": s.commission_rate,
        "commission_type": s.commission_type,
        "order_id_prefix": s.order_id_prefix,
        "order_id_start": s.order_id_start,
        "base_currency": s.base_currency,
        "default_currency": s.default_currency,
        "default_origin_center": s.default_origin_center,
        "default_shipping_type": s.default_shipping_type,
        "delivery_days_fast": "{}-{}".format(*s.delivery_days["fast"]),
        "delivery_days_normal": "{}-{}".format(*s.delivery_days["normal"]),
        "default_drawer_rows": s.default_drawer_rows,
        "default_drawer_columns": s.default_drawer_columns,
        "floor_location": s.floor_location,
        "default_language": s.default_language,
        "business_name": s.business_name,
    }
    for lang, text in s.templates.items():
        out[f"template_{lang}"] = text
    return out


def show_settings(db_path: str = DB_PATH) -> Dict[str, Any]:
    """Effective settings, defaults included."""
    with connect(db_path) as c:
        return show_settings_from(SettingsRepo(c))
