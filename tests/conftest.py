import itertools

import pytest

from reship.infra.migrations import apply_migrations
from reship.infra.views import create_views
from reship.usecases import orders, registry, shipments


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "reship_test.sqlite")
    apply_migrations(path)
    create_views(path)
    return path


@pytest.fixture
def refs(db_path):
    """Two clients, a store, a shipping company and USD/AED rates."""
    ahmed = registry.add_client("Ahmed Salem", phone="+222 4444 1111", gender="male", db_path=db_path)
    mariem = registry.add_client("Mariem Sidi", phone="+222 4444 2222", gender="female", db_path=db_path)
    store = registry.add_store("Noon", country="UAE", estimated_delivery_days=2, db_path=db_path)
    company = registry.add_company("Aramex", origin_country="UAE", destination_country="MR", db_path=db_path)
    registry.set_currency("USD", 40, db_path=db_path)
    registry.set_currency("AED", 11, db_path=db_path)
    return {
        "client": ahmed["id"],
        "other_client": mariem["id"],
        "store": store["id"],
        "company": company["id"],
    }


@pytest.fixture
def new_order(db_path, refs):
    """Factory: a `new` order (100 USD for the first client by default)."""
    def _make(client=None, price=100.0, currency="USD", **kwargs):
        return orders.create_order(
            client or refs["client"], refs["store"], price, currency=currency, db_path=db_path, **kwargs
        )
    return _make


@pytest.fixture
def hub_order(db_path, refs, new_order):
    """Factory: an order walked up to `arrived_at_hub`; returns its local id."""
    def _make(**kwargs):
        ref = new_order(**kwargs)["local_order_id"]
        orders.assign_tracking(ref, f"TRK-{ref}", db_path=db_path)
        orders.advance_order(ref, db_path=db_path)
        orders.advance_order(ref, receiving_company_id=refs["company"], db_path=db_path)
        return ref
    return _make


@pytest.fixture
def office_orders(db_path, refs):
    """Factory: ship the given hub orders in one box and confirm its arrival."""
    numbers = itertools.count(1)

    def _make(*order_refs):
        number = f"SH-{next(numbers)}"
        shipments.create_shipment(
            number, 1, shipping_company_id=refs["company"],
            assignments={ref: 1 for ref in order_refs}, db_path=db_path,
        )
        shipments.confirm_ship(number, f"AWB-{number}", departure_date="2024-03-01", db_path=db_path)
        shipments.confirm_box_arrival(number, 1, arrival_date="2024-03-12", db_path=db_path)
        return number
    return _make
