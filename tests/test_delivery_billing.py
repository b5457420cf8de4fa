import pytest

from reship.domain.errors import DataQualityError, LifecycleError, MissingReferenceError, ValidationError
from reship.domain.models import OrderStatus
from reship.usecases import billing, delivery, orders, reports, storage


@pytest.fixture
def stored_order(db_path, hub_order, office_orders):
    """Factory: an order stored on the floor with the given weight."""
    def _make(weight=2, **kwargs):
        ref = hub_order(**kwargs)
        office_orders(ref)
        storage.confirm_storage(ref, weight, "Floor", db_path=db_path)
        return ref
    return _make


def test_deliver_several_orders_sums_settlement(db_path, refs, stored_order):
    a = stored_order(weight=2, amount_paid=4400)
    b = stored_order(weight=1)
    assert {r["order"] for r in delivery.deliverable_orders(refs["client"], db_path=db_path)} == {a, b}

    res = delivery.confirm_delivery(refs["client"], [a, b], note="picked up by brother", db_path=db_path)
    assert res["client"] == "Ahmed Salem"
    assert res["orders"] == 2
    assert res["product_remaining"] == 0 + 4400
    assert res["shipping_cost"] == 560 + 280
    assert res["total_due"] == 560 + 4400 + 280

    order = orders.get_order(b, db_path=db_path)
    assert order.status == OrderStatus.COMPLETED
    assert order.history[-1].activity == "Delivered to client (from Floor) | picked up by brother"
    assert delivery.deliverable_orders(refs["client"], db_path=db_path) == []
    assert reports.audit_trail(limit=1, db_path=db_path)[0]["details"] == "Delivered 2 orders to Ahmed Salem"


def test_delivery_validation(db_path, refs, stored_order, hub_order):
    ref = stored_order()
    with pytest.raises(ValidationError) as exc:
        delivery.confirm_delivery(refs["client"], [], db_path=db_path)
    assert exc.value.code == "NO_ORDERS_SELECTED"
    with pytest.raises(ValidationError) as exc:
        delivery.confirm_delivery(refs["other_client"], [ref], db_path=db_path)
    assert exc.value.code == "ORDER_OF_OTHER_CLIENT"
    assert orders.get_order(ref, db_path=db_path).status == OrderStatus.STORED
    with pytest.raises(LifecycleError) as exc:
        delivery.confirm_delivery(refs["client"], [hub_order()], db_path=db_path)
    assert exc.value.code == "ORDER_NOT_STORED"


def test_delivery_is_all_or_nothing(db_path, refs, stored_order):
    good = stored_order()
    no_rate = stored_order(currency="EUR")
    with pytest.raises(DataQualityError) as exc:
        delivery.confirm_delivery(refs["client"], [good, no_rate], db_path=db_path)
    assert exc.value.code == "MISSING_EXCHANGE_RATE"
    assert orders.get_order(good, db_path=db_path).status == OrderStatus.STORED
    assert orders.get_order(good, db_path=db_path).storage_location == "Floor"


def test_billing_report_excludes_new_and_cancelled(db_path, refs, new_order, stored_order):
    new_order()
    cancelled = new_order()["local_order_id"]
    orders.cancel_order(cancelled, "duplicate", db_path=db_path)
    stored = stored_order(weight=1, amount_paid=2000)
    new_order(currency="EUR")

    report = billing.billing_report(db_path=db_path)
    assert [r["order"] for r in report["orders"]] == [stored]
    row = report["orders"][0]
    assert row["grand_total"] == 4400 + 280
    assert row["remaining"] == 4680 - 2000
    assert row["payment_status"] == "partial"
    assert report["stats"]["collection_rate"] == 43


def test_billing_flags_missing_rates(db_path, refs, hub_order):
    ref = hub_order(currency="EUR")
    report = billing.billing_report(db_path=db_path)
    row = next(r for r in report["orders"] if r["order"] == ref)
    assert row["issues"] == "missing exchange rate for EUR"
    assert report["stats"]["incomplete_count"] == 1
    assert billing.order_financials(ref, db_path=db_path)["issues"] == ["missing exchange rate for EUR"]


def test_client_balance(db_path, refs, new_order):
    new_order(amount_paid=400)
    new_order(price=50)
    balance = billing.client_balance(refs["client"], db_path=db_path)
    assert balance["orders"] == 2
    assert balance["product_remaining"] == 4000 + 2200
    assert balance["incomplete"] == 0
    with pytest.raises(MissingReferenceError):
        billing.client_balance("ghost", db_path=db_path)
