import pytest

from reship.domain.errors import LifecycleError, MissingReferenceError, ValidationError
from reship.domain.models import OrderStatus
from reship.usecases import orders, registry, shipments


def test_create_order_numbers_and_defaults(db_path, refs, new_order):
    first = new_order(order_date="2024-01-01")
    second = new_order()
    assert first["local_order_id"] == "FCD1001"
    assert second["local_order_id"] == "FCD1002"
    assert first["status"] == "new"
    assert first["financials"]["product_total"] == 4400

    order = orders.get_order("FCD1001", db_path=db_path)
    assert order.expected_arrival_date == "2024-01-14"
    assert order.currency == "USD"
    assert [h.activity for h in order.history] == ["Order Created"]


def test_create_order_follows_prefix_setting(db_path, new_order):
    registry.update_settings({"order_id_prefix": "RS", "order_id_start": 1}, db_path=db_path)
    assert new_order()["local_order_id"] == "RS1"


def test_duplicate_local_id_is_case_insensitive(db_path, new_order):
    new_order(local_order_id="ABC-1")
    with pytest.raises(ValidationError) as exc:
        new_order(local_order_id="abc-1")
    assert exc.value.code == "DUPLICATE_ORDER_ID"


def test_create_order_validation(db_path, refs, new_order):
    with pytest.raises(ValidationError) as exc:
        new_order(quantity=0)
    assert exc.value.code == "INVALID_QUANTITY"
    with pytest.raises(ValidationError):
        new_order(price=-1)
    with pytest.raises(ValidationError):
        new_order(commission_type="fixed")
    with pytest.raises(ValidationError):
        new_order(shipping_type="express")
    with pytest.raises(MissingReferenceError) as exc:
        orders.create_order("nobody", refs["store"], 10, db_path=db_path)
    assert exc.value.code == "CLIENT_NOT_FOUND"


def test_tracking_then_manual_advance_to_hub(db_path, refs, new_order):
    ref = new_order()["local_order_id"]
    res = orders.assign_tracking(ref, "1Z999", db_path=db_path)
    assert res["status"] == "ordered"

    orders.advance_order(ref, db_path=db_path)
    res = orders.advance_order(ref, receiving_company_id=refs["company"], db_path=db_path)
    assert res["status"] == "arrived_at_hub"

    order = orders.get_order(ref, db_path=db_path)
    assert order.origin_center == "Dubai"
    assert order.receiving_company_id == refs["company"]
    assert order.history[1].activity == "Updated status to: Ordered | Tracking: 1Z999"
    assert order.history[-1].activity.startswith("Updated status to: Arrived at Hub")

    with pytest.raises(LifecycleError) as exc:
        orders.advance_order(ref, db_path=db_path)
    assert exc.value.code == "TRANSITION_NOT_MANUAL"


def test_advance_with_unknown_company_changes_nothing(db_path, new_order):
    ref = new_order()["local_order_id"]
    orders.assign_tracking(ref, "T1", db_path=db_path)
    orders.advance_order(ref, db_path=db_path)
    with pytest.raises(MissingReferenceError):
        orders.advance_order(ref, receiving_company_id="ghost", db_path=db_path)
    assert orders.get_order(ref, db_path=db_path).status == OrderStatus.SHIPPED_FROM_STORE


def test_revert_steps_back_and_logs(db_path, new_order):
    ref = new_order()["local_order_id"]
    orders.assign_tracking(ref, "T1", db_path=db_path)
    res = orders.revert_order(ref, db_path=db_path)
    assert res["status"] == "new"
    history = orders.get_order(ref, db_path=db_path).history
    assert history[-1].activity == "Reverted status from Ordered to New"

    with pytest.raises(LifecycleError) as exc:
        orders.revert_order(ref, db_path=db_path)
    assert exc.value.code == "CANNOT_REVERT"


def test_revert_blocked_while_in_shipment(db_path, refs, hub_order):
    ref = hub_order()
    shipments.create_shipment("SH-9", 1, shipping_company_id=refs["company"], assignments={ref: 1}, db_path=db_path)
    with pytest.raises(LifecycleError) as exc:
        orders.revert_order(ref, db_path=db_path)
    assert exc.value.code == "ORDER_IN_SHIPMENT"


def test_cancel_requires_reason_and_is_terminal(db_path, new_order):
    ref = new_order(notes="gift")["local_order_id"]
    with pytest.raises(ValidationError) as exc:
        orders.cancel_order(ref, "  ", db_path=db_path)
    assert exc.value.code == "REASON_REQUIRED"

    res = orders.cancel_order(ref, "client changed mind", db_path=db_path)
    assert res["status"] == "cancelled"
    order = orders.get_order(ref, db_path=db_path)
    assert order.notes == "gift\n[Cancel]: client changed mind"
    assert order.history[-1].activity == "Order Cancelled. Reason: client changed mind"

    with pytest.raises(LifecycleError) as exc:
        orders.cancel_order(ref, "again", db_path=db_path)
    assert exc.value.code == "ORDER_CLOSED"
    with pytest.raises(LifecycleError):
        orders.assign_tracking(ref, "T1", db_path=db_path)


def test_cancel_unlinks_from_unshipped_shipment(db_path, refs, hub_order):
    ref = hub_order()
    shipments.create_shipment("SH-7", 1, shipping_company_id=refs["company"], assignments={ref: 1}, db_path=db_path)
    orders.cancel_order(ref, "lost at hub", db_path=db_path)
    order = orders.get_order(ref, db_path=db_path)
    assert order.shipment_id is None and order.box_id is None
    assert shipments.shipment_detail("SH-7", db_path=db_path)["orders"] == []


def test_split_moves_units_price_and_keeps_payment(db_path, new_order):
    ref = new_order(price=400.0, quantity=4, amount_paid=1000)["local_order_id"]
    res = orders.split_order(ref, 1, tracking_number="T-SPLIT", db_path=db_path)
    assert res["split"]["local_order_id"] == f"{ref}-S"
    assert res["split"]["tracking_number"] == "T-SPLIT"

    source = orders.get_order(ref, db_path=db_path)
    child = orders.get_order(f"{ref}-S", db_path=db_path)
    assert (source.quantity, source.price, source.amount_paid) == (3, 300.0, 1000.0)
    assert (child.quantity, child.price, child.amount_paid) == (1, 100.0, 0.0)
    assert child.split_from == source.id

    second = orders.split_order(ref, 1, db_path=db_path)
    assert second["split"]["local_order_id"] == f"{ref}-S2"


def test_split_rules(db_path, new_order):
    ref = new_order(quantity=2)["local_order_id"]
    with pytest.raises(ValidationError) as exc:
        orders.split_order(ref, 2, db_path=db_path)
    assert exc.value.code == "INVALID_SPLIT"
    orders.assign_tracking(ref, "T1", db_path=db_path)
    with pytest.raises(LifecycleError) as exc:
        orders.split_order(ref, 1, db_path=db_path)
    assert exc.value.code == "SPLIT_NOT_ALLOWED"


def test_order_detail(db_path, new_order):
    ref = new_order()["local_order_id"]
    detail = orders.order_detail(ref, db_path=db_path)
    assert detail["client"] == "Ahmed Salem"
    assert detail["store"] == "Noon"
    assert detail["financials"]["price_in_base"] == 4000
    assert detail["history"][0]["activity"] == "Order Created"
    with pytest.raises(MissingReferenceError):
        orders.order_detail("FCD9999", db_path=db_path)
