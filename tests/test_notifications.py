from datetime import date

import pytest

from reship.domain.errors import MissingReferenceError
from reship.domain.messages import loyalty_message, render_message
from reship.usecases import notifications, registry, reports, storage


def test_arrival_message_for_first_order(db_path, refs, hub_order, office_orders):
    storage.create_drawer("B", capacity=5, db_path=db_path)
    ref = hub_order(amount_paid=1000)
    office_orders(ref)
    storage.confirm_storage(ref, 2, "B-03", db_path=db_path)

    res = notifications.arrival_notification(ref, language="en", db_path=db_path)
    values = res["values"]
    assert values["greeting"] == "Hello Mr."
    assert values["clientName"] == "Ahmed Salem"
    assert values["location"] == "B-03"
    assert values["weight"] == "2"
    assert values["shippingCost"] == "560"
    assert values["productRemaining"] == "3,400"
    assert values["totalDue"] == "3,960"
    assert values["loyaltyMessage"] == "Thank you for your trust, we hope to meet your expectations."
    assert "your order #" + ref in res["text"]
    assert "{" not in res["text"]
    assert res["phone"] == "+222 4444 1111"
    assert res["complete"] is True


def test_returning_female_client_in_french(db_path, refs, new_order):
    new_order(client=refs["other_client"])
    ref = new_order(client=refs["other_client"])["local_order_id"]
    res = notifications.arrival_notification(ref, language="fr", db_path=db_path)
    assert res["language"] == "fr"
    assert res["values"]["greeting"] == "Bonjour Mme"
    assert "Fast Comand" in res["values"]["loyaltyMessage"]
    assert res["values"]["location"] == "N/A"


def test_unknown_language_uses_default_and_custom_template(db_path, refs, new_order):
    registry.update_settings({"template_en": "{greeting} {clientName}: {orderId}"}, db_path=db_path)
    ref = new_order()["local_order_id"]
    res = notifications.arrival_notification(ref, language="de", db_path=db_path)
    assert res["language"] == "en"
    assert res["text"] == f"Hello Mr. Ahmed Salem: {ref}"


def test_missing_rate_withholds_the_message(db_path, refs, hub_order, office_orders):
    storage.create_drawer("A", capacity=10, db_path=db_path)
    ref = hub_order(currency="EUR")
    office_orders(ref)
    storage.confirm_storage(ref, 2, "A-01", db_path=db_path)

    res = notifications.arrival_notification(ref, db_path=db_path)
    assert res["complete"] is False
    assert res["issues"] == ["missing exchange rate for EUR"]
    assert res["text"] is None
    assert res["values"]["shippingCost"] == "560"

    registry.set_currency("EUR", 44, db_path=db_path)
    res = notifications.arrival_notification(ref, db_path=db_path)
    assert res["complete"] is True
    assert res["issues"] == []
    assert "Total Due: 5,400" in res["text"]


def test_loyalty_and_render_helpers():
    assert loyalty_message(0, "en", "Shop") == loyalty_message(1, "en", "Shop")
    assert loyalty_message(2, "en", "Shop").endswith("Shop is always at your service.")
    assert render_message("{a} {b} {c}", {"a": "1", "b": "2"}) == "1 2 {c}"


def test_label_data_uses_na_for_missing_fields(db_path, refs, new_order):
    ref = new_order()["local_order_id"]
    label = notifications.label_data(ref, db_path=db_path)
    assert label["order"] == ref
    assert label["client"] == "Ahmed Salem"
    assert label["store"] == "Noon"
    assert label["address"] == "N/A"
    assert label["weight"] == "N/A"
    assert label["location"] == "N/A"
    with pytest.raises(MissingReferenceError):
        notifications.label_data("nope", db_path=db_path)


def test_reports(db_path, refs, new_order, hub_order, office_orders):
    late = new_order(order_date="2024-01-01")["local_order_id"]
    storage.create_drawer("A", capacity=5, db_path=db_path)
    ref = hub_order()
    office_orders(ref)
    storage.confirm_storage(ref, 1, "A-01", db_path=db_path)

    rows = reports.late_orders(today=date(2024, 2, 1), db_path=db_path)
    assert [r["order"] for r in rows] == [late]
    assert rows[0]["days_late"] == 18

    occupancy = reports.storage_occupancy(db_path=db_path)
    assert occupancy[0]["stored_orders"] == 1
    assert occupancy[0]["fill_pct"] == 20

    overview = reports.orders_overview(status="stored", db_path=db_path)
    assert overview[0]["order"] == ref
    assert overview[0]["shipment"] == "SH-1"
    assert overview[0]["location"] == "A-01"

    ships = reports.shipments_overview(db_path=db_path)
    assert ships[0]["boxes"] == "1/1"
    assert ships[0]["orders"] == 1
