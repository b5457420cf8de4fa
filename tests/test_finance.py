import pytest

from reship.config import DEFAULTS
from reship.domain import finance
from reship.domain.errors import DataQualityError, ValidationError
from reship.domain.models import AppSettings, CommissionType, Order, ShippingType

SETTINGS = AppSettings.from_defaults(DEFAULTS)
RATES = {"USD": 40.0, "AED": 11.0}


def _order(**kwargs):
    base = dict(id="o1", local_order_id="FCD1001", client_id="c1", store_id="s1",
                price=100.0, currency="USD", commission_rate=10.0)
    base.update(kwargs)
    return Order(**base)


def test_price_commission_and_product_total():
    fin = finance.compute_financials(_order(), RATES, SETTINGS)
    assert fin.exchange_rate == 40.0
    assert fin.price_in_base == 4000
    assert fin.commission == 400
    assert fin.product_total == 4400
    assert fin.shipping_cost == 0
    assert fin.total_due == 4400
    assert fin.payment_status == "unpaid"
    assert fin.complete


def test_shipping_from_weight_when_cost_not_stored():
    fin = finance.compute_financials(_order(weight=2.0), RATES, SETTINGS)
    assert fin.shipping_cost == 560
    assert fin.grand_total == 4960
    fast = finance.compute_financials(_order(weight=2.0, shipping_type=ShippingType.FAST), RATES, SETTINGS)
    assert fast.shipping_cost == 900


def test_stored_shipping_cost_wins_over_weight():
    fin = finance.compute_financials(_order(weight=2.0, shipping_cost=300.0), RATES, SETTINGS)
    assert fin.shipping_cost == 300


def test_overpayment_floors_remaining_product_at_zero():
    fin = finance.compute_financials(_order(amount_paid=5000, weight=2.0), RATES, SETTINGS)
    assert fin.product_remaining == 0
    assert fin.total_due == 560
    assert fin.balance == -40
    assert fin.payment_status == "paid"


def test_partial_payment():
    fin = finance.compute_financials(_order(amount_paid=1000), RATES, SETTINGS)
    assert fin.product_remaining == 3400
    assert fin.payment_status == "partial"


def test_base_currency_needs_no_rate():
    fin = finance.compute_financials(_order(currency="mru", price=1500), {}, SETTINGS)
    assert fin.exchange_rate == 1.0
    assert fin.price_in_base == 1500
    assert fin.complete


def test_missing_rate_is_flagged_not_silent():
    order = _order(currency="EUR")
    fin = finance.compute_financials(order, RATES, SETTINGS)
    assert fin.price_in_base == 0
    assert fin.exchange_rate is None
    assert fin.issues == ("missing exchange rate for EUR",)
    assert not fin.complete
    with pytest.raises(DataQualityError) as exc:
        finance.require_complete(order, fin)
    assert exc.value.code == "MISSING_EXCHANGE_RATE"


def test_commission_falls_back_to_settings_rate():
    fin = finance.compute_financials(_order(commission_rate=None), RATES, SETTINGS)
    assert fin.commission == 400


def test_fixed_commission():
    order = _order(commission_type=CommissionType.FIXED, commission_rate=None, commission_value=250.4)
    fin = finance.compute_financials(order, RATES, SETTINGS)
    assert fin.commission == 250
    assert fin.product_total == 4250


def test_rounding_half_away_from_zero_once_per_line():
    assert finance.round_units(2.5) == 3
    assert finance.round_units(-2.5) == -3
    assert finance.round_units(0.49) == 0
    fin = finance.compute_financials(_order(currency="MRU", price=10.5), RATES, SETTINGS)
    assert fin.price_in_base == 11
    assert fin.commission == 1
    assert fin.product_total == 12


@pytest.mark.parametrize(
    "grand_total, paid, expected",
    [(100, 0, "unpaid"), (100, 40, "partial"), (100, 100, "paid"), (100, 150, "paid"), (0, 0, "unpaid")],
)
def test_payment_status(grand_total, paid, expected):
    assert finance.payment_status(grand_total, paid) == expected


def test_unknown_shipping_type_rejected():
    with pytest.raises(ValidationError):
        finance.shipping_cost_for(1.0, "express", SETTINGS)


def test_settlement_and_billing_stats():
    fins = [
        finance.compute_financials(_order(weight=2.0), RATES, SETTINGS),
        finance.compute_financials(_order(weight=1.0, amount_paid=4400), RATES, SETTINGS),
        finance.compute_financials(_order(currency="EUR"), RATES, SETTINGS),
    ]
    totals = finance.settlement_totals(fins[:2])
    assert totals == {"product_remaining": 4400, "shipping_cost": 840, "total_due": 5240, "orders": 2}

    stats = finance.billing_stats(fins)
    assert stats["total_revenue"] == 4960 + 4680 + 0
    assert stats["total_collected"] == 4400
    assert stats["total_outstanding"] == 4960 + 280
    assert (stats["paid_count"], stats["partial_count"], stats["unpaid_count"]) == (0, 1, 2)
    assert stats["incomplete_count"] == 1
    assert stats["collection_rate"] == 46
