# reship/domain/finance.py
"""
Financial aggregator: derived amounts of an order in the base currency.

Nothing here is stored. Every figure is recomputed from the raw order fields
(price, currency, commission, amount paid, weight, shipping cost) and rounded
to whole base-currency units once per line, half away from zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from reship.domain.errors import DataQualityError, ValidationError
from reship.domain.models import AppSettings, CommissionType, Order


PAYMENT_PAID = "paid"
PAYMENT_PARTIAL = "partial"
PAYMENT_UNPAID = "unpaid"


def _dec(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def round_units(value: Any) -> int:
    """Round to whole units, half away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(_dec(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class OrderFinancials:
    currency: Optional[str]
    exchange_rate: Optional[float]
    price_in_base: int
    commission: int
    shipping_cost: int
    amount_paid: int
    product_total: int        # price_in_base + commission
    product_remaining: int    # never negative
    total_due: int            # product_remaining + shipping_cost
    grand_total: int          # product_total + shipping_cost
    balance: int              # grand_total - amount_paid, may be negative
    payment_status: str
    issues: Tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.issues

    def as_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "exchange_rate": self.exchange_rate,
            "price_in_base": self.price_in_base,
            "commission": self.commission,
            "shipping_cost": self.shipping_cost,
            "amount_paid": self.amount_paid,
            "product_total": self.product_total,
            "product_remaining": self.product_remaining,
            "total_due": self.total_due,
            "grand_total": self.grand_total,
            "balance": self.balance,
            "payment_status": self.payment_status,
            "issues": list(self.issues),
        }


def exchange_rate(currency: Optional[str], rates: Mapping[str, float], settings: AppSettings) -> Optional[float]:
    """Rate of `currency` against the base currency, or None when not configured."""
    if not currency:
        return None
    code = currency.strip().upper()
    if code == settings.base_currency.upper():
        return 1.0
    rate = rates.get(code)
    if rate is None:
        return None
    return float(rate)


def shipping_rate(shipping_type: Any, settings: AppSettings) -> float:
    key = str(getattr(shipping_type, "value", shipping_type))
    if key not in settings.shipping_rates:
        raise ValidationError("INVALID_SHIPPING_TYPE", shipping_type=key)
    return float(settings.shipping_rates[key])


def shipping_cost_for(weight: float, shipping_type: Any, settings: AppSettings) -> float:
    """Raw (unrounded) weight x per-kg rate for the shipping type."""
    return float(_dec(weight) * _dec(shipping_rate(shipping_type, settings)))


def payment_status(grand_total: int, amount_paid: int) -> str:
    remaining = grand_total - amount_paid
    if remaining <= 0 and grand_total > 0:
        return PAYMENT_PAID
    if amount_paid > 0 and remaining > 0:
        return PAYMENT_PARTIAL
    return PAYMENT_UNPAID


def compute_financials(order: Order, rates: Mapping[str, float], settings: AppSettings) -> OrderFinancials:
    """
    Derive every monetary figure of `order`.

    A currency without a configured rate contributes 0 to the product price
    but is reported in `issues`, so callers can tell it apart from a free item.
    """
    issues: List[str] = []
    rate = exchange_rate(order.currency, rates, settings)
    if rate is None:
        issues.append(f"missing exchange rate for {order.currency or '<none>'}")

    raw_price = _dec(order.price) * _dec(rate or 0)
    price_in_base = round_units(raw_price)

    ctype = CommissionType(order.commission_type or CommissionType.PERCENTAGE)
    if ctype == CommissionType.PERCENTAGE:
        pct = order.commission_rate if order.commission_rate is not None else settings.commission_rate
        commission = round_units(raw_price * _dec(pct) / Decimal("100"))
    else:
        commission = round_units(order.commission_value)

    if order.shipping_cost is not None:
        raw_shipping = _dec(order.shipping_cost)
    elif order.weight:
        raw_shipping = _dec(shipping_cost_for(order.weight, order.shipping_type, settings))
    else:
        raw_shipping = Decimal("0")
    shipping = round_units(raw_shipping)

    paid = round_units(order.amount_paid)
    product_total = price_in_base + commission
    product_remaining = max(0, product_total - paid)
    grand_total = product_total + shipping
    balance = grand_total - paid

    return OrderFinancials(
        currency=order.currency,
        exchange_rate=rate,
        price_in_base=price_in_base,
        commission=commission,
        shipping_cost=shipping,
        amount_paid=paid,
        product_total=product_total,
        product_remaining=product_remaining,
        total_due=product_remaining + shipping,
        grand_total=grand_total,
        balance=balance,
        payment_status=payment_status(grand_total, paid),
        issues=tuple(issues),
    )


def require_complete(order: Order, financials: OrderFinancials) -> None:
    """Raise `DataQualityError` when a figure of `order` rests on missing data."""
    if not financials.complete:
        raise DataQualityError(
            "MISSING_EXCHANGE_RATE",
            currency=order.currency,
            order=order.local_order_id,
        )


def settlement_totals(items: Iterable[OrderFinancials]) -> Dict[str, int]:
    """Sum of the lines shown when a client collects several orders."""
    out = {"product_remaining": 0, "shipping_cost": 0, "total_due": 0, "orders": 0}
    for f in items:
        out["product_remaining"] += f.product_remaining
        out["shipping_cost"] += f.shipping_cost
        out["total_due"] += f.total_due
        out["orders"] += 1
    return out


def billing_stats(items: Iterable[OrderFinancials]) -> Dict[str, Any]:
    """Revenue, collection and outstanding totals over a set of orders."""
    revenue = collected = outstanding = 0
    counts = {PAYMENT_PAID: 0, PAYMENT_PARTIAL: 0, PAYMENT_UNPAID: 0}
    incomplete = 0
    for f in items:
        revenue += f.grand_total
        collected += f.amount_paid
        outstanding += max(0, f.balance)
        counts[f.payment_status] += 1
        if not f.complete:
            incomplete += 1
    rate = round_units(Decimal(collected) / Decimal(revenue) * 100) if revenue > 0 else 0
    return {
        "total_revenue": revenue,
        "total_collected": collected,
        "total_outstanding": outstanding,
        "paid_count": counts[PAYMENT_PAID],
        "partial_count": counts[PAYMENT_PARTIAL],
        "unpaid_count": counts[PAYMENT_UNPAID],
        "collection_rate": rate,
        "incomplete_count": incomplete,
    }
