"""
Line and bill pricing.

Weight-based line:
    base    = weight_grams * rate_per_gram(touch)
    wastage = base * wastage_percent / 100      (making charge is a wastage %)
    total   = (base + wastage) * qty

Fixed-price line:
    total = price * qty

Bill:
    taxable = subtotal - discount_amount - exchange_credit
    tax     = taxable * tax_percent / 100       (0 when tax is off or taxable <= 0)
    cgst/sgst are the two halves of tax
    final   = max(0, taxable + tax)

The same functions price a single sale, a stock report and a bulk repricing,
so every path agrees on the numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from jewelcore.errors import RateNotFound
from jewelcore.loggers import get_logger
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.rates import RateBook
from jewelcore.utils import money, round_half_up

log = get_logger(__name__)


@dataclass(frozen=True)
class LinePrice:
    base: float
    wastage: float
    total: float


@dataclass(frozen=True)
class PricedUnit:
    unit: InventoryUnit
    price: Optional[LinePrice] = None
    error: Optional[RateNotFound] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BillTotals:
    subtotal: float
    discount_percent: float
    discount_amount: float
    exchange_credit: float
    taxable_amount: float
    tax_percent: float
    tax_amount: float
    cgst: float
    sgst: float
    final_total: float


def _non_negative(name: str, value: float) -> float:
    v = float(value)
    if v < 0:
        raise ValueError(f"{name} must be >= 0.")
    return v


# -------------------------
# Line pricing
# -------------------------

def weight_line_price(weight_grams: float, rate_per_gram: float, wastage_percent: float = 0.0, qty: float = 1) -> LinePrice:
    w = _non_negative("Weight", weight_grams)
    r = _non_negative("Rate", rate_per_gram)
    pct = _non_negative("Wastage %", wastage_percent or 0.0)
    q = _non_negative("Quantity", qty)

    base = w * r
    wastage = base * pct / 100.0
    return LinePrice(
        base=money(base * q),
        wastage=money(wastage * q),
        total=money((base + wastage) * q),
    )


def fixed_line_price(price: float, qty: float = 1) -> LinePrice:
    total = _non_negative("Price", price) * _non_negative("Quantity", qty)
    return LinePrice(base=money(total), wastage=0.0, total=money(total))


def unit_price(unit: InventoryUnit, rates: RateBook, qty: float = 1) -> LinePrice:
    """Price `qty` pieces of a unit against the current rate book."""
    if unit.is_fixed_price:
        return fixed_line_price(unit.price or 0.0, qty)
    rate = rates.rate_for(unit.touch, unit.code)
    return weight_line_price(unit.weight_grams or 0.0, rate, unit.wastage_percent or 0.0, qty)


def price_units(units: Iterable[InventoryUnit], rates: RateBook) -> list[PricedUnit]:
    """
    Price every unit. A missing rate fails only that unit; the rest are priced.
    """
    out: list[PricedUnit] = []
    for u in units:
        try:
            out.append(PricedUnit(unit=u, price=unit_price(u, rates)))
        except RateNotFound as e:
            log.warning("Unpriced unit %s: %s", u.code, e)
            out.append(PricedUnit(unit=u, error=e))
    return out


# -------------------------
# Bill-level adjustments
# -------------------------

def exchange_credit(weight_grams: float, rate_per_gram: float) -> float:
    """Old-metal exchange value, taken off the bill before tax."""
    return money(_non_negative("Exchange weight", weight_grams) * _non_negative("Exchange rate", rate_per_gram))


def discount_amount_from_percent(subtotal: float, percent: float) -> float:
    return round_half_up(float(subtotal) * float(percent) / 100.0)


def discount_percent_from_amount(subtotal: float, amount: float) -> float:
    if float(subtotal) <= 0:
        return 0.0
    return round_half_up(float(amount) / float(subtotal) * 100.0, 2)


def sync_discount(subtotal: float, *, percent: Optional[float] = None, amount: Optional[float] = None) -> tuple[float, float]:
    """
    Return (percent, amount) derived from whichever one the operator edited.
    Pass exactly one of them.
    """
    if (percent is None) == (amount is None):
        raise ValueError("Give either a discount percent or a discount amount.")
    if percent is not None:
        return float(percent), discount_amount_from_percent(subtotal, percent)
    return discount_percent_from_amount(subtotal, amount), float(amount)


def bill_totals(
    subtotal: float,
    *,
    discount_amount: float = 0.0,
    exchange: float = 0.0,
    tax_percent: float = 3.0,
    tax_enabled: bool = True,
) -> BillTotals:
    sub = money(subtotal)
    disc = money(_non_negative("Discount", discount_amount))
    exch = money(_non_negative("Exchange credit", exchange))
    pct = _non_negative("Tax %", tax_percent) if tax_enabled else 0.0

    taxable = money(sub - disc - exch)
    tax = money(taxable * pct / 100.0) if taxable > 0 else 0.0
    cgst = money(tax / 2.0)
    sgst = money(tax - cgst)

    return BillTotals(
        subtotal=sub,
        discount_percent=discount_percent_from_amount(sub, disc),
        discount_amount=disc,
        exchange_credit=exch,
        taxable_amount=taxable,
        tax_percent=pct,
        tax_amount=tax,
        cgst=cgst,
        sgst=sgst,
        final_total=money(max(0.0, taxable + tax)),
    )


# -------------------------
# Repricing
# -------------------------

def adjust_price(old_price: float, percent: float) -> float:
    """old + old * percent / 100; percent may be negative."""
    old = float(old_price)
    return money(old + old * float(percent) / 100.0)
