from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from jewelcore import schema
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.pricing import BillTotals, LinePrice, fixed_line_price, weight_line_price
from jewelcore.utils import clean_str, to_bool, to_float


@dataclass(frozen=True)
class SalesLineItem:
    """
    One row of a confirmed sale.

    Holds a copy of the unit's fields at sale time, never a reference, so old
    bills do not move when a unit is edited or deleted. code is None for items
    typed in by hand. For weight-based lines, price is the rate per gram used.
    """

    invoice_id: str
    code: Optional[str] = None
    product: str = ""
    is_fixed_price: bool = False
    weight_grams: Optional[float] = None
    touch: Optional[str] = None
    qty: float = 1
    price: float = 0.0
    wastage_percent: float = 0.0
    total: float = 0.0
    key: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "SalesLineItem":
        code = clean_str(rec.get(schema.LINE_CODE)) or clean_str(rec.get(schema.LINE_CODE_LEGACY))
        weight = to_float(rec.get(schema.LINE_WEIGHT))
        touch = clean_str(rec.get(schema.LINE_TOUCH))
        if schema.UNIT_FIXED_PRICE in rec:
            fixed = to_bool(rec.get(schema.UNIT_FIXED_PRICE))
        else:
            fixed = weight is None or touch is None
        key = rec.get(schema.DOCUMENT_ID) or rec.get(schema.ID)
        return cls(
            invoice_id=str(rec.get(schema.LINE_INVOICE_ID) or ""),
            code=code,
            product=clean_str(rec.get(schema.LINE_PRODUCT)) or "",
            is_fixed_price=fixed,
            weight_grams=weight,
            touch=touch,
            qty=to_float(rec.get(schema.LINE_QTY), 1.0),
            price=to_float(rec.get(schema.LINE_PRICE), 0.0),
            wastage_percent=to_float(rec.get(schema.LINE_WASTAGE), 0.0),
            total=to_float(rec.get(schema.LINE_TOTAL), 0.0),
            key=str(key) if key not in (None, "") else None,
        )

    def to_payload(self) -> dict:
        payload = {
            schema.LINE_INVOICE_ID: self.invoice_id,
            schema.LINE_PRODUCT: self.product,
            schema.UNIT_FIXED_PRICE: self.is_fixed_price,
            schema.LINE_QTY: str(self.qty),
            schema.LINE_PRICE: str(self.price),
            schema.LINE_TOTAL: str(self.total),
        }
        if self.code:
            payload[schema.LINE_CODE] = self.code
            payload[schema.LINE_CODE_LEGACY] = self.code
        if not self.is_fixed_price:
            payload[schema.LINE_WEIGHT] = str(self.weight_grams or 0.0)
            payload[schema.LINE_TOUCH] = self.touch or ""
            payload[schema.LINE_WASTAGE] = str(self.wastage_percent)
        return payload


@dataclass(frozen=True)
class SaleHeader:
    invoice: str
    customer_id: Optional[str] = None
    date: str = ""
    payment_mode: str = "cash"
    subtotal: float = 0.0
    discount_percent: float = 0.0
    discount_amount: float = 0.0
    exchange_credit: float = 0.0
    tax_percent: float = 0.0
    tax_amount: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    total: float = 0.0
    total_qty: float = 0.0
    key: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "SaleHeader":
        key = rec.get(schema.DOCUMENT_ID) or rec.get(schema.ID)
        return cls(
            invoice=str(rec.get(schema.HEADER_INVOICE) or ""),
            customer_id=clean_str(rec.get(schema.HEADER_CUSTOMER)),
            date=clean_str(rec.get(schema.HEADER_DATE)) or "",
            payment_mode=clean_str(rec.get(schema.HEADER_PAYMENT_MODE)) or "cash",
            subtotal=to_float(rec.get(schema.HEADER_SUBTOTAL), 0.0),
            discount_percent=to_float(rec.get(schema.HEADER_DISCOUNT_PERCENT), 0.0),
            discount_amount=to_float(rec.get(schema.HEADER_DISCOUNT_AMOUNT), 0.0),
            exchange_credit=to_float(rec.get(schema.HEADER_EXCHANGE_CREDIT), 0.0),
            tax_percent=to_float(rec.get(schema.HEADER_TAX_PERCENT), 0.0),
            tax_amount=to_float(rec.get(schema.HEADER_TAX_AMOUNT), 0.0),
            cgst=to_float(rec.get(schema.HEADER_CGST), 0.0),
            sgst=to_float(rec.get(schema.HEADER_SGST), 0.0),
            total=to_float(rec.get(schema.HEADER_TOTAL), 0.0),
            total_qty=to_float(rec.get(schema.HEADER_TOTAL_QTY), 0.0),
            key=str(key) if key not in (None, "") else None,
        )

    @classmethod
    def from_totals(
        cls,
        invoice: str,
        totals: BillTotals,
        *,
        customer_id: Optional[str],
        date: str,
        payment_mode: str,
        total_qty: float,
    ) -> "SaleHeader":
        return cls(
            invoice=invoice,
            customer_id=customer_id,
            date=date,
            payment_mode=payment_mode,
            subtotal=totals.subtotal,
            discount_percent=totals.discount_percent,
            discount_amount=totals.discount_amount,
            exchange_credit=totals.exchange_credit,
            tax_percent=totals.tax_percent,
            tax_amount=totals.tax_amount,
            cgst=totals.cgst,
            sgst=totals.sgst,
            total=totals.final_total,
            total_qty=total_qty,
        )

    def to_payload(self) -> dict:
        return {
            schema.HEADER_INVOICE: self.invoice,
            schema.HEADER_CUSTOMER: self.customer_id or "",
            schema.HEADER_DATE: self.date,
            schema.HEADER_PAYMENT_MODE: self.payment_mode,
            schema.HEADER_SUBTOTAL: str(self.subtotal),
            schema.HEADER_DISCOUNT_PERCENT: str(self.discount_percent),
            schema.HEADER_DISCOUNT_AMOUNT: str(self.discount_amount),
            schema.HEADER_EXCHANGE_CREDIT: str(self.exchange_credit),
            schema.HEADER_TAX_PERCENT: str(self.tax_percent),
            schema.HEADER_TAX_AMOUNT: str(self.tax_amount),
            schema.HEADER_CGST: str(self.cgst),
            schema.HEADER_SGST: str(self.sgst),
            schema.HEADER_TOTAL: str(self.total),
            schema.HEADER_TOTAL_QTY: str(self.total_qty),
        }


def line_from_unit(unit: InventoryUnit, price: LinePrice, *, qty: float, rate_per_gram: Optional[float]) -> SalesLineItem:
    """Copy a priced unit into a sale line (invoice id is filled in when the bill is saved)."""
    return SalesLineItem(
        invoice_id="",
        code=unit.code,
        product=unit.product,
        is_fixed_price=unit.is_fixed_price,
        weight_grams=None if unit.is_fixed_price else unit.weight_grams,
        touch=None if unit.is_fixed_price else unit.touch,
        qty=float(qty),
        price=float(unit.price or 0.0) if unit.is_fixed_price else float(rate_per_gram or 0.0),
        wastage_percent=0.0 if unit.is_fixed_price else float(unit.wastage_percent or 0.0),
        total=price.total,
    )


def expected_line_total(item: SalesLineItem) -> float:
    """Recompute a stored line total from the line's own fields."""
    if item.is_fixed_price:
        return fixed_line_price(item.price, item.qty).total
    return weight_line_price(item.weight_grams or 0.0, item.price, item.wastage_percent, item.qty).total


def audit_line_totals(items: Iterable[SalesLineItem], tolerance: float = 0.01) -> list[tuple[SalesLineItem, float]]:
    """Return (line, expected_total) for every line whose stored total is off."""
    out = []
    for item in items:
        try:
            expected = expected_line_total(item)
        except ValueError:
            out.append((item, float("nan")))
            continue
        if abs(expected - float(item.total)) > tolerance:
            out.append((item, expected))
    return out
