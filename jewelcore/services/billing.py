from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from jewelcore import schema
from jewelcore.api import RestClient, record_key
from jewelcore.errors import EngineError
from jewelcore.loggers import get_logger
from jewelcore.services.inventory import InventoryUnit, find_unit
from jewelcore.services.pricing import (
    bill_totals,
    exchange_credit,
    fixed_line_price,
    sync_discount,
    unit_price,
    weight_line_price,
)
from jewelcore.services.rates import RateBook
from jewelcore.services.reconcile import ReconciliationReport
from jewelcore.services.sales import SaleHeader, SalesLineItem, audit_line_totals, line_from_unit
from jewelcore.services.sequence import INVOICE_PREFIX, create_numbered
from jewelcore.utils import clean_str, iso_now

log = get_logger(__name__)


@dataclass
class SaleRecord:
    header: SaleHeader
    lines: list[SalesLineItem] = field(default_factory=list)
    failed_lines: list[tuple[SalesLineItem, str]] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_lines


def _available(report: Optional[ReconciliationReport], code: str) -> Optional[float]:
    if report is None:
        return None
    for r in report.units:
        if r.unit.code == code:
            return r.available_quantity
    return 0.0


def line_for_code(
    units: Iterable[InventoryUnit],
    rates: RateBook,
    code: str,
    qty: float = 1,
    *,
    report: Optional[ReconciliationReport] = None,
    pending: Iterable[SalesLineItem] = (),
) -> SalesLineItem:
    """
    Price a scanned code against the current rates.

    With a reconciliation report, refuses to sell more than is available,
    counting what is already on the bill (`pending`) for the same code.
    """
    unit = find_unit(units, code)
    if unit is None:
        raise ValueError(f"No inventory unit with code {code}.")
    if float(qty) <= 0:
        raise ValueError("Quantity must be > 0.")

    available = _available(report, unit.code)
    if available is not None:
        billed = sum(float(l.qty) for l in pending if l.code == unit.code)
        if float(qty) + billed > available:
            raise ValueError(f"Only {available:g} of {unit.code} available ({billed:g} already on the bill).")

    price = unit_price(unit, rates, qty)
    rate = None if unit.is_fixed_price else rates.rate_for(unit.touch, unit.code)
    return line_from_unit(unit, price, qty=qty, rate_per_gram=rate)


def manual_line(
    product: str,
    *,
    qty: float = 1,
    price: Optional[float] = None,
    weight_grams: Optional[float] = None,
    touch: Optional[str] = None,
    rate_per_gram: Optional[float] = None,
    wastage_percent: float = 0.0,
) -> SalesLineItem:
    """A typed-in line with no barcode. It never affects stock reconciliation."""
    product = clean_str(product)
    if not product:
        raise ValueError("Product name is required.")

    if price is not None:
        lp = fixed_line_price(price, qty)
        return SalesLineItem(invoice_id="", product=product, is_fixed_price=True, qty=float(qty), price=float(price), total=lp.total)

    if weight_grams is None or rate_per_gram is None:
        raise ValueError("Give either a price, or weight and rate per gram.")
    lp = weight_line_price(weight_grams, rate_per_gram, wastage_percent, qty)
    return SalesLineItem(
        invoice_id="",
        product=product,
        weight_grams=float(weight_grams),
        touch=clean_str(touch),
        qty=float(qty),
        price=float(rate_per_gram),
        wastage_percent=float(wastage_percent),
        total=lp.total,
    )


def record_sale(
    client: RestClient,
    lines: list[SalesLineItem],
    *,
    customer_id: Optional[str] = None,
    payment_mode: str = "cash",
    discount_percent: Optional[float] = None,
    discount_amount: Optional[float] = None,
    exchange_weight_grams: float = 0.0,
    exchange_rate_per_gram: float = 0.0,
    tax_percent: float = 3.0,
    tax_enabled: bool = True,
    prefix: str = INVOICE_PREFIX,
    page_size: int = 100,
) -> SaleRecord:
    """
    Save a bill: header first (with the next invoice number), then each line.

    A line that fails to save is reported in failed_lines; the header and the
    other lines stay saved.
    """
    if not lines:
        raise ValueError("Add at least one item to the bill.")
    wrong = audit_line_totals(lines)
    if wrong:
        names = ", ".join(f"{l.code or l.product} ({l.total:g}, expected {exp:g})" for l, exp in wrong)
        raise ValueError(f"Line totals do not match their price fields: {names}")

    subtotal = sum(float(l.total) for l in lines)
    if discount_percent is None and discount_amount is None:
        discount_amount = 0.0
    _, disc_amount = sync_discount(subtotal, percent=discount_percent, amount=discount_amount)
    credit = exchange_credit(exchange_weight_grams, exchange_rate_per_gram)
    totals = bill_totals(
        subtotal,
        discount_amount=disc_amount,
        exchange=credit,
        tax_percent=tax_percent,
        tax_enabled=tax_enabled,
    )

    date = iso_now()
    total_qty = sum(float(l.qty) for l in lines)

    def build(number: str) -> dict:
        return SaleHeader.from_totals(
            number, totals,
            customer_id=customer_id, date=date, payment_mode=payment_mode, total_qty=total_qty,
        ).to_payload()

    number, created = create_numbered(
        client, build,
        collection=schema.SALES_MASTERS, field=schema.HEADER_INVOICE,
        prefix=prefix, page_size=page_size,
    )
    header = replace(
        SaleHeader.from_totals(number, totals, customer_id=customer_id, date=date, payment_mode=payment_mode, total_qty=total_qty),
        key=record_key(created),
    )

    out = SaleRecord(header=header)
    for line in lines:
        line = replace(line, invoice_id=number)
        try:
            key = record_key(client.create(schema.SALES, line.to_payload()))
        except (EngineError, ValueError) as e:
            log.warning("Line %s of %s not saved: %s", line.code or line.product, number, e)
            out.failed_lines.append((line, str(e)))
            continue
        out.lines.append(replace(line, key=key))

    log.info("Saved %s: %d line(s), %d failed, total %.2f", number, len(out.lines), len(out.failed_lines), totals.final_total)
    return out
