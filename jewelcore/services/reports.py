from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from jewelcore.services.pricing import PricedUnit
from jewelcore.services.reconcile import OUT_OF_STOCK, ReconciledUnit

STOCK_COLUMNS = [
    "code",
    "product",
    "category",
    "touch",
    "weight_g",
    "price",
    "tray",
    "quantity",
    "sold_qty",
    "available_qty",
    "status",
    "unit_value",
]


@dataclass(frozen=True)
class StockStats:
    available_products: float
    total_weight_grams: float


def stock_stats(rows: Iterable[ReconciledUnit]) -> StockStats:
    """Header cards of the stock report: pieces on hand and grams on hand."""
    pieces = 0.0
    grams = 0.0
    for r in rows:
        if r.status == OUT_OF_STOCK:
            continue
        pieces += r.available_quantity
        if not r.unit.is_fixed_price:
            grams += float(r.unit.weight_grams or 0.0) * r.available_quantity
    return StockStats(available_products=pieces, total_weight_grams=round(grams, 3))


def format_weight(grams: float) -> str:
    if grams >= 1000:
        return f"{grams / 1000:.2f}kg"
    return f"{grams:.1f}g"


def stock_report(
    rows: Iterable[ReconciledUnit],
    priced: Optional[Iterable[PricedUnit]] = None,
) -> pd.DataFrame:
    """One row per unit; unit_value is the current price of one piece (NaN when unpriced)."""
    values = {}
    for p in priced or ():
        values[p.unit.code] = p.price.total if p.ok else None

    data = [
        {
            "code": r.unit.code,
            "product": r.unit.product,
            "category": r.unit.category,
            "touch": r.unit.touch or "",
            "weight_g": r.unit.weight_grams,
            "price": r.unit.price,
            "tray": r.unit.tray_number or "",
            "quantity": r.unit.quantity,
            "sold_qty": r.sold_quantity,
            "available_qty": r.available_quantity,
            "status": r.status,
            "unit_value": values.get(r.unit.code),
        }
        for r in rows
    ]
    df = pd.DataFrame(data, columns=STOCK_COLUMNS)

    # Safe numeric conversions
    for col in ["weight_g", "price", "sold_qty", "available_qty", "unit_value"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def filter_stock(df: pd.DataFrame, search: str = "", status: Optional[str] = None) -> pd.DataFrame:
    """Case-insensitive match on product, code or tray; optional exact status."""
    out = df
    s = (search or "").strip().lower()
    if s:
        mask = (
            out["product"].str.lower().str.contains(s, regex=False)
            | out["code"].str.lower().str.contains(s, regex=False)
            | out["tray"].str.lower().str.contains(s, regex=False)
        )
        out = out[mask]
    if status:
        out = out[out["status"] == status]
    return out.reset_index(drop=True)
