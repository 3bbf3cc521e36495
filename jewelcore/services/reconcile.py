"""
Available/sold status for every inventory unit.

The store cannot join units to sale lines, so this is a left outer join on
`code` done in memory: each unit's sold quantity is the sum of qty over all
sale lines carrying its code. Lines are indexed by code first; the result is
the same as comparing every unit with every line.

Rules:
- a sale line without a code never counts against any unit;
- a sale line whose code matches no unit (deleted unit) is orphaned and ignored;
- two units with the same code are a data error and are reported, never merged.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from jewelcore.errors import DuplicateCode
from jewelcore.loggers import get_logger
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.sales import SalesLineItem

log = get_logger(__name__)

AVAILABLE = "available"
LOW = "low"
OUT_OF_STOCK = "out_of_stock"

LOW_STOCK_THRESHOLD = 2


@dataclass(frozen=True)
class ReconciledUnit:
    unit: InventoryUnit
    sold_quantity: float
    available_quantity: float
    status: str


@dataclass
class ReconciliationReport:
    units: list[ReconciledUnit] = field(default_factory=list)
    duplicate_codes: list[str] = field(default_factory=list)
    orphaned_sales: int = 0
    manual_sales: int = 0

    def by_status(self, status: str) -> list[ReconciledUnit]:
        return [r for r in self.units if r.status == status]


def stock_status(available_quantity: float) -> str:
    if available_quantity <= 0:
        return OUT_OF_STOCK
    if available_quantity <= LOW_STOCK_THRESHOLD:
        return LOW
    return AVAILABLE


def index_sales(sales: Iterable[SalesLineItem]) -> tuple[dict[str, float], int]:
    """Sum sold qty per code. Returns (totals, number of lines without a code)."""
    totals: dict[str, float] = defaultdict(float)
    manual = 0
    for s in sales:
        if not s.code:
            manual += 1
            continue
        totals[s.code] += float(s.qty)
    return dict(totals), manual


def find_duplicate_codes(units: Iterable[InventoryUnit]) -> list[str]:
    counts = Counter(u.code for u in units if u.code)
    return sorted(c for c, n in counts.items() if n > 1)


def reconcile(
    units: Iterable[InventoryUnit],
    sales: Iterable[SalesLineItem],
    *,
    strict: bool = True,
) -> ReconciliationReport:
    """
    Join units against sale lines.

    With strict=True a duplicate code raises DuplicateCode. With strict=False
    units with duplicate codes are left out of the view and listed in
    report.duplicate_codes instead, so the rest of the stock is still usable.
    """
    units = list(units)
    sales = list(sales)
    duplicates = find_duplicate_codes(units)
    if duplicates:
        log.warning("Duplicate inventory codes: %s", ", ".join(duplicates))
        if strict:
            raise DuplicateCode(duplicates)

    sold_by_code, manual = index_sales(sales)
    dup = set(duplicates)
    known = {u.code for u in units if u.code}

    report = ReconciliationReport(
        duplicate_codes=duplicates,
        orphaned_sales=sum(1 for s in sales if s.code and s.code not in known),
        manual_sales=manual,
    )

    for u in units:
        if u.code in dup:
            continue
        sold = sold_by_code.get(u.code, 0.0) if u.code else 0.0
        available = float(u.quantity) - sold
        report.units.append(
            ReconciledUnit(
                unit=u,
                sold_quantity=sold,
                available_quantity=available,
                status=stock_status(available),
            )
        )
    return report
