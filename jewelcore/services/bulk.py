"""
Catalog-wide percentage repricing of fixed-price units.

There is no multi-record transaction in the store, so each unit is written on
its own. A failed write is recorded and the batch carries on; the caller gets
counts plus the list of failures instead of an exception.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from jewelcore import schema
from jewelcore.api import RestClient
from jewelcore.errors import EngineError
from jewelcore.loggers import get_logger
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.pricing import adjust_price

log = get_logger(__name__)

ALL_CATEGORIES = "all"

OK = "ok"
PARTIAL = "partial"
NO_ELIGIBLE_UNITS = "no_eligible_units"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class FailedItem:
    code: str
    error: str


@dataclass
class BulkResult:
    status: str
    percent: float
    category: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    failed_items: list[FailedItem] = field(default_factory=list)
    updated: list[InventoryUnit] = field(default_factory=list)

    @property
    def eligible(self) -> int:
        return self.attempted + self.skipped


def _category_matches(unit: InventoryUnit, category: Optional[str]) -> bool:
    if category is None or category.strip().lower() == ALL_CATEGORIES:
        return True
    return unit.category.strip().lower() == category.strip().lower()


def eligible_units(units: Iterable[InventoryUnit], category: Optional[str] = ALL_CATEGORIES) -> list[InventoryUnit]:
    return [u for u in units if u.is_fixed_price and _category_matches(u, category)]


def _reprice_one(client: RestClient, unit: InventoryUnit, percent: float, cancel: threading.Event):
    # Returns None when the batch was cancelled before this write started.
    if cancel.is_set():
        return None
    if unit.is_draft:
        raise ValueError("unit was never saved")
    new_unit = replace(unit, price=adjust_price(unit.price or 0.0, percent))
    client.update(schema.BARCODES, unit.key, new_unit.to_payload())
    return new_unit


def bulk_adjust_prices(
    client: RestClient,
    units: Iterable[InventoryUnit],
    percent: float,
    *,
    category: Optional[str] = ALL_CATEGORIES,
    max_workers: int = 4,
    cancel: Optional[threading.Event] = None,
) -> BulkResult:
    """
    new_price = old_price + old_price * percent / 100 for every fixed-price
    unit in `category` ("all" for every category).

    All other fields of each unit are written back unchanged. Setting `cancel`
    stops new writes; writes already running are allowed to finish.
    """
    try:
        percent = float(percent)
    except (TypeError, ValueError):
        raise ValueError("Percentage must be a number.")
    if percent < -100:
        raise ValueError("Percentage below -100 would make prices negative.")
    if int(max_workers) <= 0:
        raise ValueError("max_workers must be > 0.")

    label = category or ALL_CATEGORIES
    targets = eligible_units(units, category)
    if not targets:
        log.info("Bulk repricing: no fixed-price units in %r", label)
        return BulkResult(status=NO_ELIGIBLE_UNITS, percent=percent, category=label)

    cancel = cancel or threading.Event()
    result = BulkResult(status=OK, percent=percent, category=label)

    with ThreadPoolExecutor(max_workers=int(max_workers)) as pool:
        futures = {pool.submit(_reprice_one, client, u, percent, cancel): u for u in targets}
        # Counters are only touched here, in the calling thread.
        for fut in as_completed(futures):
            unit = futures[fut]
            try:
                new_unit = fut.result()
            except (EngineError, ValueError) as e:
                log.warning("Repricing %s failed: %s", unit.code, e)
                result.attempted += 1
                result.failed += 1
                result.failed_items.append(FailedItem(code=unit.code, error=str(e)))
                continue
            if new_unit is None:
                result.skipped += 1
                continue
            result.attempted += 1
            result.succeeded += 1
            result.updated.append(new_unit)

    if result.skipped:
        result.status = CANCELLED
    elif result.failed:
        result.status = PARTIAL

    log.info(
        "Bulk repricing %+.2f%% (%s): %d/%d updated, %d failed, %d skipped",
        percent, label, result.succeeded, result.attempted, result.failed, result.skipped,
    )
    return result
