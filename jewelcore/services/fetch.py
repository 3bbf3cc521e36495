"""
Full-collection reads.

Anything that feeds reconciliation or stats must see the whole collection.
A page request that fails part-way aborts the read with FetchIncomplete;
a silently truncated list would make available items look sold (or the
other way round), so no partial result is ever returned.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from jewelcore import schema
from jewelcore.api import RestClient
from jewelcore.errors import ApiError, FetchIncomplete
from jewelcore.loggers import get_logger
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.rates import RateBook, RateEntry
from jewelcore.services.sales import SaleHeader, SalesLineItem

log = get_logger(__name__)

# Hard stop for a store that keeps returning full pages forever.
MAX_PAGES = 10_000


def fetch_all(
    client: RestClient,
    collection: str,
    *,
    page_size: int = 100,
    filters: Optional[Mapping[str, Any]] = None,
) -> list[dict]:
    """
    Return every record of `collection`, in page order.

    Stops on a short page, an empty page, or once meta.pagination.total records
    have been collected. If the store reported a total and the pages ran out
    before reaching it, the read is treated as truncated.
    """
    if int(page_size) <= 0:
        raise ValueError("Page size must be > 0.")

    out: list[dict] = []
    expected: Optional[int] = None
    number = 1

    while number <= MAX_PAGES:
        try:
            page = client.get_page(collection, number, int(page_size), filters)
        except ApiError as e:
            log.error("Fetch of %s failed on page %d: %s", collection, number, e)
            raise FetchIncomplete(collection, number, len(out), str(e)) from e

        log.debug("%s page %d: %d record(s)", collection, number, len(page.records))
        out.extend(page.records)
        if page.total is not None:
            expected = page.total

        if expected is not None and len(out) >= expected:
            break
        if len(page.records) < int(page_size):
            if expected is not None and len(out) < expected:
                raise FetchIncomplete(
                    collection, number, len(out),
                    f"store reported {expected} record(s) but pages ended",
                )
            break
        number += 1
    else:
        raise FetchIncomplete(collection, number, len(out), f"more than {MAX_PAGES} pages")

    return out


@dataclass
class Snapshot:
    units: list[InventoryUnit] = field(default_factory=list)
    sales: list[SalesLineItem] = field(default_factory=list)
    rates: RateBook = field(default_factory=RateBook)
    headers: list[SaleHeader] = field(default_factory=list)


def load_units(client: RestClient, page_size: int = 100) -> list[InventoryUnit]:
    return [InventoryUnit.from_record(r) for r in fetch_all(client, schema.BARCODES, page_size=page_size)]


def load_sales(client: RestClient, page_size: int = 100) -> list[SalesLineItem]:
    return [SalesLineItem.from_record(r) for r in fetch_all(client, schema.SALES, page_size=page_size)]


def load_rates(client: RestClient, page_size: int = 100) -> RateBook:
    entries = [RateEntry.from_record(r) for r in fetch_all(client, schema.RATES, page_size=page_size)]
    return RateBook(entries)


def load_headers(client: RestClient, page_size: int = 100) -> list[SaleHeader]:
    return [SaleHeader.from_record(r) for r in fetch_all(client, schema.SALES_MASTERS, page_size=page_size)]


def load_snapshot(client: RestClient, *, page_size: int = 100, with_headers: bool = False) -> Snapshot:
    """
    Load units, sales and rates concurrently and wait for all of them.

    The three reads are independent; reconciliation starts only after every
    one has finished. The first failure propagates and the snapshot is dropped.
    """
    loaders = {
        "units": load_units,
        "sales": load_sales,
        "rates": load_rates,
    }
    if with_headers:
        loaders["headers"] = load_headers

    with ThreadPoolExecutor(max_workers=len(loaders)) as pool:
        futures = {name: pool.submit(fn, client, page_size) for name, fn in loaders.items()}
        results = {name: f.result() for name, f in futures.items()}

    snap = Snapshot(**results)
    log.info(
        "Snapshot loaded: %d unit(s), %d sale line(s), %d rate(s)",
        len(snap.units), len(snap.sales), len(snap.rates),
    )
    return snap
