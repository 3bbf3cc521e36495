"""
Error taxonomy for the reconciliation and pricing engine.

Read-path errors (ApiError, FetchIncomplete) abort whatever depends on a
consistent snapshot. Per-item errors inside batch writes are collected into
result objects instead (see services.bulk.BulkResult), so nothing here is
raised out of a batch.
"""

from __future__ import annotations

from typing import Iterable, Optional


class EngineError(Exception):
    """Base class for domain errors surfaced to the dashboard."""


class ApiError(EngineError):
    def __init__(self, status: Optional[int], message: str, url: str = ""):
        self.status = status
        self.message = message
        self.url = url
        where = f" ({url})" if url else ""
        super().__init__(f"HTTP {status if status is not None else '-'}: {message}{where}")

    @property
    def is_uniqueness_violation(self) -> bool:
        if self.status == 409:
            return True
        return self.status == 400 and "unique" in self.message.lower()


class FetchIncomplete(EngineError):
    """A paginated read stopped part-way; the partial data must not be used."""

    def __init__(self, collection: str, page: int, fetched: int, reason: str = ""):
        self.collection = collection
        self.page = page
        self.fetched = fetched
        self.reason = reason
        msg = f"Fetching {collection} aborted at page {page} after {fetched} record(s)"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DuplicateCode(EngineError):
    def __init__(self, codes: Iterable[str]):
        self.codes = sorted(set(codes))
        super().__init__(f"Duplicate inventory code(s): {', '.join(self.codes)}")


class RateNotFound(EngineError):
    def __init__(self, touch: Optional[str], code: Optional[str] = None):
        self.touch = touch
        self.code = code
        unit = f" for unit {code}" if code else ""
        super().__init__(f"No rate found for touch {touch!r}{unit}")


class SequenceCollision(EngineError):
    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Number {number} was taken by another writer; retry did not help")
