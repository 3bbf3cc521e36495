from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from jewelcore import schema
from jewelcore.api import RestClient, record_key
from jewelcore.errors import RateNotFound
from jewelcore.utils import clean_str, to_float


def touch_key(touch: Optional[str]) -> str:
    return "".join(str(touch or "").split()).upper()


@dataclass(frozen=True)
class RateEntry:
    touch: str
    price_per_gram: float
    updated_at: str = ""
    key: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "RateEntry":
        touch = clean_str(rec.get(schema.RATE_TOUCH)) or clean_str(rec.get(schema.RATE_TOUCH_LEGACY)) or ""
        key = rec.get(schema.DOCUMENT_ID) or rec.get(schema.ID)
        return cls(
            touch=touch,
            price_per_gram=to_float(rec.get(schema.RATE_PRICE), 0.0),
            updated_at=clean_str(rec.get(schema.RATE_UPDATED_AT)) or "",
            key=str(key) if key not in (None, "") else None,
        )


class RateBook:
    """
    Current price per gram for each touch.

    The store keeps rate history as separate entries; the latest updatedAt for a
    touch is the current rate. ISO timestamps compare correctly as strings.
    """

    def __init__(self, entries: Iterable[RateEntry] = ()):
        self._current: dict[str, RateEntry] = {}
        for e in entries:
            self.add(e)

    def add(self, entry: RateEntry) -> None:
        k = touch_key(entry.touch)
        if not k:
            return
        have = self._current.get(k)
        if have is None or entry.updated_at >= have.updated_at:
            self._current[k] = entry

    def __len__(self) -> int:
        return len(self._current)

    def __contains__(self, touch: str) -> bool:
        return touch_key(touch) in self._current

    def entries(self) -> list[RateEntry]:
        return sorted(self._current.values(), key=lambda e: touch_key(e.touch))

    def rate_for(self, touch: Optional[str], code: Optional[str] = None) -> float:
        entry = self._current.get(touch_key(touch))
        if entry is None:
            raise RateNotFound(touch, code)
        return float(entry.price_per_gram)


def save_rate(client: RestClient, touch: str, price_per_gram: float) -> RateEntry:
    """Record a new current rate. History is kept; the newest entry wins."""
    touch = clean_str(touch)
    if not touch:
        raise ValueError("Touch is required.")
    try:
        price = float(price_per_gram)
    except (TypeError, ValueError):
        raise ValueError("Rate must be a number.")
    if price <= 0:
        raise ValueError("Rate must be > 0.")

    created = client.create(schema.RATES, {schema.RATE_TOUCH: touch, schema.RATE_PRICE: str(price)})
    return RateEntry(
        touch=touch,
        price_per_gram=price,
        updated_at=clean_str(created.get(schema.RATE_UPDATED_AT)) or "",
        key=record_key(created),
    )
