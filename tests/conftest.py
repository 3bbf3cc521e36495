# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - No network: RestClient talks to FakeStore, an in-memory stand-in for
#   the paginated document store, plugged in as its requests session.
# - FakeStore can fail a given page or a given record write on demand, and
#   run one-shot hooks just before a POST or PUT is applied.
# - Records are stored flat; wrapped=True serves them as {id, attributes}.
# ---------------------------------------------------------------------

from __future__ import annotations

import json
from typing import Callable, Optional
from urllib.parse import urlparse

import pytest

from jewelcore import schema
from jewelcore.api import RestClient
from jewelcore.services.inventory import InventoryUnit
from jewelcore.services.sales import SalesLineItem

BASE_URL = "http://store.test"


class FakeResponse:
    def __init__(self, status_code: int, body=None):
        self.status_code = status_code
        self._body = body
        self.content = b"" if body is None else json.dumps(body).encode("utf-8")
        self.text = self.content.decode("utf-8")

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeStore:
    def __init__(self, *, wrapped: bool = False, include_total: bool = True):
        self.collections: dict[str, list[dict]] = {}
        self.headers: dict[str, str] = {}
        self.wrapped = wrapped
        self.include_total = include_total
        self.fail_pages: set[tuple[str, int]] = set()
        self.fail_keys: set[str] = set()
        self.unique_fields: dict[str, str] = {}
        self.before_post: list[Callable[["FakeStore", str, dict], None]] = []
        self.before_put: list[Callable[["FakeStore", str, dict], None]] = []
        self.calls: list[tuple[str, str]] = []
        self._next_id = 1

    # -------- seeding --------
    def add(self, collection: str, **fields) -> dict:
        rec = dict(fields)
        rec.setdefault(schema.ID, self._next_id)
        rec.setdefault(schema.DOCUMENT_ID, f"doc{rec[schema.ID]}")
        self._next_id = max(self._next_id, int(rec[schema.ID])) + 1
        self.collections.setdefault(collection, []).append(rec)
        return rec

    def records(self, collection: str) -> list[dict]:
        return self.collections.get(collection, [])

    def find(self, collection: str, key: str) -> Optional[dict]:
        for r in self.records(collection):
            if str(r.get(schema.DOCUMENT_ID)) == key or str(r.get(schema.ID)) == key:
                return r
        return None

    def _shape(self, rec: dict) -> dict:
        if not self.wrapped:
            return dict(rec)
        attrs = {k: v for k, v in rec.items() if k not in (schema.ID, schema.DOCUMENT_ID)}
        return {schema.ID: rec[schema.ID], "attributes": attrs}

    # -------- requests.Session surface --------
    def request(self, method, url, params=None, json=None, timeout=None):
        path = urlparse(url).path
        self.calls.append((method, path))
        collection, _, key = path.partition("/api/")[2].partition("/")
        collection = "/api/" + collection

        if method == "GET":
            number = int(params["page[number]"])
            size = int(params["page[size]"])
            if (collection, number) in self.fail_pages:
                return FakeResponse(500, {"error": {"message": "Internal Server Error"}})
            rows = self.records(collection)
            chunk = rows[(number - 1) * size: number * size]
            body = {"data": [self._shape(r) for r in chunk]}
            if self.include_total:
                body["meta"] = {"pagination": {"page": number, "pageSize": size, "total": len(rows)}}
            return FakeResponse(200, body)

        if method == "POST":
            for hook in list(self.before_post):
                self.before_post.remove(hook)
                hook(self, collection, json["data"])
            field = self.unique_fields.get(collection)
            if field and any(r.get(field) == json["data"].get(field) for r in self.records(collection)):
                return FakeResponse(400, {"error": {"message": f"This attribute must be unique: {field}"}})
            rec = self.add(collection, **json["data"])
            return FakeResponse(200, {"data": self._shape(rec)})

        if method == "PUT":
            for hook in list(self.before_put):
                self.before_put.remove(hook)
                hook(self, key, json["data"])
            if key in self.fail_keys:
                return FakeResponse(500, {"error": {"message": "write failed"}})
            rec = self.find(collection, key)
            if rec is None:
                return FakeResponse(404, {"error": {"message": "Not Found"}})
            rec.update(json["data"])
            return FakeResponse(200, {"data": self._shape(rec)})

        if method == "DELETE":
            rec = self.find(collection, key)
            if rec is None:
                return FakeResponse(404, {"error": {"message": "Not Found"}})
            self.collections[collection].remove(rec)
            return FakeResponse(200, {"data": self._shape(rec)})

        return FakeResponse(405, {"error": {"message": "Method Not Allowed"}})


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def client(store: FakeStore) -> RestClient:
    return RestClient(BASE_URL, session=store)


# ---------- Handy builders ----------
def weight_unit(code: str, *, qty: int = 1, weight: float = 5.5, touch: str = "22K",
                wastage: float = 3.0, category: str = "Gold", key: Optional[str] = None) -> InventoryUnit:
    return InventoryUnit(
        code=code, product=f"Item {code}", category=category, is_fixed_price=False,
        weight_grams=weight, touch=touch, wastage_percent=wastage, quantity=qty,
        key=key or f"doc-{code}",
    )


def fixed_unit(code: str, *, price: float = 1000.0, qty: int = 1, category: str = "Silver",
               key: Optional[str] = None) -> InventoryUnit:
    return InventoryUnit(
        code=code, product=f"Item {code}", category=category, is_fixed_price=True,
        price=price, quantity=qty, key=key or f"doc-{code}",
    )


def sale(code: Optional[str], qty: float = 1, invoice: str = "PJ-001") -> SalesLineItem:
    return SalesLineItem(invoice_id=invoice, code=code, product="x", qty=qty, price=100.0, is_fixed_price=True, total=100.0 * qty)
