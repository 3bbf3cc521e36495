from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests
import streamlit as st

from jewelcore import schema
from jewelcore.config import Settings
from jewelcore.errors import ApiError
from jewelcore.loggers import get_logger

log = get_logger(__name__)


@dataclass
class Page:
    records: list[dict]
    number: int
    size: int
    total: Optional[int] = None


def normalize_record(raw: Mapping[str, Any]) -> dict:
    """
    Flatten one record into a single dict shape.

    The store returns either {id, documentId, field...} or
    {id, attributes: {field...}}. Downstream code only ever sees the flat form.
    """
    if not isinstance(raw, Mapping):
        raise ApiError(None, f"Unexpected record shape: {type(raw).__name__}")
    attrs = raw.get("attributes")
    if isinstance(attrs, Mapping):
        flat = dict(attrs)
        for key in (schema.ID, schema.DOCUMENT_ID):
            if key in raw:
                flat[key] = raw[key]
        return flat
    return dict(raw)


def record_key(record: Mapping[str, Any]) -> str:
    key = record.get(schema.DOCUMENT_ID) or record.get(schema.ID)
    if key in (None, ""):
        raise ValueError("Record has no id/documentId; it was never persisted.")
    return str(key)


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:200] or "request failed"
    if isinstance(body, Mapping):
        err = body.get("error")
        if isinstance(err, Mapping) and err.get("message"):
            return str(err["message"])
        if body.get("message"):
            return str(body["message"])
    return "request failed"


class RestClient:
    """
    Thin wrapper over the paginated document store.

    Every call either returns parsed JSON or raises ApiError; transport
    exceptions from requests never escape.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
        page_param: str = "page[number]",
        size_param: str = "page[size]",
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.page_param = page_param
        self.size_param = size_param
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "RestClient":
        return cls(
            settings.api_base_url,
            session=session,
            token=settings.api_token,
            timeout=settings.request_timeout,
            page_param=settings.page_param,
            size_param=settings.size_param,
        )

    def _url(self, collection: str, key: Optional[str] = None) -> str:
        url = f"{self.base_url}{collection}"
        return f"{url}/{key}" if key is not None else url

    def _send(self, method: str, url: str, *, params=None, body=None) -> Any:
        try:
            resp = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(None, str(e), url) from e

        if not 200 <= resp.status_code < 300:
            raise ApiError(resp.status_code, _error_message(resp), url)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(resp.status_code, "Response is not JSON", url) from e

    # -------------------------
    # Reads
    # -------------------------

    def get_page(
        self,
        collection: str,
        number: int,
        size: int,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Page:
        params = {self.page_param: int(number), self.size_param: int(size)}
        if filters:
            params.update(filters)

        url = self._url(collection)
        body = self._send("GET", url, params=params)
        if not isinstance(body, Mapping) or not isinstance(body.get("data"), list):
            raise ApiError(None, "Page response has no data list", url)

        pagination = (body.get("meta") or {}).get("pagination") or {}
        total = pagination.get("total")
        return Page(
            records=[normalize_record(r) for r in body["data"]],
            number=int(number),
            size=int(size),
            total=int(total) if total is not None else None,
        )

    # -------------------------
    # Writes
    # -------------------------

    def create(self, collection: str, fields: Mapping[str, Any]) -> dict:
        body = self._send("POST", self._url(collection), body={"data": dict(fields)})
        return normalize_record((body or {}).get("data") or {})

    def update(self, collection: str, key: str, fields: Mapping[str, Any]) -> dict:
        body = self._send("PUT", self._url(collection, key), body={"data": dict(fields)})
        return normalize_record((body or {}).get("data") or {})

    def delete(self, collection: str, key: str) -> None:
        self._send("DELETE", self._url(collection, key))


@st.cache_resource
def get_client(settings: Settings) -> RestClient:
    log.info("Using document store at %s", settings.api_base_url)
    return RestClient.from_settings(settings)
