from __future__ import annotations

import re
from typing import Callable, Iterable, Mapping, Optional

from jewelcore import schema
from jewelcore.api import RestClient
from jewelcore.errors import ApiError, SequenceCollision
from jewelcore.loggers import get_logger
from jewelcore.services.fetch import fetch_all

log = get_logger(__name__)

INVOICE_PREFIX = "PJ-"
ESTIMATION_PREFIX = "EST-"


def parse_suffix(number: Optional[str], prefix: str) -> Optional[int]:
    if not number:
        return None
    m = re.fullmatch(re.escape(prefix) + r"(\d+)", str(number).strip())
    return int(m.group(1)) if m else None


def next_number(existing: Iterable[Optional[str]], prefix: str = INVOICE_PREFIX, width: int = 3) -> str:
    """
    Highest numeric suffix + 1, zero padded:
      PJ-001, PJ-003, PJ-007 -> PJ-008
    Numbers without the prefix or with a non-numeric suffix are ignored.
    """
    suffixes = [n for n in (parse_suffix(x, prefix) for x in existing) if n is not None]
    seq = max(suffixes) + 1 if suffixes else 1
    return f"{prefix}{seq:0{width}d}"


def allocate_number(
    client: RestClient,
    *,
    collection: str = schema.SALES_MASTERS,
    field: str = schema.HEADER_INVOICE,
    prefix: str = INVOICE_PREFIX,
    page_size: int = 100,
) -> str:
    """
    Scan every existing header and propose the next number.

    Not atomic: two callers that both allocate before either saves get the
    same number. create_numbered() handles the store rejecting the second one.
    """
    records = fetch_all(client, collection, page_size=page_size)
    return next_number((r.get(field) for r in records), prefix)


def create_numbered(
    client: RestClient,
    build_payload: Callable[[str], Mapping],
    *,
    collection: str = schema.SALES_MASTERS,
    field: str = schema.HEADER_INVOICE,
    prefix: str = INVOICE_PREFIX,
    page_size: int = 100,
) -> tuple[str, dict]:
    """
    Allocate a number, build the record with it and create it.

    If the store rejects the write as a duplicate, re-scan and try once more;
    a second rejection raises SequenceCollision. Other errors propagate.
    """
    number = allocate_number(client, collection=collection, field=field, prefix=prefix, page_size=page_size)
    try:
        return number, client.create(collection, build_payload(number))
    except ApiError as e:
        if not e.is_uniqueness_violation:
            raise
        log.warning("%s already taken, re-scanning %s", number, collection)

    retry = allocate_number(client, collection=collection, field=field, prefix=prefix, page_size=page_size)
    try:
        return retry, client.create(collection, build_payload(retry))
    except ApiError as e:
        if e.is_uniqueness_violation:
            raise SequenceCollision(retry) from e
        raise
