from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional

from jewelcore import schema
from jewelcore.api import RestClient, record_key
from jewelcore.loggers import get_logger
from jewelcore.utils import clean_str, iso_now, to_bool, to_float, to_int

log = get_logger(__name__)

CODE_MIN = 10_000_000_000_000
CODE_MAX = 99_999_999_999_999

# Fields that identify a unit; they never change after confirmation.
IDENTITY_FIELDS = ("code", "is_fixed_price")


@dataclass(frozen=True)
class InventoryUnit:
    """
    One barcoded item batch.

    Weight-based units carry weight_grams/touch/wastage_percent; fixed-price
    units carry price. Which set applies is decided by is_fixed_price.
    """

    code: str
    product: str = ""
    category: str = ""
    is_fixed_price: bool = False
    weight_grams: Optional[float] = None
    touch: Optional[str] = None
    wastage_percent: Optional[float] = None
    price: Optional[float] = None
    quantity: int = 1
    tray_number: Optional[str] = None
    created_at: Optional[str] = None
    key: Optional[str] = None  # store record key; None while still a draft

    @property
    def is_draft(self) -> bool:
        return self.key is None

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "InventoryUnit":
        fixed = to_bool(rec.get(schema.UNIT_FIXED_PRICE))
        key = rec.get(schema.DOCUMENT_ID) or rec.get(schema.ID)
        return cls(
            code=str(rec.get(schema.UNIT_CODE) or "").strip(),
            product=clean_str(rec.get(schema.UNIT_PRODUCT)) or "",
            category=clean_str(rec.get(schema.UNIT_CATEGORY)) or "",
            is_fixed_price=fixed,
            weight_grams=None if fixed else to_float(rec.get(schema.UNIT_WEIGHT), 0.0),
            touch=None if fixed else clean_str(rec.get(schema.UNIT_TOUCH)),
            wastage_percent=None if fixed else to_float(rec.get(schema.UNIT_WASTAGE), 0.0),
            price=to_float(rec.get(schema.UNIT_PRICE), 0.0) if fixed else None,
            quantity=to_int(rec.get(schema.UNIT_QTY), 0),
            tray_number=clean_str(rec.get(schema.UNIT_TRAY)),
            created_at=clean_str(rec.get(schema.UNIT_CREATED_AT)),
            key=str(key) if key not in (None, "") else None,
        )

    def to_payload(self) -> dict:
        """Wire fields for POST/PUT. Every field is written so updates never drop data."""
        payload = {
            schema.UNIT_CODE: self.code,
            schema.UNIT_PRODUCT: self.product,
            schema.UNIT_CATEGORY: self.category,
            schema.UNIT_FIXED_PRICE: self.is_fixed_price,
            schema.UNIT_QTY: str(self.quantity),
            schema.UNIT_TRAY: self.tray_number or "",
        }
        if self.is_fixed_price:
            payload[schema.UNIT_PRICE] = _num(self.price)
        else:
            payload[schema.UNIT_WEIGHT] = _num(self.weight_grams)
            payload[schema.UNIT_TOUCH] = self.touch or ""
            payload[schema.UNIT_WASTAGE] = _num(self.wastage_percent)
        return payload


def _num(v: Optional[float]) -> str:
    if v is None:
        return ""
    return f"{float(v):.6f}".rstrip("0").rstrip(".")


def validate_unit(unit: InventoryUnit) -> InventoryUnit:
    if not unit.code:
        raise ValueError("Code is required.")
    if not unit.product:
        raise ValueError("Product name is required.")
    if int(unit.quantity) < 0:
        raise ValueError("Quantity must be >= 0.")

    if unit.is_fixed_price:
        if unit.price is None:
            raise ValueError("Fixed-price items need a price.")
        if float(unit.price) < 0:
            raise ValueError("Price must be >= 0.")
        if unit.weight_grams is not None or unit.touch is not None or unit.wastage_percent is not None:
            raise ValueError("Fixed-price items cannot carry weight, touch or wastage.")
    else:
        if unit.weight_grams is None or unit.touch is None:
            raise ValueError("Weight-based items need weight and touch.")
        if float(unit.weight_grams) < 0:
            raise ValueError("Weight must be >= 0.")
        if float(unit.wastage_percent or 0) < 0:
            raise ValueError("Wastage % must be >= 0.")
        if unit.price is not None:
            raise ValueError("Weight-based items cannot carry a fixed price.")
    return unit


def generate_code(rng: Optional[random.Random] = None) -> str:
    """Random 14-digit numeral, as printed under the barcode."""
    r = rng or random
    return str(r.randint(CODE_MIN, CODE_MAX))


def draft_unit(
    *,
    product: str,
    category: str = "",
    is_fixed_price: bool = False,
    weight_grams: Optional[float] = None,
    touch: Optional[str] = None,
    wastage_percent: Optional[float] = None,
    price: Optional[float] = None,
    quantity: int = 1,
    tray_number: Optional[str] = None,
    known_codes: Iterable[str] = (),
    rng: Optional[random.Random] = None,
) -> InventoryUnit:
    """
    Build an unsaved unit with a fresh code that does not clash with known_codes.
    Nothing is written until confirm_unit().
    """
    taken = set(known_codes)
    code = generate_code(rng)
    while code in taken:
        code = generate_code(rng)

    if is_fixed_price:
        weight_grams = touch = wastage_percent = None
    else:
        price = None
        wastage_percent = 0.0 if wastage_percent is None else wastage_percent

    unit = InventoryUnit(
        code=code,
        product=str(product).strip(),
        category=str(category or "").strip(),
        is_fixed_price=bool(is_fixed_price),
        weight_grams=None if weight_grams is None else float(weight_grams),
        touch=clean_str(touch),
        wastage_percent=None if wastage_percent is None else float(wastage_percent),
        price=None if price is None else float(price),
        quantity=int(quantity),
        tray_number=clean_str(tray_number),
    )
    return validate_unit(unit)


def confirm_unit(client: RestClient, unit: InventoryUnit) -> InventoryUnit:
    if not unit.is_draft:
        raise ValueError(f"Unit {unit.code} is already confirmed.")
    validate_unit(unit)

    stamped = replace(unit, created_at=iso_now())
    payload = stamped.to_payload()
    payload[schema.UNIT_CREATED_AT] = stamped.created_at
    created = client.create(schema.BARCODES, payload)

    log.info("Confirmed unit %s (%s)", unit.code, unit.product)
    return replace(stamped, key=record_key(created))


def update_unit(client: RestClient, current: InventoryUnit, **changes: Any) -> InventoryUnit:
    """Edit non-identity fields of a confirmed unit."""
    if current.is_draft:
        raise ValueError("Draft units are edited locally; confirm them first.")
    for f in IDENTITY_FIELDS:
        if f in changes and changes[f] != getattr(current, f):
            raise ValueError(f"{f} cannot be changed after confirmation.")
    if "key" in changes or "created_at" in changes:
        raise ValueError("Record key and creation time are managed by the store.")

    updated = validate_unit(replace(current, **changes))
    client.update(schema.BARCODES, current.key, updated.to_payload())
    return updated


def delete_unit(client: RestClient, unit: InventoryUnit) -> None:
    # Sales that referenced this code stay as they are; reconciliation
    # counts them as orphaned.
    if unit.is_draft:
        raise ValueError("Draft units are not stored; nothing to delete.")
    client.delete(schema.BARCODES, unit.key)
    log.info("Deleted unit %s", unit.code)


def find_unit(units: Iterable[InventoryUnit], code: str) -> Optional[InventoryUnit]:
    code = str(code).strip()
    return next((u for u in units if u.code == code), None)
