# stock_count/services/column_mapper.py
"""
Column Mapper - picks which upload columns feed a count session.

Each target field has two tiers of candidate header names. The preferred tier
is tried against every header first; the fallback tier only when no preferred
name matched. Within a tier, candidate order is priority order. Matching is
on normalized names, the returned headers are the originals.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import re

from stock_count.models import ColumnMapping

_HDR_BARCODE = (
    ["barcode", "bar code"],
    ["sku", "item code", "item id", "product code", "upc", "ean", "gtin", "code"],
)
_HDR_NAME = (
    ["name", "product name", "title"],
    ["item", "item name", "description", "product", "product title"],
)
_HDR_ON_HAND = (
    ["on hand", "on hand new"],
    ["qty on hand", "quantity on hand", "stock", "qty", "quantity", "available",
     "available quantity", "available (not editable)", "on hand (new)"],
)
_HDR_RESERVED = (
    ["reserved", "allocated", "on hold", "committed"],
    ["committed (not editable)", "allocated qty"],
)
_HDR_CITY = (
    ["city"],
    ["branch", "location", "warehouse", "store"],
)

_SEPARATORS = re.compile(r"[\s_/\-]+")


def norm_header(h: str) -> str:
    s = h or ""
    if s.startswith("\ufeff"):
        s = s[1:]
    s = s.lower().replace("(", "").replace(")", "")
    return _SEPARATORS.sub("", s).strip()


def _pick(headers: Sequence[str], normalized: Sequence[str], tiers: Tuple[List[str], List[str]]) -> Optional[str]:
    for tier in tiers:
        for cand in tier:
            target = norm_header(cand)
            for h, n in zip(headers, normalized):
                if n == target:
                    return h
    return None


@dataclass
class ColumnDetection:
    barcode: str
    name: str
    on_hand: str
    reserved: Optional[str] = None
    city: Optional[str] = None

    def to_mapping(self) -> ColumnMapping:
        return ColumnMapping(
            city=self.city or "",
            sku=self.barcode,
            name=self.name,
            systemQty=self.on_hand,
            committedQty=self.reserved or "",
        )

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {
            "barcode": self.barcode,
            "name": self.name,
            "onHand": self.on_hand,
            "reserved": self.reserved,
            "city": self.city,
        }


def detect_columns(headers: Iterable[str]) -> Optional[ColumnDetection]:
    """Resolve barcode/name/on-hand (required) plus reserved/city (optional); None if a required one is missing."""
    headers = [h for h in headers if isinstance(h, str) and h.strip()]
    normalized = [norm_header(h) for h in headers]

    barcode = _pick(headers, normalized, _HDR_BARCODE)
    name = _pick(headers, normalized, _HDR_NAME)
    on_hand = _pick(headers, normalized, _HDR_ON_HAND)
    if not (barcode and name and on_hand):
        return None
    return ColumnDetection(
        barcode=barcode,
        name=name,
        on_hand=on_hand,
        reserved=_pick(headers, normalized, _HDR_RESERVED),
        city=_pick(headers, normalized, _HDR_CITY),
    )


def mapping_fits(mapping: Optional[Dict[str, str]], headers: Iterable[str]) -> bool:
    """True when a stored mapping names existing columns for every required field."""
    if not mapping:
        return False
    present = set(headers)
    for field in ("sku", "name", "systemQty"):
        if not mapping.get(field) or mapping[field] not in present:
            return False
    for field in ("city", "committedQty"):
        if mapping.get(field) and mapping[field] not in present:
            return False
    return True
