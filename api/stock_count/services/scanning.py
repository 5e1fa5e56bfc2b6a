# stock_count/services/scanning.py
"""
Scan matching and effective quantities.

Effective counted quantity nets destroyed stock out of what was counted:
``max(0, (counted_qty ?? system_qty) - destroyed)``. It is derived on every
read and never written back into a count row.
"""
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging, re

from stock_count.services.counts import CountsStore
from stock_count.utils import clean_text, to_number

logger = logging.getLogger(__name__)

_WS = re.compile(r"\s+")
_NOT_CODE = re.compile(r"[^\w-]", re.ASCII)
_DIGITS = re.compile(r"\d+", re.ASCII)


def normalize_code(raw: Any) -> str:
    s = "" if raw is None else str(raw)
    if s.startswith("\ufeff"):
        s = s[1:]
    s = _WS.sub("", s.strip())
    return _NOT_CODE.sub("", s)


def code_variants(raw: Any) -> List[str]:
    """Normalized code, then its leading-zero-stripped form for purely numeric codes."""
    code = normalize_code(raw)
    if not code:
        return []
    variants = [code]
    if _DIGITS.fullmatch(code):
        stripped = code.lstrip("0") or "0"
        if stripped != code:
            variants.append(stripped)
    return variants


def match_row(rows: List[Dict[str, Any]], raw_code: Any, city: Optional[str] = None) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    (normalized code, first row whose SKU equals a variant, tried in variant order).

    Stored SKUs are compared as-is first; only when no variant hits exactly are
    they normalized the same way as the scanned code.
    """
    variants = code_variants(raw_code)
    code = variants[0] if variants else ""
    candidates = [r for r in rows if not city or r.get("city") == city]
    for v in variants:
        for row in candidates:
            if clean_text(row.get("sku")) == v:
                return code, row
    keyed = [(normalize_code(r.get("sku")), r) for r in candidates]
    for v in variants:
        for sku, row in keyed:
            if sku == v:
                return code, row
    return code, None


def effective_qty(row: Mapping[str, Any], destroyed: float = 0) -> float:
    counted = row.get("counted_qty")
    base = to_number(row.get("system_qty")) if counted is None else to_number(counted)
    return max(0, base - to_number(destroyed))


def difference(row: Mapping[str, Any], destroyed: float = 0) -> float:
    return effective_qty(row, destroyed) - to_number(row.get("system_qty"))


def reconcile(
    rows: List[Dict[str, Any]],
    destroyed_by_sku: Mapping[str, float],
    city: Optional[str] = None,
    sku: Optional[str] = None,
    discrepancies_only: bool = False,
) -> Dict[str, Any]:
    """Rows enriched with destroyed/effective/difference, filtered and deduplicated by SKU, plus totals."""
    out: List[Dict[str, Any]] = []
    seen = set()
    for r in rows:
        if city and r.get("city") != city:
            continue
        if sku and r.get("sku") != sku:
            continue
        key = r.get("sku") or r.get("id")
        if key in seen:
            continue
        seen.add(key)

        destroyed = destroyed_by_sku.get(r.get("sku", ""), 0)
        eff = effective_qty(r, destroyed)
        diff = difference(r, destroyed)
        if discrepancies_only and diff == 0:
            continue
        out.append({**r, "destroyed_qty": destroyed, "effective_qty": eff, "difference": diff})

    totals = {
        "lines": len(out),
        "system": sum(to_number(r.get("system_qty")) for r in out),
        "committed": sum(to_number(r.get("committed_qty")) for r in out),
        "counted": sum(r["effective_qty"] for r in out),
        "difference": sum(r["difference"] for r in out),
    }
    return {"rows": out, "totals": totals}


def lookup(counts: CountsStore, session_id: str, raw_code: Any, city: Optional[str] = None) -> Dict[str, Any]:
    code, row = match_row(counts.get_all(session_id), raw_code, city)
    if row is None:
        return {"status": "not_found", "code": code}
    return {"status": "found", "code": code, "row": row}


def register_scan(counts: CountsStore, session_id: str, raw_code: Any, city: Optional[str] = None) -> Dict[str, Any]:
    """Count one unit of the scanned item (read, add 1, patch)."""
    code, row = match_row(counts.get_all(session_id), raw_code, city)
    if row is None:
        logger.info("Scan %s in session %s: not found", code, session_id)
        return {"status": "not_found", "code": code}
    updated = counts.increment(session_id, row)
    logger.info("Scan %s in session %s: row %s -> %s", code, session_id, updated["id"], updated["counted_qty"])
    return {"status": "counted", "code": code, "row": updated}
