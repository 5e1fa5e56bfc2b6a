# stock_count/services/counts.py
"""
Counts Reconciliation Store.

One document per session (``counts:<sessionId>``) holding the ordered list of
count rows. ``sku`` is the natural key; ``id`` is assigned once per SKU and is
what patches address. ``counted_qty`` of None means "not counted yet".
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
import logging, math

from stock_count.blobs import StorageBackend, COUNTS_NS
from stock_count.documents import DocumentStore
from stock_count.errors import NotFoundError, ValidationError
from stock_count.utils import now_iso, to_number, clean_text

logger = logging.getLogger(__name__)


def counts_key(session_id: str) -> str:
    return f"counts:{session_id}"


def normalize_seed_row(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "city": clean_text(r.get("city")),
        "sku": clean_text(r.get("sku")),
        "name": clean_text(r.get("name")),
        "system_qty": to_number(r.get("system_qty") if r.get("system_qty") is not None else 0),
        "committed_qty": to_number(r.get("committed_qty") if r.get("committed_qty") is not None else 0),
    }


def parse_counted_qty(v: Any) -> Optional[float]:
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    if isinstance(v, bool):
        raise ValidationError("counted_qty must be a number or null")
    try:
        n = float(v if isinstance(v, (int, float)) else str(v).strip())
    except (ValueError, OverflowError):
        raise ValidationError("counted_qty must be a number or null")
    if not math.isfinite(n):
        raise ValidationError("counted_qty must be a finite number or null")
    if isinstance(v, (int, float)):
        return v
    return int(n) if n.is_integer() else n


class CountsStore:

    def __init__(self, backend: StorageBackend):
        self.docs = DocumentStore(backend, COUNTS_NS)

    def get_all(self, session_id: str) -> List[Dict[str, Any]]:
        return self.docs.read_json(counts_key(session_id), [])

    def seed(self, session_id: str, rows: Iterable[Dict[str, Any]]) -> int:
        """Upsert rows by SKU; returns the number of rows now in the session."""
        result = self.get_all(session_id)
        index_by_sku = {r.get("sku"): i for i, r in enumerate(result)}
        next_id = max((int(r.get("id") or 0) for r in result), default=0) + 1
        ts = now_iso()
        created = updated = 0

        for raw in rows:
            n = normalize_seed_row(raw)
            i = index_by_sku.get(n["sku"])
            if i is not None:
                existing = result[i]
                result[i] = {
                    **existing,
                    **n,
                    "id": existing["id"],
                    "session_id": session_id,
                    "counted_qty": existing.get("counted_qty"),
                    "updated_at": ts,
                }
                updated += 1
            else:
                result.append({
                    "id": next_id,
                    "session_id": session_id,
                    **n,
                    "counted_qty": None,
                    "updated_at": ts,
                })
                index_by_sku[n["sku"]] = len(result) - 1
                next_id += 1
                created += 1

        self.docs.write_json(counts_key(session_id), result)
        logger.info("Seeded session %s: %d new, %d updated, %d total", session_id, created, updated, len(result))
        return len(result)

    def patch_count(self, session_id: str, row_id: int, counted_qty: Any) -> Dict[str, Any]:
        rows = self.get_all(session_id)
        for row in rows:
            if row.get("id") == row_id:
                row["counted_qty"] = parse_counted_qty(counted_qty)
                row["updated_at"] = now_iso()
                self.docs.write_json(counts_key(session_id), rows)
                return row
        raise NotFoundError("row not found")

    def increment(self, session_id: str, row: Dict[str, Any], by: float = 1) -> Dict[str, Any]:
        """Scan increment: counted (None counts as 0 here) + ``by``."""
        current = row.get("counted_qty")
        return self.patch_count(session_id, row["id"], (current or 0) + by)
