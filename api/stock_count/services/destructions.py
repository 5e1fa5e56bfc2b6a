from __future__ import annotations
from collections import defaultdict
from typing import Any, Dict, List, Optional
import logging

from stock_count.blobs import StorageBackend, DESTRUCTIONS_NS
from stock_count.documents import DocumentStore
from stock_count.errors import ValidationError
from stock_count.utils import now_iso, to_number, clean_text

logger = logging.getLogger(__name__)


def destructions_key(session_id: str) -> str:
    return f"destructions:{session_id}"


class DestructionsLedger:
    """Write-off lines per session, oldest first. Lines are never edited, only removed."""

    def __init__(self, backend: StorageBackend):
        self.docs = DocumentStore(backend, DESTRUCTIONS_NS)

    def list(self, session_id: str) -> List[Dict[str, Any]]:
        return self.docs.read_json(destructions_key(session_id), [])

    def add(
        self,
        session_id: str,
        sku: Optional[str],
        name: Optional[str] = None,
        qty: Any = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        sku = clean_text(sku)
        if not session_id or not sku:
            raise ValidationError("sessionId and sku required")
        lines = self.list(session_id)
        line = {
            "id": max((int(l.get("id") or 0) for l in lines), default=0) + 1,
            "session_id": session_id,
            "sku": sku,
            "name": name or "",
            "qty": to_number(qty or 0),
            "reason": reason or "",
            "created_at": now_iso(),
        }
        lines.append(line)
        self.docs.write_json(destructions_key(session_id), lines)
        logger.info("Destruction %s/%s: %s x%s (%s)", session_id, line["id"], sku, line["qty"], line["reason"])
        return line

    def remove(self, session_id: Optional[str], line_id: Optional[int]) -> None:
        if not session_id or not line_id:
            raise ValidationError("sessionId and id required")
        lines = self.list(session_id)
        remaining = [l for l in lines if l.get("id") != line_id]
        self.docs.write_json(destructions_key(session_id), remaining)
        if len(remaining) != len(lines):
            logger.info("Removed destruction %s/%s", session_id, line_id)

    def totals_by_sku(self, session_id: str) -> Dict[str, float]:
        return total_destroyed_by_sku(self.list(session_id))


def total_destroyed_by_sku(lines: List[Dict[str, Any]]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(int)
    for l in lines:
        totals[l.get("sku", "")] += to_number(l.get("qty"))
    return dict(totals)
