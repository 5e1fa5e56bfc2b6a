from __future__ import annotations
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from stock_count.dependencies import get_counts
from stock_count.errors import ValidationError
from stock_count.models import ScanIn
from stock_count.services import CountsStore
from stock_count.services.scanning import lookup, register_scan

router = APIRouter(prefix="/api", tags=["scans"])


@router.post("/scan")
def scan_code(payload: ScanIn, counts: CountsStore = Depends(get_counts)) -> Dict[str, Any]:
    """Count one unit of the scanned SKU/barcode."""
    if not payload.sessionId or not (payload.code or "").strip():
        raise ValidationError("sessionId and code required")
    return register_scan(counts, payload.sessionId, payload.code, payload.city or None)


@router.get("/lookup")
def lookup_code(
    sessionId: str = Query(""),
    code: str = Query(""),
    city: Optional[str] = Query(None),
    counts: CountsStore = Depends(get_counts),
) -> Dict[str, Any]:
    if not sessionId or not code.strip():
        raise ValidationError("sessionId and code required")
    return lookup(counts, sessionId, code, city or None)
