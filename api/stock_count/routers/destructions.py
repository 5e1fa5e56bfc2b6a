from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from stock_count.dependencies import get_destructions
from stock_count.errors import ValidationError
from stock_count.models import DestructionIn
from stock_count.services import DestructionsLedger

router = APIRouter(prefix="/api", tags=["destructions"])


def _line_id(raw: Optional[str]) -> Optional[int]:
    """Query ids arrive as text; "3" and "3.0" both address line 3."""
    if not raw:
        return None
    try:
        n = float(raw)
    except ValueError:
        raise ValidationError("id must be an integer")
    if not n.is_integer():
        raise ValidationError("id must be an integer")
    return int(n)


@router.get("/destructions")
def list_destructions(
    sessionId: str = Query(""),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> List[Dict[str, Any]]:
    if not sessionId:
        raise ValidationError("sessionId required")
    return ledger.list(sessionId)


@router.post("/destructions", status_code=201)
def add_destruction(payload: DestructionIn, ledger: DestructionsLedger = Depends(get_destructions)) -> Dict[str, Any]:
    return ledger.add(payload.sessionId, payload.sku, payload.name, payload.qty, payload.reason)


@router.delete("/destructions")
def remove_destruction(
    id: Optional[str] = Query(None),
    sessionId: str = Query(""),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> Dict[str, bool]:
    line_id = _line_id(id)
    ledger.remove(sessionId, line_id)
    return {"ok": True}


@router.get("/destructions-totals")
def destruction_totals(
    sessionId: str = Query(""),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> Dict[str, Any]:
    if not sessionId:
        raise ValidationError("sessionId required")
    return ledger.totals_by_sku(sessionId)
