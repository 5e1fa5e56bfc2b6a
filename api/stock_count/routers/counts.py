from __future__ import annotations
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from stock_count.dependencies import get_counts
from stock_count.errors import ValidationError
from stock_count.models import CountPatchIn, SeedIn
from stock_count.services import CountsStore

router = APIRouter(prefix="/api", tags=["counts"])


@router.get("/counts")
def list_counts(
    sessionId: str = Query(""),
    counts: CountsStore = Depends(get_counts),
) -> List[Dict[str, Any]]:
    if not sessionId:
        raise ValidationError("sessionId required")
    return counts.get_all(sessionId)


@router.patch("/counts")
def patch_count(payload: CountPatchIn, counts: CountsStore = Depends(get_counts)) -> Dict[str, Any]:
    if payload.id is None:
        raise ValidationError("id required")
    if not payload.sessionId:
        raise ValidationError("sessionId required")
    return counts.patch_count(payload.sessionId, payload.id, payload.counted_qty)


@router.post("/counts-seed")
def seed_counts(payload: SeedIn, counts: CountsStore = Depends(get_counts)) -> Dict[str, int]:
    if not payload.sessionId or payload.rows is None:
        raise ValidationError("sessionId and rows[] required")
    return {"inserted": counts.seed(payload.sessionId, payload.rows)}
