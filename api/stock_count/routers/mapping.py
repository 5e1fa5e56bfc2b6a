from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from stock_count.dependencies import get_mapping
from stock_count.errors import ValidationError
from stock_count.models import MappingIn, MappingDetectIn
from stock_count.services import MappingStore
from stock_count.services.column_mapper import detect_columns

router = APIRouter(prefix="/api", tags=["mapping"])


@router.get("/mapping")
def get_mapping_for_session(
    sessionId: str = Query(""),
    store: MappingStore = Depends(get_mapping),
):
    if not sessionId:
        raise ValidationError("sessionId required")
    return store.get(sessionId)


@router.put("/mapping")
def put_mapping(payload: MappingIn, store: MappingStore = Depends(get_mapping)) -> Dict[str, bool]:
    mapping = payload.mapping.model_dump() if payload.mapping is not None else None
    store.put(payload.sessionId, mapping)
    return {"ok": True}


@router.post("/mapping-detect")
def detect_mapping(payload: MappingDetectIn) -> Dict[str, Any]:
    """Suggest a mapping for a header row; ``mapping`` is null when barcode, name or on-hand is missing."""
    detection = detect_columns(payload.headers)
    if detection is None:
        return {"mapping": None, "detected": None, "error": "no mapping found"}
    return {"mapping": detection.to_mapping().model_dump(), "detected": detection.as_dict()}
