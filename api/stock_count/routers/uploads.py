from __future__ import annotations
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from stock_count.dependencies import get_counts, get_mapping
from stock_count.errors import ValidationError
from stock_count.services import CountsStore, MappingStore
from stock_count.services.csv_import import prepare_upload

router = APIRouter(prefix="/api", tags=["uploads"])
logger = logging.getLogger(__name__)


@router.post("/counts-upload")
def upload_counts(
    sessionId: str = Form(""),
    city: str = Form(""),
    file: UploadFile = File(...),
    counts: CountsStore = Depends(get_counts),
    mappings: MappingStore = Depends(get_mapping),
) -> Dict[str, Any]:
    """
    Seed a session straight from an exported CSV.

    Uses the session's saved mapping when its columns are all present in the
    file, otherwise detects one from the header row and saves it.
    """
    if not sessionId:
        raise ValidationError("sessionId required")
    data = file.file.read()
    if not data:
        raise ValidationError("empty upload")

    prepared = prepare_upload(data, mappings.get(sessionId), default_city=city)
    mappings.put(sessionId, prepared.mapping)
    inserted = counts.seed(sessionId, prepared.rows)
    logger.info(
        "Upload %s -> session %s: %d rows seeded, %d skipped",
        file.filename, sessionId, len(prepared.rows), prepared.skipped,
    )
    return {
        "inserted": inserted,
        "mapping": prepared.mapping,
        "detected": prepared.detected,
        "headers": prepared.headers,
        "skipped": prepared.skipped,
        "warnings": prepared.warnings,
    }
