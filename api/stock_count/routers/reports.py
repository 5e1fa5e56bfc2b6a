from __future__ import annotations
from typing import Any, Dict, Optional
from urllib.parse import quote
import re

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from stock_count.dependencies import get_counts, get_destructions
from stock_count.errors import ValidationError
from stock_count.services import CountsStore, DestructionsLedger
from stock_count.services.reports import (
    count_report_csv, count_report_filename,
    destructions_report_csv, destructions_report_filename,
)
from stock_count.services.scanning import reconcile

router = APIRouter(prefix="/api", tags=["reports"])


def _content_disposition(filename: str) -> str:
    # header values must be latin-1; non-ASCII names go in filename* (RFC 5987)
    fallback = re.sub(r'[^A-Za-z0-9._-]', "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _csv_response(body: bytes, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _reconciled(
    session_id: str,
    counts: CountsStore,
    ledger: DestructionsLedger,
    city: Optional[str],
    sku: Optional[str],
    discrepancies: bool,
) -> Dict[str, Any]:
    if not session_id:
        raise ValidationError("sessionId required")
    return reconcile(
        counts.get_all(session_id),
        ledger.totals_by_sku(session_id),
        city=city or None,
        sku=(sku or "").strip() or None,
        discrepancies_only=discrepancies,
    )


@router.get("/counts-report")
def counts_report(
    sessionId: str = Query(""),
    city: Optional[str] = Query(None),
    sku: Optional[str] = Query(None),
    discrepancies: bool = Query(False),
    counts: CountsStore = Depends(get_counts),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> Dict[str, Any]:
    return _reconciled(sessionId, counts, ledger, city, sku, discrepancies)


@router.get("/counts-export")
def counts_export(
    sessionId: str = Query(""),
    city: Optional[str] = Query(None),
    discrepancies: bool = Query(False),
    counts: CountsStore = Depends(get_counts),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> Response:
    report = _reconciled(sessionId, counts, ledger, city, None, discrepancies)
    return _csv_response(count_report_csv(report["rows"]), count_report_filename(city))


@router.get("/destructions-export")
def destructions_export(
    sessionId: str = Query(""),
    ledger: DestructionsLedger = Depends(get_destructions),
) -> Response:
    if not sessionId:
        raise ValidationError("sessionId required")
    return _csv_response(destructions_report_csv(ledger.list(sessionId)), destructions_report_filename(sessionId))
