from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, Query, Request

from stock_count.dependencies import get_backend, get_settings
from stock_count.errors import ValidationError
from stock_count.services import SessionRegistry
from stock_count.services.sessions import check_admin_key
from stock_count.settings import Settings

router = APIRouter(prefix="/api", tags=["admin"])
logger = logging.getLogger(__name__)


@router.api_route("/admin-wipe", methods=["GET", "POST"])
def admin_wipe(
    request: Request,
    key: str = Query(""),
    confirm: str = Query(""),
    settings: Settings = Depends(get_settings),
):
    """Clear every known namespace. Needs the admin key and ``confirm=yes``."""
    check_admin_key(key, settings.ADMIN_KEY)
    if confirm != "yes":
        raise ValidationError(
            "Safety check: add &confirm=yes to actually wipe. Example: /api/admin-wipe?key=...&confirm=yes"
        )
    backend = get_backend(request)
    logger.warning("Admin wipe requested (mode=%s)", backend.mode)
    summary = SessionRegistry(backend).wipe()
    return {"ok": True, "mode": backend.mode, "summary": summary}
