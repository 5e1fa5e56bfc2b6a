from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from stock_count.dependencies import get_sessions, get_settings
from stock_count.models import SessionIn
from stock_count.services import SessionRegistry
from stock_count.services.sessions import check_admin_key
from stock_count.settings import Settings

router = APIRouter(prefix="/api", tags=["sessions"])


@router.get("/sessions")
def list_sessions(registry: SessionRegistry = Depends(get_sessions)) -> List[Dict[str, Any]]:
    return registry.list_sessions()


@router.post("/sessions", status_code=201)
def create_session(
    payload: Optional[SessionIn] = None,
    registry: SessionRegistry = Depends(get_sessions),
) -> Dict[str, Any]:
    payload = payload or SessionIn()
    return registry.create_session(payload.name, payload.city)


@router.delete("/sessions")
def delete_sessions(
    key: str = Query(""),
    id: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_sessions),
):
    """
    Admin only. With ``id``: drop that session and every blob whose key
    mentions it. Without: clear every namespace.
    """
    check_admin_key(key, settings.ADMIN_KEY)
    if id:
        return JSONResponse(registry.delete_session(id))
    return JSONResponse(registry.delete_all_sessions())
