from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


class ColumnMapping(BaseModel):
    city: str = ""
    sku: str = ""
    name: str = ""
    systemQty: str = ""
    committedQty: str = ""


class SessionIn(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None


class CountPatchIn(BaseModel):
    sessionId: Optional[str] = None
    id: Optional[int] = None
    counted_qty: Optional[Any] = None


class SeedIn(BaseModel):
    sessionId: Optional[str] = None
    rows: Optional[List[Dict[str, Any]]] = None


class DestructionIn(BaseModel):
    sessionId: Optional[str] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    qty: Optional[Any] = None
    reason: Optional[str] = None


class MappingIn(BaseModel):
    sessionId: Optional[str] = None
    mapping: Optional[ColumnMapping] = None


class MappingDetectIn(BaseModel):
    headers: List[str] = Field(default_factory=list)


class ScanIn(BaseModel):
    sessionId: Optional[str] = None
    code: Optional[str] = None
    city: Optional[str] = None
