from __future__ import annotations
from typing import Any, Dict, Optional
import logging

from stock_count.blobs import StorageBackend, MAPPING_NS
from stock_count.documents import DocumentStore
from stock_count.errors import ValidationError

logger = logging.getLogger(__name__)


def mapping_key(session_id: str) -> str:
    return f"mapping:{session_id}"


class MappingStore:
    """Column mapping chosen for a session's uploads, reused across reloads."""

    def __init__(self, backend: StorageBackend):
        self.docs = DocumentStore(backend, MAPPING_NS)

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.docs.read_json(mapping_key(session_id), None)

    def put(self, session_id: Optional[str], mapping: Optional[Dict[str, Any]]) -> None:
        if not session_id or mapping is None:
            raise ValidationError("sessionId and mapping required")
        self.docs.write_json(mapping_key(session_id), mapping)
        logger.info("Saved mapping for session %s: %s", session_id, mapping)
