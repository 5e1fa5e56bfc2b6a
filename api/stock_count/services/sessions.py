# stock_count/services/sessions.py
"""
Session Registry - counting sessions and cascading deletes.

The whole session list lives in one document (``sessions`` namespace,
key ``sessions``), newest first.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import hmac, logging, uuid

from stock_count.blobs import (
    StorageBackend, KNOWN_NAMESPACES, SESSIONS_NS, COUNTS_NS, DESTRUCTIONS_NS, MAPPING_NS,
)
from stock_count.documents import DocumentStore
from stock_count.errors import AuthorizationError, ValidationError
from stock_count.utils import now_iso, clean_text

logger = logging.getLogger(__name__)

SESSIONS_KEY = "sessions"
RELATED_NAMESPACES = (COUNTS_NS, DESTRUCTIONS_NS, MAPPING_NS)


def check_admin_key(provided: Optional[str], expected: Optional[str]) -> None:
    """Raise AuthorizationError unless ``provided`` matches a configured admin key."""
    if not expected or not hmac.compare_digest((provided or "").encode(), expected.encode()):
        raise AuthorizationError("Unauthorized")


class SessionRegistry:

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.docs = DocumentStore(backend, SESSIONS_NS)

    def list_sessions(self) -> List[Dict[str, Any]]:
        return self.docs.read_json(SESSIONS_KEY, [])

    def create_session(self, name: Optional[str], city: Optional[str] = None) -> Dict[str, Any]:
        name = clean_text(name)
        if not name:
            raise ValidationError("name required")
        sessions = self.docs.read_json(SESSIONS_KEY, [])
        session = {
            "id": str(uuid.uuid4()),
            "name": name,
            "city": clean_text(city),
            "created_at": now_iso(),
        }
        sessions.insert(0, session)
        self.docs.write_json(SESSIONS_KEY, sessions)
        logger.info("Created session %s (%s, city=%r)", session["id"], name, session["city"])
        return session

    def delete_session(self, session_id: str) -> Dict[str, Any]:
        """Drop one session and every related blob whose key mentions its id."""
        before = self.docs.read_json(SESSIONS_KEY, [])
        after = [s for s in before if s.get("id") != session_id]
        self.docs.write_json(SESSIONS_KEY, after)

        deleted = 0
        for ns in RELATED_NAMESPACES:
            docs = DocumentStore(self.backend, ns)
            for key in docs.keys():
                if session_id in key:
                    docs.delete(key)
                    deleted += 1
        logger.info("Deleted session %s (%d related blobs)", session_id, deleted)
        return {
            "ok": True,
            "mode": "single",
            "sessionId": session_id,
            "deletedRelatedBlobs": deleted,
            "sessionsRemaining": len(after),
        }

    def delete_all_sessions(self) -> Dict[str, Any]:
        deleted: Dict[str, int] = {}
        for ns in KNOWN_NAMESPACES:
            docs = DocumentStore(self.backend, ns)
            n = 0
            for key in docs.keys():
                docs.delete(key)
                n += 1
            deleted[ns] = n
        total = sum(deleted.values())
        logger.warning("Deleted all sessions: %d blobs across %d namespaces", total, len(deleted))
        return {"ok": True, "mode": "all", "deleted": deleted, "total": total}

    def wipe(self) -> Dict[str, Dict[str, Any]]:
        """Admin wipe: per-namespace before/deleted counts; a failing namespace is reported, not fatal."""
        summary: Dict[str, Dict[str, Any]] = {}
        for ns in KNOWN_NAMESPACES:
            docs = DocumentStore(self.backend, ns)
            try:
                keys = docs.keys()
                summary[ns] = {"before": len(keys), "deleted": 0}
                for key in keys:
                    docs.delete(key)
                    summary[ns]["deleted"] += 1
            except Exception as e:
                logger.exception("Wipe of namespace %s failed", ns)
                summary[ns] = {"error": str(e)}
        logger.warning("Admin wipe finished: %s", summary)
        return summary
