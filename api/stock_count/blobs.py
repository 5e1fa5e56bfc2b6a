# stock_count/blobs.py
"""
Blob namespace backends.

Two ways to reach the key/value namespaces:

- AutoContextBackend: blobs living under the deployment's own data root
  (``<data_root>/blobs/<namespace>/<quoted key>.json``).
- ManualCredentialBackend: the Netlify Blobs REST API, addressed with an
  explicit site id + API token.

``resolve_backend`` picks one at process startup; the result is injected into
request handlers and never re-probed per request.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote
import json, logging, os, tempfile

import requests

from stock_count.errors import StorageUnavailableError
from stock_count.settings import BlobsConfig

logger = logging.getLogger(__name__)

SESSIONS_NS = "sessions"
COUNTS_NS = "counts"
DESTRUCTIONS_NS = "destructions"
MAPPING_NS = "mapping"
KNOWN_NAMESPACES = (SESSIONS_NS, COUNTS_NS, DESTRUCTIONS_NS, MAPPING_NS)

MISSING_CREDENTIALS_MSG = (
    "Blobs auto-context not available AND NETLIFY_SITE_ID/NETLIFY_API_TOKEN not set. "
    "Add those env vars or re-deploy."
)


class StorageBackend(ABC):
    """Namespaced key -> JSON document store."""

    mode: str = "unknown"

    @abstractmethod
    def list_keys(self, namespace: str) -> List[str]:
        ...

    @abstractmethod
    def get(self, namespace: str, key: str) -> Optional[Any]:
        """Decoded JSON document, or None when the key is absent."""

    @abstractmethod
    def set(self, namespace: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        ...

    def probe(self) -> None:
        """Raise StorageUnavailableError when the backend cannot be used."""


# ============================================================================
# Auto context (data root)
# ============================================================================

class AutoContextBackend(StorageBackend):
    mode = "auto"

    def __init__(self, data_root: Path):
        self.root = Path(data_root).expanduser() / "blobs"

    def _ns_dir(self, namespace: str) -> Path:
        return self.root / quote(namespace, safe="")

    def _key_path(self, namespace: str, key: str) -> Path:
        return self._ns_dir(namespace) / f"{quote(key, safe='')}.json"

    def probe(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Blob root {self.root} not usable: {e}") from e
        if not os.access(self.root, os.W_OK):
            raise StorageUnavailableError(f"Blob root {self.root} is not writable")

    def list_keys(self, namespace: str) -> List[str]:
        d = self._ns_dir(namespace)
        if not d.is_dir():
            return []
        return sorted(unquote(p.stem) for p in d.glob("*.json") if p.is_file())

    def get(self, namespace: str, key: str) -> Optional[Any]:
        p = self._key_path(namespace, key)
        if not p.is_file():
            return None
        return json.loads(p.read_text(encoding="utf-8"))

    def set(self, namespace: str, key: str, value: Any) -> None:
        p = self._key_path(namespace, key)
        p.parent.mkdir(parents=True, exist_ok=True)
        body = json.dumps(value, ensure_ascii=False, indent=2, allow_nan=False)
        # one temp file per writer; concurrent writers to a key race on os.replace only
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=p.parent, prefix=p.stem + ".", suffix=".tmp", delete=False,
        ) as fh:
            fh.write(body)
        try:
            os.replace(fh.name, p)
        except OSError:
            Path(fh.name).unlink(missing_ok=True)
            raise

    def delete(self, namespace: str, key: str) -> None:
        try:
            self._key_path(namespace, key).unlink()
        except FileNotFoundError:
            pass


# ============================================================================
# Manual credentials (remote API)
# ============================================================================

class ManualCredentialBackend(StorageBackend):
    mode = "manual"

    def __init__(self, config: BlobsConfig, session: Optional[requests.Session] = None):
        if not config.has_credentials:
            raise StorageUnavailableError(
                "Missing NETLIFY_SITE_ID or NETLIFY_API_TOKEN env vars. "
                "Add both in Site settings → Environment variables."
            )
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {config.api_token}",
            "Accept": "application/json",
        })

    def _url(self, namespace: str, key: Optional[str] = None) -> str:
        base = f"{self.config.api_url}/{quote(self.config.site_id, safe='')}/{quote(namespace, safe='')}"
        return base if key is None else f"{base}/{quote(key, safe='')}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as e:
            logger.exception("Blobs API %s %s failed", method, url)
            raise StorageUnavailableError(f"Blobs API unreachable: {e}") from e

    @staticmethod
    def _check(resp: requests.Response, allow_404: bool = False) -> bool:
        """True when the response carries a document; False on a tolerated 404."""
        if allow_404 and resp.status_code == 404:
            return False
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise StorageUnavailableError(f"Blobs API error {resp.status_code}: {e}") from e
        return True

    def list_keys(self, namespace: str) -> List[str]:
        keys: List[str] = []
        params: Dict[str, str] = {}
        while True:
            resp = self._request("GET", self._url(namespace), params=params or None)
            self._check(resp)
            data = resp.json() or {}
            keys.extend(b["key"] for b in data.get("blobs", []) if b.get("key"))
            cursor = data.get("next_cursor")
            if not cursor:
                return keys
            params = {"cursor": cursor}

    def get(self, namespace: str, key: str) -> Optional[Any]:
        resp = self._request("GET", self._url(namespace, key))
        if not self._check(resp, allow_404=True):
            return None
        if not resp.content:
            return None
        return resp.json()

    def set(self, namespace: str, key: str, value: Any) -> None:
        resp = self._request(
            "PUT",
            self._url(namespace, key),
            data=json.dumps(value, ensure_ascii=False, allow_nan=False).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        self._check(resp)

    def delete(self, namespace: str, key: str) -> None:
        resp = self._request("DELETE", self._url(namespace, key))
        self._check(resp, allow_404=True)


# ============================================================================
# Resolution
# ============================================================================

def resolve_backend(config: BlobsConfig, data_root: Path) -> StorageBackend:
    """Select the storage backend once, at startup."""
    if config.namespace_provider == "manual":
        backend: StorageBackend = ManualCredentialBackend(config)
        logger.info("Blob storage: manual credentials (site %s)", config.site_id)
        return backend

    auto = AutoContextBackend(data_root)
    try:
        auto.probe()
        logger.info("Blob storage: auto context at %s", auto.root)
        return auto
    except StorageUnavailableError as e:
        logger.warning("Auto context unavailable (%s); trying manual credentials", e.message)

    if not config.has_credentials:
        raise StorageUnavailableError(MISSING_CREDENTIALS_MSG)
    logger.info("Blob storage: manual credentials (site %s)", config.site_id)
    return ManualCredentialBackend(config)
