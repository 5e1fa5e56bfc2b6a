"""Shared pytest fixtures.

Every test gets its own data root under ``tmp_path`` with the auto-context
(data root) blob backend, so nothing touches the network.
"""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stock_count.blobs import AutoContextBackend
from stock_count.main import create_app
from stock_count.services import CountsStore, DestructionsLedger, MappingStore, SessionRegistry
from stock_count.settings import Settings

ADMIN_KEY = "test-admin-key"


def _drop_log_handlers(root: Path) -> None:
    for name in (None, "uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            if str(getattr(h, "baseFilename", "")).startswith(str(root)):
                lg.removeHandler(h)
                h.close()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(STOCK_COUNT_DATA_ROOT=tmp_path, ADMIN_KEY=ADMIN_KEY, NAMESPACE_PROVIDER="auto")


@pytest.fixture
def backend(tmp_path: Path) -> AutoContextBackend:
    b = AutoContextBackend(tmp_path)
    b.probe()
    return b


@pytest.fixture
def counts(backend) -> CountsStore:
    return CountsStore(backend)


@pytest.fixture
def ledger(backend) -> DestructionsLedger:
    return DestructionsLedger(backend)


@pytest.fixture
def mappings(backend) -> MappingStore:
    return MappingStore(backend)


@pytest.fixture
def registry(backend) -> SessionRegistry:
    return SessionRegistry(backend)


@pytest.fixture
def client(settings, backend, tmp_path) -> Generator[TestClient, None, None]:
    app = create_app(settings=settings, backend=backend)
    with TestClient(app) as c:
        yield c
    _drop_log_handlers(tmp_path)


@pytest.fixture
def session_id(client) -> str:
    resp = client.post("/api/sessions", json={"name": "Weekly count", "city": "Jeddah"})
    assert resp.status_code == 201
    return resp.json()["id"]


def seed_row(sku: str, system_qty=10, committed_qty=0, city="Jeddah", name=None) -> dict:
    return {
        "sku": sku,
        "name": name or f"Item {sku}",
        "city": city,
        "system_qty": system_qty,
        "committed_qty": committed_qty,
    }
