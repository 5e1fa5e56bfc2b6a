"""Tests for blob backends and startup backend selection."""

import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
import requests

from stock_count.blobs import (
    AutoContextBackend, ManualCredentialBackend, MISSING_CREDENTIALS_MSG, resolve_backend,
)
from stock_count.documents import DocumentStore
from stock_count.errors import StorageUnavailableError
from stock_count.settings import BlobsConfig

CREDS = BlobsConfig(namespace_provider="manual", site_id="site-1", api_token="tok", api_url="https://blobs.test/v1")


def _response(status: int, payload=None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    r.url = "https://blobs.test/v1"
    return r


def _manual(*responses) -> tuple:
    session = MagicMock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return ManualCredentialBackend(CREDS, session=session), session


class TestAutoContextBackend:
    def test_keys_with_separators_round_trip(self, tmp_path):
        b = AutoContextBackend(tmp_path)
        b.set("counts", "counts:abc-1", [{"id": 1}])
        b.set("counts", "counts:xyz", [])
        assert b.list_keys("counts") == ["counts:abc-1", "counts:xyz"]
        assert b.get("counts", "counts:abc-1") == [{"id": 1}]
        assert b.get("counts", "missing") is None
        assert b.list_keys("mapping") == []

    def test_delete_missing_is_silent(self, tmp_path):
        b = AutoContextBackend(tmp_path)
        b.set("mapping", "mapping:s", {"sku": "x"})
        b.delete("mapping", "mapping:s")
        b.delete("mapping", "mapping:s")
        assert b.list_keys("mapping") == []

    def test_no_temp_files_left(self, tmp_path):
        b = AutoContextBackend(tmp_path)
        b.set("sessions", "sessions", [])
        assert not list((tmp_path / "blobs").rglob("*.tmp"))

    def test_concurrent_writers_to_one_key(self, tmp_path):
        b = AutoContextBackend(tmp_path)

        def writer(n):
            for i in range(100):
                b.set("counts", "counts:S", [{"id": 1, "counted_qty": n * 1000 + i}])

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(writer, range(6)))

        assert len(b.get("counts", "counts:S")) == 1
        assert b.list_keys("counts") == ["counts:S"]
        assert not list((tmp_path / "blobs").rglob("*.tmp"))

    def test_non_finite_numbers_are_not_written(self, tmp_path):
        b = AutoContextBackend(tmp_path)
        with pytest.raises(ValueError):
            b.set("counts", "counts:S", [{"counted_qty": float("inf")}])
        assert b.get("counts", "counts:S") is None


class TestDocumentStore:
    def test_default_is_copied(self, backend):
        docs = DocumentStore(backend, "counts")
        default = []
        got = docs.read_json("counts:x", default)
        got.append(1)
        assert default == []

    def test_write_overwrites(self, backend):
        docs = DocumentStore(backend, "counts")
        docs.write_json("k", [1, 2])
        docs.write_json("k", [3])
        assert docs.read_json("k", []) == [3]
        assert docs.keys() == ["k"]


class TestManualCredentialBackend:
    def test_requires_credentials(self):
        with pytest.raises(StorageUnavailableError):
            ManualCredentialBackend(BlobsConfig(namespace_provider="manual"))

    def test_sets_bearer_header(self):
        b, session = _manual()
        assert session.headers["Authorization"] == "Bearer tok"

    def test_get_found_and_missing(self):
        b, session = _manual(_response(200, [{"id": 1}]), _response(404))
        assert b.get("counts", "counts:s1") == [{"id": 1}]
        assert b.get("counts", "counts:s2") is None
        method, url = session.request.call_args_list[0].args
        assert method == "GET"
        assert url == "https://blobs.test/v1/site-1/counts/counts%3As1"

    def test_list_follows_cursor(self):
        b, session = _manual(
            _response(200, {"blobs": [{"key": "a"}, {"key": "b"}], "next_cursor": "c2"}),
            _response(200, {"blobs": [{"key": "c"}]}),
        )
        assert b.list_keys("sessions") == ["a", "b", "c"]
        assert session.request.call_args_list[1].kwargs["params"] == {"cursor": "c2"}

    def test_set_puts_json(self):
        b, session = _manual(_response(200))
        b.set("mapping", "mapping:s", {"sku": "Barcode"})
        call = session.request.call_args
        assert call.args == ("PUT", "https://blobs.test/v1/site-1/mapping/mapping%3As")
        assert json.loads(call.kwargs["data"]) == {"sku": "Barcode"}
        assert call.kwargs["timeout"] == CREDS.timeout

    def test_delete_tolerates_404(self):
        b, _ = _manual(_response(404))
        b.delete("counts", "gone")

    def test_server_error_is_storage_unavailable(self):
        b, _ = _manual(_response(500))
        with pytest.raises(StorageUnavailableError):
            b.set("counts", "k", [])

    def test_network_error_is_storage_unavailable(self):
        b, session = _manual()
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(StorageUnavailableError, match="unreachable"):
            b.list_keys("counts")


class TestResolveBackend:
    def test_auto_uses_data_root(self, tmp_path):
        b = resolve_backend(BlobsConfig(), tmp_path)
        assert isinstance(b, AutoContextBackend)
        assert b.mode == "auto"

    def test_manual_requested(self, tmp_path):
        b = resolve_backend(CREDS, tmp_path)
        assert isinstance(b, ManualCredentialBackend)
        assert b.mode == "manual"

    def test_auto_falls_back_to_manual(self, tmp_path, monkeypatch):
        def broken(self):
            raise StorageUnavailableError("read-only")

        monkeypatch.setattr(AutoContextBackend, "probe", broken)
        cfg = BlobsConfig(site_id="site-1", api_token="tok")
        assert isinstance(resolve_backend(cfg, tmp_path), ManualCredentialBackend)

    def test_auto_without_fallback_fails(self, tmp_path, monkeypatch):
        def broken(self):
            raise StorageUnavailableError("read-only")

        monkeypatch.setattr(AutoContextBackend, "probe", broken)
        with pytest.raises(StorageUnavailableError) as exc:
            resolve_backend(BlobsConfig(), tmp_path)
        assert exc.value.message == MISSING_CREDENTIALS_MSG
