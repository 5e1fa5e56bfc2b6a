from __future__ import annotations
from fastapi import Request

from stock_count.blobs import StorageBackend
from stock_count.errors import StorageUnavailableError
from stock_count.services import SessionRegistry, CountsStore, DestructionsLedger, MappingStore
from stock_count.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_backend(request: Request) -> StorageBackend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise StorageUnavailableError(
            getattr(request.app.state, "storage_error", None) or "Blob storage not configured"
        )
    return backend


def get_sessions(request: Request) -> SessionRegistry:
    return SessionRegistry(get_backend(request))


def get_counts(request: Request) -> CountsStore:
    return CountsStore(get_backend(request))


def get_destructions(request: Request) -> DestructionsLedger:
    return DestructionsLedger(get_backend(request))


def get_mapping(request: Request) -> MappingStore:
    return MappingStore(get_backend(request))
