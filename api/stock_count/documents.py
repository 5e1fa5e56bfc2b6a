from __future__ import annotations
from copy import deepcopy
from typing import Any, List

from stock_count.blobs import StorageBackend


class DocumentStore:
    """JSON documents of one namespace; every write replaces the whole document."""

    def __init__(self, backend: StorageBackend, namespace: str):
        self.backend = backend
        self.namespace = namespace

    def read_json(self, key: str, default: Any) -> Any:
        data = self.backend.get(self.namespace, key)
        return deepcopy(default) if data is None else data

    def write_json(self, key: str, value: Any) -> Any:
        self.backend.set(self.namespace, key, value)
        return value

    def keys(self) -> List[str]:
        return self.backend.list_keys(self.namespace)

    def delete(self, key: str) -> None:
        self.backend.delete(self.namespace, key)
