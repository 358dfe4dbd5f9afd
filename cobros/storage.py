"""Persistence collaborators for the record store.

``LocalStorage`` is the local cache: one JSON file per key under a data
directory, each file a JSON array of records. ``RemoteBackend`` is the
contract of the remote document store, with ``MemoryBackend`` as an
in-process implementation.
"""

import copy
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union
from uuid import uuid4

from cobros.logging_setup import get_logger

USERS_KEY = "users"
CHARGES_KEY = "charges"

logger = get_logger("cobros.storage")


def generate_id() -> str:
    return uuid4().hex


class LocalStorage:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def read(self, key: str) -> List[dict]:
        """Records stored under ``key``; missing or unreadable files read as empty."""
        path = self._path(key)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not read local %s: %s", key, e)
            return []
        if not isinstance(data, list):
            logger.error("Local %s is not a JSON array; ignoring it", key)
            return []
        return data

    def write(self, key: str, records: List[dict]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)


class RemoteBackend(ABC):
    """Remote document store with named collections ("users", "charges")."""

    @abstractmethod
    async def get_all(self, collection: str) -> List[dict]:
        """All documents of ``collection``, each including its ``id``."""

    @abstractmethod
    async def query_ordered(self, collection: str, field: str, descending: bool = True) -> List[dict]:
        pass

    @abstractmethod
    async def add(self, collection: str, doc_id: str, data: dict) -> None:
        """Store a new document under ``doc_id``."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: dict) -> None:
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        pass


class MemoryBackend(RemoteBackend):
    def __init__(self, collections: Optional[Dict[str, List[dict]]] = None):
        self._docs: Dict[str, Dict[str, dict]] = {}
        for name, docs in (collections or {}).items():
            self._docs[name] = {d["id"]: copy.deepcopy(d) for d in docs}

    def _collection(self, name: str) -> Dict[str, dict]:
        return self._docs.setdefault(name, {})

    async def get_all(self, collection: str) -> List[dict]:
        return [copy.deepcopy(d) for d in self._collection(collection).values()]

    async def query_ordered(self, collection: str, field: str, descending: bool = True) -> List[dict]:
        docs = await self.get_all(collection)
        return sorted(docs, key=lambda d: str(d.get(field) or ""), reverse=descending)

    async def add(self, collection: str, doc_id: str, data: dict) -> None:
        doc = copy.deepcopy(data)
        doc["id"] = doc_id
        self._collection(collection)[doc_id] = doc

    async def update(self, collection: str, doc_id: str, data: dict) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise KeyError(f"{collection}/{doc_id} does not exist")
        docs[doc_id].update(copy.deepcopy(data))
        docs[doc_id]["id"] = doc_id

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)
