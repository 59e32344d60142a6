from __future__ import annotations

import copy
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple

import pytest
from pymongo.errors import OperationFailure

from mongo_session_store import MongoSessionStore


def _bsonish(v: Any) -> Any:
    # pymongo returns naive UTC datetimes by default
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class FakeCollection:
    """
    In-memory stand-in for the handful of AsyncIOMotorCollection calls the
    store makes. Set `fail_with` to make the next operation raise.
    """

    def __init__(self, name: str = "sessions"):
        self.name = name
        self.docs: Dict[Any, Dict[str, Any]] = {}
        self.indexes: Dict[str, Dict[str, Any]] = {"_id_": {"key": [("_id", 1)], "v": 2}}
        self.fail_with: Optional[Exception] = None
        self.calls: List[Tuple[str, tuple]] = []

    def _op(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    async def find_one(self, flt: Dict[str, Any]):
        self._op("find_one", flt)
        d = self.docs.get(flt["_id"])
        return copy.deepcopy(d) if d is not None else None

    async def update_one(self, flt: Dict[str, Any], update: Dict[str, Any], upsert: bool = False):
        self._op("update_one", flt, update)
        key = flt["_id"]
        existing = self.docs.get(key)
        if existing is None and not upsert:
            return SimpleNamespace(matched_count=0, upserted_id=None)

        inserted = existing is None
        doc = existing if existing is not None else {"_id": key}
        for k, v in update.get("$set", {}).items():
            doc[k] = _bsonish(v)
        for k in update.get("$unset", {}):
            doc.pop(k, None)
        if inserted:
            for k, v in update.get("$setOnInsert", {}).items():
                doc[k] = _bsonish(v)
        self.docs[key] = doc
        return SimpleNamespace(matched_count=0 if inserted else 1, upserted_id=key if inserted else None)

    async def delete_one(self, flt: Dict[str, Any]):
        self._op("delete_one", flt)
        removed = self.docs.pop(flt["_id"], None)
        return SimpleNamespace(deleted_count=1 if removed is not None else 0)

    async def delete_many(self, flt: Dict[str, Any]):
        self._op("delete_many", flt)
        n = len(self.docs)
        self.docs.clear()
        return SimpleNamespace(deleted_count=n)

    async def count_documents(self, flt: Dict[str, Any]) -> int:
        self._op("count_documents", flt)
        return len(self.docs)

    async def create_index(self, keys, name: str, **kwargs: Any) -> str:
        self._op("create_index", keys, name)
        spec = {"key": list(keys), "v": 2, **kwargs}
        current = self.indexes.get(name)
        if current is not None and current != spec:
            raise OperationFailure(
                f"Index with name: {name} already exists with different options",
                code=85,
            )
        self.indexes[name] = spec
        return name

    async def drop_index(self, name: str) -> None:
        self._op("drop_index", name)
        if name not in self.indexes:
            raise OperationFailure(f"index not found with name [{name}]", code=27)
        del self.indexes[name]

    async def index_information(self) -> Dict[str, Dict[str, Any]]:
        self._op("index_information")
        return copy.deepcopy(self.indexes)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def col() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def store(col: FakeCollection) -> MongoSessionStore:
    return MongoSessionStore(col)
