from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from bson.errors import InvalidDocument
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from ..codec import decode, encode, session_key
from ..db.mongodb import get_collection, make_client
from ..errors import BackendUnavailable, EncodingFailed
from ..models.session import SessionDocument, SessionValue
from ..settings import Settings
from .index_dal import ExpiryIndexDAL

log = logging.getLogger("mongo_session_store.store")


@contextmanager
def _backend(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        log.error("%s failed key=%s: %s", op, key, exc)
        raise BackendUnavailable(f"{op} failed: {exc}") from exc


def _as_utc(v: Any) -> Optional[datetime]:
    if not isinstance(v, datetime):
        return None
    return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v


class MongoSessionStore:
    """
    Session persistence on a single MongoDB collection.

    Every operation touches exactly one document, keyed by the digest of the
    session id. Nothing is cached client-side and nothing is retried; the
    handle is safe to share between concurrent requests.

    Constructing a store never touches indexes. Call
    `enable_fixed_lifetime_expiry()` / `enable_absolute_expiry()` (or run the
    admin process) when the collection should expire sessions on its own.
    """

    def __init__(
        self,
        col: AsyncIOMotorCollection,
        *,
        client: Optional[AsyncIOMotorClient] = None,
        owns_client: bool = False,
    ):
        self.col = col
        self._client = client
        self._owns_client = owns_client

    @classmethod
    def from_client(cls, client: AsyncIOMotorClient, db_name: str, col_name: str) -> "MongoSessionStore":
        return cls(get_collection(client, db_name, col_name), client=client)

    @classmethod
    def connect(cls, uri: str, db_name: str, col_name: str, **client_kwargs: Any) -> "MongoSessionStore":
        client = make_client(uri, **client_kwargs)
        return cls(get_collection(client, db_name, col_name), client=client, owns_client=True)

    @classmethod
    def from_settings(cls, s: Settings) -> "MongoSessionStore":
        return cls.connect(
            s.MONGO_URI,
            s.MONGO_DB,
            s.COL_SESSIONS,
            serverSelectionTimeoutMS=s.SERVER_SELECTION_TIMEOUT_MS,
        )

    # ----------------- Expiry -----------------

    @property
    def indexes(self) -> ExpiryIndexDAL:
        return ExpiryIndexDAL(self.col)

    async def enable_fixed_lifetime_expiry(self, seconds: int) -> None:
        """
        Expire sessions `seconds` after first persist. Re-running with a new
        value changes the lifetime for every session in the collection.
        """
        await self.indexes.ensure_fixed_lifetime_index(seconds)

    async def enable_absolute_expiry(self) -> None:
        await self.indexes.ensure_absolute_expiry_index()

    # ----------------- CRUD -----------------

    async def persist(self, value: SessionValue) -> None:
        """
        Create or replace the session document in one atomic upsert.

        `created` goes through $setOnInsert, so it is stamped by whichever
        write inserts the document and left alone afterwards. Concurrent
        writers for the same id: last write wins.
        """
        doc = encode(value)
        update: Dict[str, Any] = {
            "$set": {"data": doc.data},
            "$setOnInsert": {"created": SessionDocument.now()},
        }
        if doc.expire_at is not None:
            update["$set"]["expireAt"] = doc.expire_at
        else:
            update["$unset"] = {"expireAt": ""}

        try:
            with _backend("persist", doc.id):
                await self.col.update_one({"_id": doc.id}, update, upsert=True)
        except InvalidDocument as exc:
            # includes DocumentTooLarge (16MB BSON limit)
            log.error("persist rejected key=%s: %s", doc.id, exc)
            raise EncodingFailed(f"session document rejected by the driver: {exc}") from exc
        log.debug("persisted key=%s expireAt=%s", doc.id, doc.expire_at)

    async def load(self, session_id: str) -> Optional[SessionValue]:
        """
        Fetch a session. Missing and expired sessions both come back as None;
        the TTL reaper runs in the background so the expiry check is done here too.
        """
        key = session_key(session_id)
        with _backend("load", key):
            raw = await self.col.find_one({"_id": key})
        if not raw:
            log.debug("load miss key=%s", key)
            return None

        expire_at = _as_utc(raw.get("expireAt"))
        if expire_at is not None and expire_at <= datetime.now(timezone.utc):
            log.debug("load expired key=%s expireAt=%s", key, expire_at)
            return None

        return decode(raw)

    async def destroy(self, session_id: str) -> None:
        key = session_key(session_id)
        with _backend("destroy", key):
            r = await self.col.delete_one({"_id": key})
        log.debug("destroyed key=%s deleted=%s", key, r.deleted_count)

    async def clear_all(self) -> None:
        """Delete every document in the collection. No filter, no confirmation."""
        with _backend("clear_all", "*"):
            r = await self.col.delete_many({})
        log.info("cleared %s sessions from %s", r.deleted_count, self.col.name)

    async def count(self) -> int:
        with _backend("count", "*"):
            return await self.col.count_documents({})

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
