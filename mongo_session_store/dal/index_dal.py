from __future__ import annotations

import logging
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import OperationFailure, PyMongoError

from ..errors import IndexProvisioningFailed

log = logging.getLogger("mongo_session_store.indexes")

CREATED_INDEX = "created_1"
EXPIRE_AT_INDEX = "expireAt_1"

# IndexNotFound, NamespaceNotFound
_MISSING_CODES = {26, 27}
_MISSING_MESSAGES = ("index not found", "ns not found")


def _is_missing(exc: OperationFailure) -> bool:
    if exc.code in _MISSING_CODES:
        return True
    msg = str(exc).lower()
    return any(m in msg for m in _MISSING_MESSAGES)


class ExpiryIndexDAL:
    """
    TTL index management for the sessions collection.

    MongoDB refuses to redefine a TTL index in place, so every `ensure_*`
    drops the old index first and then creates the new one. Both strategies
    may be active at once; a document is reaped by whichever fires first.
    """

    def __init__(self, col: AsyncIOMotorCollection):
        self.col = col

    async def ensure_fixed_lifetime_index(self, seconds: int) -> None:
        """Expire every session `seconds` after it was first stored."""
        if seconds < 0:
            raise ValueError(f"expireAfterSeconds must be >= 0, got {seconds}")
        await self._drop(CREATED_INDEX)
        await self._create("created", CREATED_INDEX, seconds)

    async def ensure_absolute_expiry_index(self) -> None:
        """Expire each session at its own `expireAt` timestamp."""
        await self._drop(EXPIRE_AT_INDEX)
        await self._create("expireAt", EXPIRE_AT_INDEX, 0)

    async def drop_fixed_lifetime_index(self) -> None:
        await self._drop(CREATED_INDEX)

    async def drop_absolute_expiry_index(self) -> None:
        await self._drop(EXPIRE_AT_INDEX)

    async def describe(self) -> Dict[str, Optional[int]]:
        """Active expireAfterSeconds per anchor field, None when not provisioned."""
        try:
            info = await self.col.index_information()
        except PyMongoError as exc:
            raise IndexProvisioningFailed(f"cannot read indexes of {self.col.name}: {exc}") from exc

        def _ttl(name: str) -> Optional[int]:
            spec = info.get(name) or {}
            ttl = spec.get("expireAfterSeconds")
            return int(ttl) if ttl is not None else None

        return {"created": _ttl(CREATED_INDEX), "expireAt": _ttl(EXPIRE_AT_INDEX)}

    # ----------------- Helpers -----------------

    async def _drop(self, name: str) -> None:
        try:
            await self.col.drop_index(name)
        except OperationFailure as exc:
            if _is_missing(exc):
                log.debug("index %s not present on %s, nothing to drop", name, self.col.name)
                return
            log.error("drop index %s on %s failed: %s", name, self.col.name, exc)
            raise IndexProvisioningFailed(f"drop {name} failed: {exc}") from exc
        except PyMongoError as exc:
            log.error("drop index %s on %s failed: %s", name, self.col.name, exc)
            raise IndexProvisioningFailed(f"drop {name} failed: {exc}") from exc
        log.info("dropped index %s on %s", name, self.col.name)

    async def _create(self, field: str, name: str, seconds: int) -> None:
        try:
            await self.col.create_index(
                [(field, ASCENDING)],
                name=name,
                expireAfterSeconds=seconds,
            )
        except PyMongoError as exc:
            log.error("create index %s on %s failed: %s", name, self.col.name, exc)
            raise IndexProvisioningFailed(f"create {name} failed: {exc}") from exc
        log.info("created TTL index %s on %s expireAfterSeconds=%s", name, self.col.name, seconds)
