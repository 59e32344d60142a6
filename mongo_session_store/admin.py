"""
Admin process: provision the TTL indexes on the sessions collection.

Web processes never touch indexes; run this once per deploy (or whenever the
session lifetime changes):

  SESSION_STORE_SESSION_TTL_SECONDS=86400 python -m mongo_session_store.admin

Notes:
- Idempotent: safe to run multiple times.
- Changing SESSION_TTL_SECONDS and re-running changes the lifetime of every
  session already stored.
- Strategies that are not requested are left as they are.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from .dal import MongoSessionStore
from .logger import setup_logging
from .settings import settings

log = logging.getLogger("mongo_session_store.admin")


async def provision(
    store: MongoSessionStore,
    *,
    ttl_seconds: Optional[int],
    enable_expire_at: bool,
) -> Dict[str, Optional[int]]:
    if ttl_seconds is not None:
        await store.enable_fixed_lifetime_expiry(ttl_seconds)
    if enable_expire_at:
        await store.enable_absolute_expiry()
    return await store.indexes.describe()


# ------------------------------------------------------------------------------
# Main entrypoint
# ------------------------------------------------------------------------------
async def main() -> None:
    setup_logging()
    log.info(
        "provision begin mongo_db=%s collection=%s ttl_seconds=%s expire_at=%s",
        settings.MONGO_DB,
        settings.COL_SESSIONS,
        settings.SESSION_TTL_SECONDS,
        settings.ENABLE_EXPIRE_AT,
    )

    store = MongoSessionStore.from_settings(settings)
    try:
        active = await provision(
            store,
            ttl_seconds=settings.SESSION_TTL_SECONDS,
            enable_expire_at=settings.ENABLE_EXPIRE_AT,
        )
    finally:
        store.close()

    log.info("provision complete active=%s", active)


if __name__ == "__main__":
    asyncio.run(main())
