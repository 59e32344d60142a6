# mongo_session_store/db/mongodb.py
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection


def make_client(uri: str, **kwargs: Any) -> AsyncIOMotorClient:
    # Motor/pymongo handles mongodb+srv Atlas URIs and TLS automatically.
    # Construction is lazy: no round trip happens until the first operation.
    return AsyncIOMotorClient(uri, **kwargs)


def get_collection(client: AsyncIOMotorClient, db_name: str, col_name: str) -> AsyncIOMotorCollection:
    return client[db_name][col_name]
