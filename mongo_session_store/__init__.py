"""MongoDB-backed session persistence for async web services."""

from .codec import decode, encode, session_key
from .dal import ExpiryIndexDAL, MongoSessionStore
from .errors import (
    BackendUnavailable,
    CorruptRecord,
    EncodingFailed,
    IndexProvisioningFailed,
    SessionStoreError,
)
from .models import SessionDocument, SessionValue

__all__ = [
    "MongoSessionStore",
    "ExpiryIndexDAL",
    "SessionValue",
    "SessionDocument",
    "session_key",
    "encode",
    "decode",
    "SessionStoreError",
    "BackendUnavailable",
    "EncodingFailed",
    "CorruptRecord",
    "IndexProvisioningFailed",
]
