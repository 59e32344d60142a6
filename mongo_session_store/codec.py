# mongo_session_store/codec.py
from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any, Mapping, Optional, Union

import orjson
from pydantic import ValidationError

from .errors import CorruptRecord, EncodingFailed
from .models.session import SessionDocument, SessionValue

__all__ = [
    "session_key",
    "encode",
    "decode",
]


def session_key(session_id: str) -> str:
    """
    One-way key for a session id.

    Reading the collection does not give you a usable cookie, and the
    cookie does not tell you which document it maps to.
    """
    # lone surrogates still hash; such ids simply never match a document
    return hashlib.sha256(session_id.encode("utf-8", "surrogatepass")).hexdigest()


def encode(value: SessionValue, created: Optional[datetime] = None) -> SessionDocument:
    """
    SessionValue -> SessionDocument.

    `created` is left to the caller: the store only stamps it on insert.
    """
    try:
        payload = orjson.dumps(value.model_dump(mode="json")).decode("utf-8")
    except (orjson.JSONEncodeError, TypeError, ValueError) as exc:
        raise EncodingFailed(f"session payload is not serializable: {exc}") from exc

    return SessionDocument(
        _id=session_key(value.id),
        created=created,
        expireAt=value.expiry,
        data=payload,
    )


def decode(document: Union[SessionDocument, Mapping[str, Any]]) -> SessionValue:
    """SessionDocument (or the raw driver dict) -> SessionValue."""
    if not isinstance(document, SessionDocument):
        try:
            document = SessionDocument.model_validate(dict(document))
        except (ValidationError, TypeError) as exc:
            raise CorruptRecord(f"malformed session document: {exc}") from exc

    try:
        value = SessionValue.model_validate(orjson.loads(document.data))
    except orjson.JSONDecodeError as exc:
        raise CorruptRecord(f"session payload is not valid JSON (_id={document.id})") from exc
    except ValidationError as exc:
        raise CorruptRecord(f"session payload has an unexpected shape (_id={document.id})") from exc

    if session_key(value.id) != document.id:
        raise CorruptRecord(f"session payload does not belong to _id={document.id}")
    return value
