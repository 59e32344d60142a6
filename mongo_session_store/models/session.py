from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class SessionValue(BaseModel):
    """
    A session as the web layer sees it.

    The id is opaque and owned by the caller (usually the session middleware,
    which also signs it into the cookie). `data` is an arbitrary JSON-able bag.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    expiry: Optional[datetime] = None

    @field_validator("expiry")
    @classmethod
    def _normalize_expiry(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _utc(v)

    @classmethod
    def new(cls, data: Optional[Dict[str, Any]] = None) -> "SessionValue":
        return cls(id=secrets.token_urlsafe(32), data=dict(data or {}))

    def expire_in(self, seconds: float) -> None:
        self.expiry = datetime.now(timezone.utc) + timedelta(seconds=seconds)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiry is None:
            return False
        return self.expiry <= (_utc(now) or datetime.now(timezone.utc))

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def insert(self, key: str, value: Any) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class SessionDocument(BaseModel):
    """
    Stored in MongoDB.

    `_id` is a digest of the session id, never the id itself.
    `created` anchors the fixed-lifetime TTL index and is written once.
    `expireAt` anchors the absolute-expiry TTL index; absent means "no clock expiry".
    `data` is the full SessionValue as a JSON string.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    created: Optional[datetime] = None
    expire_at: Optional[datetime] = Field(default=None, alias="expireAt")
    data: str

    @field_validator("created", "expire_at")
    @classmethod
    def _normalize_ts(cls, v: Optional[datetime]) -> Optional[datetime]:
        # pymongo hands back naive UTC datetimes unless tz_aware=True
        return _utc(v)

    def to_mongo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)
