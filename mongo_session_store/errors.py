from __future__ import annotations


class SessionStoreError(Exception):
    """Base class for everything the session store raises."""


class BackendUnavailable(SessionStoreError):
    """Transport, timeout or server failure while talking to MongoDB."""


class EncodingFailed(SessionStoreError):
    """A session value could not be serialized."""


class CorruptRecord(SessionStoreError):
    """A stored payload could not be parsed back into a session value."""


class IndexProvisioningFailed(SessionStoreError):
    """Creating or replacing an expiry index failed."""
