from .session import SessionDocument, SessionValue

__all__ = [
    "SessionDocument",
    "SessionValue",
]
