from .index_dal import ExpiryIndexDAL
from .session_dal import MongoSessionStore

__all__ = ["ExpiryIndexDAL", "MongoSessionStore"]
