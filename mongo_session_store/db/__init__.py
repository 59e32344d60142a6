from .mongodb import get_collection, make_client

__all__ = ["get_collection", "make_client"]
