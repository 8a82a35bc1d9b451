"""Order store adapter layer - abstracts over the hosted row API."""

from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.adapters.store.factory import create_order_store
from order_functions.adapters.store.postgrest import PostgrestOrderStore

__all__ = [
    "AbstractOrderStore",
    "PostgrestOrderStore",
    "create_order_store",
]
