"""
Named store registry for Typox.

Owns a set of named in-memory Oxigraph stores. A store is created the
first time a write operation names it; read operations (query, clear,
size) never create one.

Usage:
    registry = StoreRegistry()

    store = registry.get_or_create("people")
    store.load(turtle_bytes, format=RdfFormat.TURTLE)

    registry.list_stores()    # ["memory", "people"]
    registry.size("people")
"""

import logging
from typing import Callable, Dict, List, Optional

from pyoxigraph import Store

from typox.errors import InvalidInputError, StoreNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_STORE = "memory"


class StoreRegistry:
    """
    Mapping of store name -> Store.

    Names are case-sensitive and never renamed or merged. The default
    store is created when the registry is constructed, so a fresh
    registry always lists it.
    """

    def __init__(
        self,
        store_factory: Optional[Callable[[], Store]] = None,
        default_store: str = DEFAULT_STORE,
    ):
        """
        Initialize the registry.

        Args:
            store_factory: Callable returning a new empty store
                (in-memory Store by default)
            default_store: Name of the store created up front
        """
        self._factory = store_factory or Store
        self._stores: Dict[str, Store] = {}
        self.default_store = default_store
        self.get_or_create(default_store)

    @staticmethod
    def validate_name(name: str) -> str:
        if not isinstance(name, str) or not name:
            raise InvalidInputError("Invalid store name: store name cannot be empty")
        return name

    def get_or_create(self, name: str) -> Store:
        """
        Return the store registered under ``name``, creating it if needed.

        Raises:
            InvalidInputError: If the name is empty
        """
        self.validate_name(name)
        store = self._stores.get(name)
        if store is None:
            store = self._factory()
            self._stores[name] = store
            logger.debug(f"Created store '{name}'")
        return store

    def get(self, name: str) -> Store:
        """
        Return an existing store.

        Raises:
            StoreNotFoundError: If no store is registered under ``name``
        """
        self.validate_name(name)
        try:
            return self._stores[name]
        except KeyError:
            raise StoreNotFoundError(name) from None

    def list_stores(self) -> List[str]:
        """Names of all registered stores, sorted."""
        return sorted(self._stores)

    def clear(self, name: str) -> None:
        """Remove all triples from a store; the name stays registered."""
        self.get(name).clear()
        logger.debug(f"Cleared store '{name}'")

    def size(self, name: str) -> int:
        """Number of quads held by a store."""
        return len(self.get(name))

    def drop(self, name: str) -> None:
        """
        Unregister a store and discard its contents.

        The default store cannot be dropped, only cleared.
        """
        self.get(name)
        if name == self.default_store:
            raise InvalidInputError(f"Store '{name}' is the default store and cannot be dropped")
        del self._stores[name]
        logger.debug(f"Dropped store '{name}'")

    def exists(self, name: str) -> bool:
        return name in self._stores

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __len__(self) -> int:
        return len(self._stores)
