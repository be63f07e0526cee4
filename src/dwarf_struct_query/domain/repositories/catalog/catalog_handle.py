#!/usr/bin/env python3

"""Single publication point for the active type catalog."""

import threading

from ....infrastructure.logging import get_logger
from ...errors import CatalogReloadError
from ...models.dwarf import AggregateDefinition
from .type_catalog import TypeCatalog

logger = get_logger(__name__)


class CatalogHandle:
    """Owns the current catalog and replaces it atomically.

    Readers fetch ``current`` (a single attribute read) and keep using the
    catalog they got, so they never observe a partially built one. Writers
    are serialized by a lock. With ``allow_reload=False`` only the first
    publication is accepted.
    """

    def __init__(self, allow_reload: bool = True):
        """Initialize handle with an empty catalog.

        Args:
            allow_reload: Replace the catalog on later loads instead of refusing them
        """
        self.allow_reload = allow_reload
        self._catalog = TypeCatalog.empty()
        self._publish_count = 0
        self._write_lock = threading.Lock()

    @property
    def current(self) -> TypeCatalog:
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self._publish_count > 0

    def publish(self, catalog: TypeCatalog) -> TypeCatalog:
        """Make a fully built catalog the active one.

        Args:
            catalog: Catalog to publish

        Returns:
            The catalog that was replaced

        Raises:
            CatalogReloadError: If a catalog was already published and reloads are disallowed
        """
        with self._write_lock:
            if self._publish_count and not self.allow_reload:
                raise CatalogReloadError(
                    "catalog already loaded and this handle does not allow reloading"
                )
            previous = self._catalog
            self._catalog = catalog
            self._publish_count += 1

        if previous is not catalog and len(previous):
            logger.info(f"Replaced catalog ({len(previous)} -> {len(catalog)} aggregates)")
        else:
            logger.debug(f"Published catalog with {len(catalog)} aggregates")
        return previous

    def lookup_struct(self, name: str) -> AggregateDefinition | None:
        """Look up an aggregate in the active catalog."""
        return self._catalog.lookup_struct(name)

    def lookup_function(self, address: int, exact: bool = False) -> str | None:
        """Look up a function in the active catalog."""
        return self._catalog.lookup_function(address, exact=exact)
