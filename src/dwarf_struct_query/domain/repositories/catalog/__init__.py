#!/usr/bin/env python3

"""Catalog storage and publication."""

from .catalog_handle import CatalogHandle
from .type_catalog import TypeCatalog

__all__ = [
    "CatalogHandle",
    "TypeCatalog",
]
