#!/usr/bin/env python3

"""Domain layer containing the catalog, loader and decoder."""

from . import errors, models, repositories, services

__all__ = [
    "errors",
    "models",
    "repositories",
    "services",
]
