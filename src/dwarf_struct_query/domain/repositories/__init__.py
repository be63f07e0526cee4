#!/usr/bin/env python3

"""Repositories holding loaded type information."""

from . import catalog

__all__ = [
    "catalog",
]
