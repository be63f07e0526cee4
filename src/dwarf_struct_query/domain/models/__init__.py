#!/usr/bin/env python3

"""Domain models for the struct query engine."""

from . import dwarf

__all__ = [
    "dwarf",
]
