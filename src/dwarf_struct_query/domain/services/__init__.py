#!/usr/bin/env python3

"""Domain services layer."""

from . import decoding, parsing, rendering

__all__ = [
    "decoding",
    "parsing",
    "rendering",
]
