#!/usr/bin/env python3

"""Application layer: orchestration of loading, lookup and decoding."""

from .query_session import StructQuerySession

__all__ = ["StructQuerySession"]
