#!/usr/bin/env python3

"""Decoding services: typed values from raw memory."""

from .memory_decoder import iter_aggregate, read_aggregate, read_element, read_member
from .scalar_codec import decode_float, decode_int, decode_x87

__all__ = [
    "decode_float",
    "decode_int",
    "decode_x87",
    "iter_aggregate",
    "read_aggregate",
    "read_element",
    "read_member",
]
