#!/usr/bin/env python3

"""Byte-level conversions for scalar values.

Integers of any width go through ``int.from_bytes``; binary32/binary64
through ``struct``. The 10/12/16-byte float widths are x87 extended
precision, padded to the ABI's storage size, with the value held in the
10 least significant bytes.
"""

import math
import struct

from ...models.dwarf.kind_constants import EXTENDED_FLOAT_WIDTHS

X87_BYTES = 10
X87_EXPONENT_BIAS = 16383
X87_MANTISSA_BITS = 63

_IEEE_FORMATS = {4: "f", 8: "d"}


def decode_int(data: bytes, little_endian: bool, signed: bool) -> int:
    """Decode an integer spanning all of ``data``."""
    return int.from_bytes(data, "little" if little_endian else "big", signed=signed)


def float_width_supported(size_bytes: int) -> bool:
    return size_bytes in _IEEE_FORMATS or size_bytes in EXTENDED_FLOAT_WIDTHS


def decode_float(data: bytes, little_endian: bool) -> float:
    """Decode a floating point value spanning all of ``data``.

    Raises:
        ValueError: If the width is not a supported float width
    """
    size = len(data)
    if size in _IEEE_FORMATS:
        byte_order = "<" if little_endian else ">"
        return struct.unpack(f"{byte_order}{_IEEE_FORMATS[size]}", data)[0]
    if size in EXTENDED_FLOAT_WIDTHS:
        low = data[:X87_BYTES] if little_endian else data[-X87_BYTES:]
        return decode_x87(low, little_endian)
    raise ValueError(f"Unsupported float width: {size} bytes")


def decode_x87(data: bytes, little_endian: bool = True) -> float:
    """Decode an 80-bit x87 extended precision value.

    Layout (little-endian): 64-bit significand with explicit integer bit,
    then 15-bit exponent and sign bit. Precision beyond binary64 is lost;
    magnitudes beyond binary64 range become infinities.

    Raises:
        ValueError: If ``data`` is not exactly 10 bytes
    """
    if len(data) != X87_BYTES:
        raise ValueError(f"x87 extended value must be {X87_BYTES} bytes, got {len(data)}")

    if little_endian:
        mantissa = int.from_bytes(data[:8], "little")
        sign_exponent = int.from_bytes(data[8:], "little")
    else:
        sign_exponent = int.from_bytes(data[:2], "big")
        mantissa = int.from_bytes(data[2:], "big")

    negative = bool(sign_exponent & 0x8000)
    exponent = sign_exponent & 0x7FFF

    if exponent == 0x7FFF:
        if mantissa & ((1 << X87_MANTISSA_BITS) - 1):
            return math.nan
        return -math.inf if negative else math.inf

    # Denormals use the minimum exponent with no implicit bias shift
    unbiased = (exponent or 1) - X87_EXPONENT_BIAS - X87_MANTISSA_BITS
    try:
        magnitude = math.ldexp(float(mantissa), unbiased)
    except OverflowError:
        magnitude = math.inf
    return -magnitude if negative else magnitude
