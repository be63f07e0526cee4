#!/usr/bin/env python3

"""Memory decoding: raw bytes at an address to a typed scalar.

The decoder reads through an injected capability exposing
``read_bytes(address, length)``. A decode performs at most one read, and
every outcome is returned as a value: ``TypedValue`` on success, or
``DecodeFailure`` tagged MEMORY_FAULT or UNSUPPORTED_TYPE. Nothing here
follows pointers; a pointer decodes to the address it holds.
"""

from collections.abc import Iterator
from typing import Any

from ....infrastructure.logging import get_logger
from ...errors import MemoryFaultError
from ...models.dwarf import (
    AggregateDefinition,
    CategoryRegistry,
    DecodeFailure,
    DecodeResult,
    FailureReason,
    TypeCategory,
    TypeDescriptor,
    TypedValue,
    ValueKind,
)
from ...models.dwarf.kind_constants import BOOL_WIDTHS, CHAR_WIDTHS, INT_WIDTHS
from .scalar_codec import decode_float, decode_int, float_width_supported

logger = get_logger(__name__)


def _unsupported(
    descriptor: TypeDescriptor, message: str, address: int | None = None
) -> DecodeFailure:
    logger.debug(f"Cannot decode '{descriptor.name}': {message}")
    return DecodeFailure(FailureReason.UNSUPPORTED_TYPE, message, address)


def _check_decodable(descriptor: TypeDescriptor) -> str | None:
    """Reason the descriptor has no scalar decoding, or None if it has one."""
    if not descriptor.is_valid:
        return f"invalid descriptor ({descriptor.invalid_reason or 'no reason recorded'})"

    size = descriptor.size_bytes
    if descriptor.is_pointer:
        return None if size > 0 else f"pointer of width {size}"

    category = descriptor.category
    if not CategoryRegistry.is_primitive(category):
        if category is TypeCategory.VOID or category in CategoryRegistry.OPAQUE_CATEGORIES:
            return f"bare {category} has no scalar value"
        raise ValueError(f"Unhandled type category: {category}")

    if category is TypeCategory.BOOL:
        return None if size in BOOL_WIDTHS else f"bool of width {size}"
    if category is TypeCategory.CHAR:
        return None if size in CHAR_WIDTHS else f"char of width {size}"
    if category is TypeCategory.INT:
        return None if size in INT_WIDTHS else f"int of width {size}"
    if category is TypeCategory.FLOAT:
        return None if float_width_supported(size) else f"float of width {size}"
    raise ValueError(f"Unhandled type category: {category}")


def _convert(descriptor: TypeDescriptor, data: bytes) -> TypedValue:
    """Convert bytes already validated against the descriptor's width."""
    little_endian = descriptor.is_little_endian

    if descriptor.is_pointer:
        return TypedValue(ValueKind.ADDRESS, decode_int(data, little_endian, signed=False))

    category = descriptor.category
    if category is TypeCategory.BOOL:
        return TypedValue(ValueKind.BOOL, any(data))
    if category is TypeCategory.CHAR:
        return TypedValue(ValueKind.CHAR, decode_int(data, little_endian, descriptor.is_signed))
    if category is TypeCategory.INT:
        kind = ValueKind.SIGNED_INT if descriptor.is_signed else ValueKind.UNSIGNED_INT
        value = decode_int(data, little_endian, descriptor.is_signed)
        if descriptor.is_bitfield:
            # Byte-level approximation: the whole storage unit, tagged with the field's bits
            return TypedValue(kind, value, (descriptor.bit_position, descriptor.bit_length))
        return TypedValue(kind, value)
    if category is TypeCategory.FLOAT:
        return TypedValue(ValueKind.FLOAT, decode_float(data, little_endian))
    raise ValueError(f"Unhandled type category: {category}")


def read_member(reader: Any, address: int, descriptor: TypeDescriptor) -> DecodeResult:
    """Decode the value a descriptor describes at an address.

    Args:
        reader: Memory capability with ``read_bytes(address, length)``
        address: Virtual address of the value (member offset already applied)
        descriptor: How to interpret the bytes

    Returns:
        TypedValue on success; DecodeFailure with UNSUPPORTED_TYPE when the
        descriptor has no scalar decoding (no read is attempted) or
        MEMORY_FAULT when the read fails or comes back short
    """
    problem = _check_decodable(descriptor)
    if problem is not None:
        return _unsupported(descriptor, problem, address)

    length = descriptor.size_bytes
    try:
        data = reader.read_bytes(address, length)
    except MemoryFaultError as e:
        logger.debug(f"Memory fault decoding '{descriptor.name}': {e}")
        return DecodeFailure(FailureReason.MEMORY_FAULT, str(e), address)

    if data is None or len(data) != length:
        got = "nothing" if data is None else f"{len(data)} byte(s)"
        message = f"read of {length} byte(s) at 0x{address:x} returned {got}"
        logger.debug(f"Memory fault decoding '{descriptor.name}': {message}")
        return DecodeFailure(FailureReason.MEMORY_FAULT, message, address)

    return _convert(descriptor, bytes(data))


def read_element(
    reader: Any, array_address: int, descriptor: TypeDescriptor, index: int
) -> DecodeResult:
    """Decode one element of an array member.

    Args:
        reader: Memory capability with ``read_bytes(address, length)``
        array_address: Address of the first element
        descriptor: Array descriptor
        index: Zero-based element index

    Returns:
        Element decode result; UNSUPPORTED_TYPE for non-arrays, invalid
        descriptors and indexes outside a known element count

    Raises:
        InvariantViolation: If the array span is not a whole number of elements
    """
    if not descriptor.is_valid:
        return _unsupported(descriptor, "invalid descriptor", array_address)
    if not descriptor.is_array or descriptor.element is None:
        return _unsupported(descriptor, f"{descriptor.category} is not an array", array_address)

    count = descriptor.element_count
    if index < 0 or (count and index >= count):
        return _unsupported(
            descriptor, f"index {index} outside array of {count} elements", array_address
        )

    element = descriptor.element
    return read_member(reader, array_address + index * element.size_bytes, element)


def iter_aggregate(
    reader: Any, address: int, aggregate: AggregateDefinition
) -> Iterator[tuple[TypeDescriptor, DecodeResult]]:
    """Decode each member of an aggregate in declaration order."""
    for member in aggregate.members:
        yield member, read_member(reader, address + member.offset_bytes, member)


def read_aggregate(
    reader: Any, address: int, aggregate: AggregateDefinition
) -> dict[str, DecodeResult]:
    """Decode every member of an aggregate placed at an address.

    Members without a scalar decoding (nested structs, arrays) appear as
    UNSUPPORTED_TYPE failures; callers descend into them with their own
    descriptors.

    Returns:
        Member name to decode result, in declaration order
    """
    return {member.name: result for member, result in iter_aggregate(reader, address, aggregate)}
