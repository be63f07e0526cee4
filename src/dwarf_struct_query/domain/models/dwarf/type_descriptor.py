#!/usr/bin/env python3

"""Type descriptor model: how to interpret one span of raw bytes."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ...errors import InvariantViolation
from .category_registry import PointerDepth, TypeCategory


@dataclass(frozen=True)
class TypeDescriptor:
    """Layout and interpretation of a single member or standalone type.

    A pointer descriptor (``pointer_depth`` not NONE) keeps the category of
    what it points to; its decoded value is always the address itself.
    """

    name: str
    size_bytes: int = 0
    offset_bytes: int = 0
    category: TypeCategory = TypeCategory.VOID
    pointer_depth: PointerDepth = PointerDepth.NONE
    is_little_endian: bool = True
    is_signed: bool = False
    is_valid: bool = True

    pointer_target_name: str | None = None
    """Aggregate (or base type) name the pointer refers to, for caller lookup"""

    element: TypeDescriptor | None = None
    """Element descriptor, arrays only"""

    type_name: str | None = None
    """Name of the referenced type (e.g. "unsigned int", "task_struct")"""

    bit_position: int | None = None
    bit_length: int | None = None
    invalid_reason: str | None = None

    @classmethod
    def invalid(cls, name: str, reason: str, size_bytes: int = 0) -> TypeDescriptor:
        """Build a descriptor the decoder will refuse."""
        return cls(name=name, size_bytes=size_bytes, is_valid=False, invalid_reason=reason)

    @property
    def is_pointer(self) -> bool:
        return self.pointer_depth is not PointerDepth.NONE

    @property
    def is_double_pointer(self) -> bool:
        return self.pointer_depth is PointerDepth.DOUBLE

    @property
    def is_array(self) -> bool:
        return self.category is TypeCategory.ARRAY and not self.is_pointer

    @property
    def is_bitfield(self) -> bool:
        return self.bit_length is not None

    @property
    def element_name(self) -> str | None:
        return self.element.name if self.element is not None else None

    @property
    def element_category(self) -> TypeCategory | None:
        return self.element.category if self.element is not None else None

    @property
    def element_size_bytes(self) -> int:
        return self.element.size_bytes if self.element is not None else 0

    @property
    def element_count(self) -> int | None:
        """Number of array elements.

        Returns:
            Element count, 0 when the span is unknown, or None for non-arrays

        Raises:
            InvariantViolation: If the span is not a whole number of elements
        """
        if not self.is_array:
            return None
        if not self.size_bytes:
            return 0

        element_size = self.element_size_bytes
        if element_size <= 0 or self.size_bytes % element_size:
            raise InvariantViolation(
                f"array '{self.name}' spans {self.size_bytes} bytes, "
                f"not a multiple of element size {element_size}"
            )
        return self.size_bytes // element_size

    def at_offset(self, offset_bytes: int) -> TypeDescriptor:
        """Copy of this descriptor placed at another offset."""
        return replace(self, offset_bytes=offset_bytes)

    def renamed(self, name: str) -> TypeDescriptor:
        """Copy of this descriptor under another name."""
        return replace(self, name=name)

    def __str__(self) -> str:
        text = (
            f"member '{self.name}' (offset: {self.offset_bytes}, type: {self.category}, "
            f"size: {self.size_bytes}, ptr: {self.is_pointer}, dptr: {self.is_double_pointer}, "
            f"le: {self.is_little_endian}, signed: {self.is_signed}, valid: {self.is_valid})"
        )
        if self.is_bitfield:
            text += f" [bits {self.bit_position}+{self.bit_length}]"
        return text
