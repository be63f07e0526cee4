#!/usr/bin/env python3

"""Human-readable rendering of layouts and decoded values.

Output is meant for diagnostics and logs; the format is not stable.
"""

from collections.abc import Mapping

from ...models.dwarf import (
    AggregateDefinition,
    CategoryRegistry,
    DecodeResult,
    TypeCategory,
    TypeDescriptor,
)

OFFSET_WIDTH = 4


class LayoutRenderer:
    """Renders descriptors and aggregates as C-like layout listings.

    This class handles:
    - one-line member declarations with offset and size comments
    - pointer stars and array suffixes
    - bitfield widths and invalid-member annotations
    - decoded values next to their member declarations
    """

    def __init__(self, indent: str = "    ", show_invalid_reason: bool = True) -> None:
        """Initialize renderer.

        Args:
            indent: Indentation for member lines
            show_invalid_reason: Append the loader's reason to invalid members
        """
        self.indent = indent
        self.show_invalid_reason = show_invalid_reason

    def declaration(self, descriptor: TypeDescriptor) -> str:
        """C-like declaration of a member, e.g. ``struct task_struct *parent``."""
        if not descriptor.is_valid:
            return f"<invalid> {descriptor.name}"

        if descriptor.is_array and descriptor.element is not None:
            count = ""
            if descriptor.size_bytes and descriptor.element_size_bytes:
                count = str(descriptor.size_bytes // descriptor.element_size_bytes)
            element = self.declaration(descriptor.element.renamed(descriptor.name))
            # Nested arrays append their own suffix after ours
            head, _, tail = element.rpartition(descriptor.name)
            return f"{head}{descriptor.name}[{count}]{tail}"

        if descriptor.is_pointer:
            target = descriptor.pointer_target_name or str(descriptor.category)
            stars = "*" * descriptor.pointer_depth.value
            return f"{self._qualify(descriptor, target)} {stars}{descriptor.name}"

        type_name = descriptor.type_name or str(descriptor.category)
        text = f"{self._qualify(descriptor, type_name)} {descriptor.name}"
        if descriptor.is_bitfield:
            text += f" : {descriptor.bit_length}"
        return text

    def member_line(self, descriptor: TypeDescriptor, value: DecodeResult | None = None) -> str:
        """One listing line: offset, declaration, size and optional value."""
        line = (
            f"{self.indent}/* 0x{descriptor.offset_bytes:0{OFFSET_WIDTH}x} */ "
            f"{self.declaration(descriptor)};"
        )
        notes = [f"{descriptor.size_bytes} bytes"]
        if descriptor.is_bitfield:
            last_bit = descriptor.bit_position + descriptor.bit_length - 1
            notes.append(f"bits {descriptor.bit_position}..{last_bit}")
        if not descriptor.is_valid and self.show_invalid_reason and descriptor.invalid_reason:
            notes.append(f"invalid: {descriptor.invalid_reason}")
        if value is not None:
            notes.append(f"= {value}")
        return f"{line} // {', '.join(notes)}"

    def aggregate(
        self,
        aggregate: AggregateDefinition,
        values: Mapping[str, DecodeResult] | None = None,
        address: int | None = None,
    ) -> str:
        """Render an aggregate layout, optionally with decoded member values.

        Args:
            aggregate: Layout to render
            values: Member name to decode result
            address: Address the values were read from, for the header comment

        Returns:
            Multi-line listing
        """
        header = f"{aggregate.kind} {aggregate.name} {{ // size {aggregate.size_bytes}"
        if address is not None:
            header += f", at 0x{address:x}"
        invalid = len(aggregate.invalid_members)
        if invalid:
            header += f", {invalid} invalid member{'s' if invalid != 1 else ''}"

        lines = [header]
        for member in aggregate.members:
            value = values.get(member.name) if values is not None else None
            lines.append(self.member_line(member, value))
        lines.append("};")
        return "\n".join(lines)

    @staticmethod
    def _qualify(descriptor: TypeDescriptor, type_name: str) -> str:
        """Prefix struct/union/enum keywords the way C spells the type."""
        category = descriptor.category
        if not (CategoryRegistry.is_aggregate(category) or category is TypeCategory.ENUM):
            return type_name
        if type_name.startswith(f"{category} "):
            return type_name
        return f"{category} {type_name}"


_default_renderer = LayoutRenderer()


def render_descriptor(descriptor: TypeDescriptor) -> str:
    """Render a single descriptor as a listing line."""
    return _default_renderer.member_line(descriptor).strip()


def render_aggregate(
    aggregate: AggregateDefinition,
    values: Mapping[str, DecodeResult] | None = None,
    address: int | None = None,
) -> str:
    """Render an aggregate layout with the default renderer."""
    return _default_renderer.aggregate(aggregate, values, address)


def render_value(result: DecodeResult) -> str:
    """Render a decode result (value or failure)."""
    return str(result)
