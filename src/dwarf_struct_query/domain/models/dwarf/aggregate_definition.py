#!/usr/bin/env python3

"""Aggregate (struct/union) layout model."""

from __future__ import annotations

from dataclasses import dataclass

from .category_registry import TypeCategory
from .type_descriptor import TypeDescriptor


@dataclass(frozen=True)
class AggregateDefinition:
    """Named layout of a struct or union.

    Members keep document order; their offsets are authoritative and may
    overlap (unions) or appear out of order.
    """

    name: str
    size_bytes: int
    members: tuple[TypeDescriptor, ...] = ()
    kind: TypeCategory = TypeCategory.STRUCT

    def member(self, name: str) -> TypeDescriptor | None:
        """Find a member descriptor by name."""
        for descriptor in self.members:
            if descriptor.name == name:
                return descriptor
        return None

    @property
    def member_names(self) -> list[str]:
        return [descriptor.name for descriptor in self.members]

    @property
    def invalid_members(self) -> list[TypeDescriptor]:
        return [descriptor for descriptor in self.members if not descriptor.is_valid]

    def __len__(self) -> int:
        return len(self.members)

    def __str__(self) -> str:
        header = (
            f"{self.kind} '{self.name}' "
            f"(size: {self.size_bytes}, members: {len(self.members)}):"
        )
        lines = [header]
        lines.extend(f"\t{descriptor}" for descriptor in self.members)
        return "\n".join(lines)
