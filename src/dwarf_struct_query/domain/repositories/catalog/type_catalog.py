#!/usr/bin/env python3

"""Read-only catalog of aggregate layouts and function entry points."""

from bisect import bisect_right
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from ...models.dwarf import AggregateDefinition


class TypeCatalog:
    """Immutable registry built once by the schema loader.

    Holds two independent mappings: aggregate name to definition
    (case-sensitive) and function entry address to function name (kept
    sorted by address for containing-function lookups). Nothing is mutated
    after construction, so concurrent readers need no locking.
    """

    __slots__ = ("_aggregates", "_functions", "_function_addresses")

    def __init__(
        self,
        aggregates: Mapping[str, AggregateDefinition] | None = None,
        functions: Mapping[int, str] | None = None,
    ):
        """Initialize catalog from fully built mappings.

        Args:
            aggregates: Aggregate name to definition
            functions: Function entry address to function name
        """
        self._aggregates: Mapping[str, AggregateDefinition] = MappingProxyType(
            dict(aggregates or {})
        )
        ordered = sorted((functions or {}).items())
        self._functions: Mapping[int, str] = MappingProxyType(dict(ordered))
        self._function_addresses: tuple[int, ...] = tuple(address for address, _ in ordered)

    @classmethod
    def empty(cls) -> "TypeCatalog":
        """Catalog with no entries, the state before any load."""
        return cls()

    @property
    def aggregates(self) -> Mapping[str, AggregateDefinition]:
        return self._aggregates

    @property
    def functions(self) -> Mapping[int, str]:
        return self._functions

    def lookup_struct(self, name: str) -> AggregateDefinition | None:
        """Get aggregate definition by exact name.

        Args:
            name: Struct or union name (case-sensitive)

        Returns:
            AggregateDefinition or None if not found
        """
        return self._aggregates.get(name)

    def lookup_function(self, address: int, exact: bool = False) -> str | None:
        """Get the function that starts at, or contains, an address.

        The default policy is nearest-below: the function with the greatest
        entry address not above ``address``.

        Args:
            address: Virtual address to look up
            exact: Only match a function whose entry address equals ``address``

        Returns:
            Function name or None if no function qualifies
        """
        if exact:
            return self._functions.get(address)

        index = bisect_right(self._function_addresses, address)
        if index == 0:
            return None
        return self._functions[self._function_addresses[index - 1]]

    def iter_aggregates(self) -> Iterator[AggregateDefinition]:
        """Iterate aggregates in name order."""
        for name in sorted(self._aggregates):
            yield self._aggregates[name]

    def stats(self) -> dict[str, Any]:
        """Get catalog statistics.

        Returns:
            Dictionary with entry counts
        """
        member_count = sum(len(aggregate) for aggregate in self._aggregates.values())
        invalid_count = sum(
            len(aggregate.invalid_members) for aggregate in self._aggregates.values()
        )
        return {
            "aggregates": len(self._aggregates),
            "members": member_count,
            "invalid_members": invalid_count,
            "functions": len(self._functions),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeCatalog):
            return NotImplemented
        return dict(self._aggregates) == dict(other._aggregates) and dict(
            self._functions
        ) == dict(other._functions)

    def __hash__(self) -> int:
        return hash((tuple(sorted(self._aggregates)), self._function_addresses))

    def __len__(self) -> int:
        return len(self._aggregates)

    def __contains__(self, name: object) -> bool:
        return name in self._aggregates

    def __repr__(self) -> str:
        return f"<TypeCatalog aggregates={len(self._aggregates)} functions={len(self._functions)}>"
