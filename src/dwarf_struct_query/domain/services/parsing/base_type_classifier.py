#!/usr/bin/env python3

"""Base type classification and validation.

Every check the loader makes on a base_types entry lives here, so a
descriptor is either built from a fully validated base type or marked
invalid with the reason this module reports.
"""

from collections.abc import Mapping
from typing import Any

from ...models.dwarf.category_registry import CategoryRegistry, TypeCategory
from ...models.dwarf.kind_constants import (
    BASE_KINDS,
    BOOL_WIDTHS,
    CHAR_WIDTHS,
    FLOAT_WIDTHS,
    INT_WIDTHS,
    UNSIGNED_NAME_MARKERS,
)

# Legal widths per primitive category; VOID must be empty
_WIDTHS_BY_CATEGORY: dict[TypeCategory, frozenset[int]] = {
    TypeCategory.VOID: frozenset({0}),
    TypeCategory.BOOL: BOOL_WIDTHS,
    TypeCategory.CHAR: CHAR_WIDTHS,
    TypeCategory.INT: INT_WIDTHS,
    TypeCategory.FLOAT: FLOAT_WIDTHS,
}


class BaseTypeClassifier:
    """Classifies base_types entries and validates their layout.

    All methods are static; the document is untrusted, so every accessor
    tolerates missing or mistyped attributes.
    """

    @staticmethod
    def read_unsigned(value: Any) -> int | None:
        """Interpret a size/offset/count attribute.

        Args:
            value: Raw attribute value from the document

        Returns:
            The value if it is a non-negative integer, None otherwise

        Examples:
            - 8: 8
            - -1: None
            - "8": None (strings are not coerced)
            - True: None (JSON booleans are not sizes)
        """
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value if value >= 0 else None

    @staticmethod
    def classify(entry: Mapping[str, Any]) -> TypeCategory | None:
        """Get the category declared by a base type's kind attribute.

        Returns:
            TypeCategory, or None if the kind is missing or unknown
        """
        kind = entry.get("kind")
        if not isinstance(kind, str) or kind not in BASE_KINDS:
            return None
        return CategoryRegistry.category_for_base_kind(kind)

    @staticmethod
    def width_error(category: TypeCategory, size: int) -> str | None:
        """Check a base type's size against its category.

        Returns:
            Description of the inconsistency, or None if the size is legal
        """
        allowed = _WIDTHS_BY_CATEGORY.get(category)
        if allowed is None or size in allowed:
            return None
        return f"{category} cannot be {size} bytes wide (allowed: {sorted(allowed)})"

    @staticmethod
    def is_signed(name: str, entry: Mapping[str, Any]) -> bool:
        """Determine signedness of a base type.

        The explicit ``signed`` attribute wins. Without it, names carrying an
        unsigned marker ("unsigned int", "_Bool") are unsigned and other
        integer and character types are signed.

        Examples:
            - ("long int", {"signed": True}): True
            - ("long unsigned int", {}): False
            - ("char", {}): True
        """
        signed = entry.get("signed")
        if isinstance(signed, bool):
            return signed

        if any(marker in name for marker in UNSIGNED_NAME_MARKERS):
            return False
        return BaseTypeClassifier.classify(entry) in (
            TypeCategory.INT,
            TypeCategory.CHAR,
            TypeCategory.FLOAT,
        )
