"""Type categories and the mapping from ISF kind strings onto them.

This module provides unified kind handling across the loader, the decoder
and the renderers, so every consumer classifies a kind string the same way.
"""

from enum import Enum


class TypeCategory(Enum):
    """Closed set of type categories a descriptor can carry."""

    VOID = "void"
    BOOL = "bool"
    CHAR = "char"
    INT = "int"
    FLOAT = "float"
    STRUCT = "struct"
    FUNCTION = "function"
    ARRAY = "array"
    UNION = "union"
    ENUM = "enum"

    def __str__(self) -> str:
        return self.value


class PointerDepth(Enum):
    """Levels of indirection between a descriptor and its target."""

    NONE = 0
    SINGLE = 1
    DOUBLE = 2

    def __bool__(self) -> bool:
        return self is not PointerDepth.NONE


class CategoryRegistry:
    """Centralized registry for kind-to-category mappings."""

    # base_types "kind" attribute to category
    BASE_KIND_TO_CATEGORY: dict[str, TypeCategory] = {
        "void": TypeCategory.VOID,
        "bool": TypeCategory.BOOL,
        "char": TypeCategory.CHAR,
        "int": TypeCategory.INT,
        "float": TypeCategory.FLOAT,
    }

    # Type reference kinds whose category does not depend on a lookup.
    # "base" and "pointer" are resolved through the referenced entry.
    TYPEREF_KIND_TO_CATEGORY: dict[str, TypeCategory] = {
        "array": TypeCategory.ARRAY,
        "bitfield": TypeCategory.INT,
        "enum": TypeCategory.ENUM,
        "union": TypeCategory.UNION,
        "struct": TypeCategory.STRUCT,
        "function": TypeCategory.FUNCTION,
    }

    # Categories the decoder converts straight into a scalar value
    PRIMITIVE_CATEGORIES: frozenset[TypeCategory] = frozenset(
        [TypeCategory.BOOL, TypeCategory.CHAR, TypeCategory.INT, TypeCategory.FLOAT]
    )

    # Categories that only make sense as pointer targets or member containers
    OPAQUE_CATEGORIES: frozenset[TypeCategory] = frozenset(
        [
            TypeCategory.STRUCT,
            TypeCategory.UNION,
            TypeCategory.FUNCTION,
            TypeCategory.ENUM,
            TypeCategory.ARRAY,
        ]
    )

    @classmethod
    def category_for_base_kind(cls, kind: str | None) -> TypeCategory | None:
        """Get the category for a base_types entry kind.

        Args:
            kind: Kind attribute of the base type (e.g., "int")

        Returns:
            TypeCategory, or None if the kind is not recognized
        """
        if kind is None:
            return None
        return cls.BASE_KIND_TO_CATEGORY.get(kind)

    @classmethod
    def category_for_typeref_kind(cls, kind: str | None) -> TypeCategory | None:
        """Get the category for a type reference kind that needs no lookup.

        Args:
            kind: Kind of the type reference (e.g., "struct")

        Returns:
            TypeCategory, or None for "base", "pointer" and unknown kinds
        """
        if kind is None:
            return None
        return cls.TYPEREF_KIND_TO_CATEGORY.get(kind)

    @classmethod
    def is_primitive(cls, category: TypeCategory) -> bool:
        """Check if a category decodes directly into a scalar."""
        return category in cls.PRIMITIVE_CATEGORIES

    @classmethod
    def is_aggregate(cls, category: TypeCategory) -> bool:
        """Check if a category names a struct or union layout."""
        return category in (TypeCategory.STRUCT, TypeCategory.UNION)
