#!/usr/bin/env python3

"""ISF kind strings and layout constants.

The schema document is the dwarf2json Intermediate Symbol Format. Type
references inside it carry one of the ``TYPEREF_KINDS`` and base type
entries carry one of the ``BASE_KINDS``.
"""

# Kinds that may appear on a type reference ({"kind": ..., ...})
TYPEREF_KINDS = frozenset(
    {
        "base",
        "pointer",
        "array",
        "bitfield",
        "enum",
        "union",
        "struct",
        "function",
    }
)

# Kinds that may appear on a base_types entry
BASE_KINDS = frozenset(
    {
        "void",
        "bool",
        "char",
        "int",
        "float",
    }
)

# Kinds a user_types entry may declare
AGGREGATE_KINDS = frozenset({"struct", "union"})

# Name of the base type that declares pointer width and global byte order
POINTER_BASE_NAME = "pointer"

LITTLE_ENDIAN = "little"
BIG_ENDIAN = "big"

# Legal widths per base kind, in bytes
BOOL_WIDTHS = frozenset({1})
CHAR_WIDTHS = frozenset({1})
INT_WIDTHS = frozenset({1, 2, 4, 8, 16})
# 10/12/16 hold an x87 80-bit extended value in their low 10 bytes
FLOAT_WIDTHS = frozenset({4, 8, 10, 12, 16})
EXTENDED_FLOAT_WIDTHS = frozenset({10, 12, 16})
POINTER_WIDTHS = frozenset({2, 4, 8})

# Base type names that are unsigned even without a "signed" attribute
UNSIGNED_NAME_MARKERS = ("unsigned", "_Bool", "bool")
