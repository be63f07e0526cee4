#!/usr/bin/env python3

"""Exception types for schema loading, memory access and layout invariants.

Only load-level failures and broken invariants are raised. Problems with a
single schema entry become invalid descriptors, and decode problems are
returned as ``DecodeFailure`` values by the memory decoder.
"""

__all__ = [
    "CatalogReloadError",
    "DwarfQueryError",
    "InvariantViolation",
    "MalformedDocumentError",
    "MemoryFaultError",
]


class DwarfQueryError(Exception):
    """Base class for all errors raised by this package."""


class MalformedDocumentError(DwarfQueryError, ValueError):
    """The schema document's top-level shape is not a usable ISF tree."""


class MemoryFaultError(DwarfQueryError):
    """Raised by a memory capability when an address range cannot be read."""

    def __init__(self, address: int, length: int, detail: str = "") -> None:
        self.address = address
        self.length = length
        self.detail = detail
        message = f"cannot read {length} byte(s) at 0x{address:x}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvariantViolation(DwarfQueryError, AssertionError):
    """A descriptor's layout contradicts itself (e.g. ragged array span)."""


class CatalogReloadError(DwarfQueryError, RuntimeError):
    """A catalog handle that disallows reloading was loaded twice."""
