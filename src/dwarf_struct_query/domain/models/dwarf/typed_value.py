#!/usr/bin/env python3

"""Decode results: a tagged scalar value or a tagged failure."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ValueKind(Enum):
    """Tag of a decoded scalar."""

    BOOL = "bool"
    CHAR = "char"
    SIGNED_INT = "signed_int"
    UNSIGNED_INT = "unsigned_int"
    FLOAT = "float"
    ADDRESS = "address"


class FailureReason(Enum):
    """Why a decode did not produce a value."""

    MEMORY_FAULT = "memory_fault"
    UNSUPPORTED_TYPE = "unsupported_type"


@dataclass(frozen=True)
class TypedValue:
    """A decoded scalar together with its kind tag.

    CHAR values hold the numeric byte (signed or unsigned per descriptor).
    ADDRESS values hold the raw pointer value, never a dereference.
    Bitfields decode to their whole storage unit; ``bits`` then carries the
    field's (position, length) within that unit and the rendering says so.
    """

    kind: ValueKind
    value: bool | int | float
    bits: tuple[int, int] | None = None

    @property
    def ok(self) -> bool:
        return True

    def __str__(self) -> str:
        text = self._format()
        if self.bits is not None:
            position, length = self.bits
            text += f" (storage unit, field bits {position}..{position + length - 1})"
        return text

    def _format(self) -> str:
        if self.kind is ValueKind.ADDRESS:
            return f"0x{self.value:x}"
        if self.kind is ValueKind.CHAR:
            printable = 0x20 <= (self.value & 0xFF) < 0x7F
            return f"{self.value} ({chr(self.value & 0xFF)!r})" if printable else str(self.value)
        if self.kind is ValueKind.BOOL:
            return "true" if self.value else "false"
        if self.kind in (ValueKind.SIGNED_INT, ValueKind.UNSIGNED_INT, ValueKind.FLOAT):
            return str(self.value)
        raise ValueError(f"Unhandled value kind: {self.kind}")


@dataclass(frozen=True)
class DecodeFailure:
    """A decode that could not complete, with the reason and context."""

    reason: FailureReason
    message: str
    address: int | None = None

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        where = f" at 0x{self.address:x}" if self.address is not None else ""
        return f"<{self.reason.value}{where}: {self.message}>"


DecodeResult = TypedValue | DecodeFailure
