#!/usr/bin/env python3

"""Type description domain models."""

from .aggregate_definition import AggregateDefinition
from .category_registry import CategoryRegistry, PointerDepth, TypeCategory
from .type_descriptor import TypeDescriptor
from .typed_value import DecodeFailure, DecodeResult, FailureReason, TypedValue, ValueKind

__all__ = [
    "AggregateDefinition",
    "CategoryRegistry",
    "DecodeFailure",
    "DecodeResult",
    "FailureReason",
    "PointerDepth",
    "TypeCategory",
    "TypeDescriptor",
    "TypedValue",
    "ValueKind",
]
