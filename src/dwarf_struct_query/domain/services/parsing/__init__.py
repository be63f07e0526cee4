#!/usr/bin/env python3

"""Parsing services for ISF schema documents."""

from .base_type_classifier import BaseTypeClassifier
from .schema_loader import SchemaLoader, load

__all__ = [
    "BaseTypeClassifier",
    "SchemaLoader",
    "load",
]
