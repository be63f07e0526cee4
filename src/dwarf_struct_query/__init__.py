"""DWARF struct query - typed decoding of raw memory from dwarf2json schema documents."""

from .application import StructQuerySession
from .domain.errors import (
    CatalogReloadError,
    DwarfQueryError,
    InvariantViolation,
    MalformedDocumentError,
    MemoryFaultError,
)
from .domain.models.dwarf import (
    AggregateDefinition,
    DecodeFailure,
    FailureReason,
    PointerDepth,
    TypeCategory,
    TypedValue,
    TypeDescriptor,
    ValueKind,
)
from .domain.repositories.catalog import CatalogHandle, TypeCatalog
from .domain.services.decoding import read_aggregate, read_element, read_member
from .domain.services.parsing import SchemaLoader, load
from .domain.services.rendering import render_aggregate, render_descriptor, render_value
from .infrastructure.config import Config
from .infrastructure.document_reader import read_schema_document
from .infrastructure.memory_access import MemoryImageFile, MemoryReader, RegionMemory

__all__ = [
    "AggregateDefinition",
    "CatalogHandle",
    "CatalogReloadError",
    "Config",
    "DecodeFailure",
    "DwarfQueryError",
    "FailureReason",
    "InvariantViolation",
    "MalformedDocumentError",
    "MemoryFaultError",
    "MemoryImageFile",
    "MemoryReader",
    "PointerDepth",
    "RegionMemory",
    "SchemaLoader",
    "StructQuerySession",
    "TypeCatalog",
    "TypeCategory",
    "TypeDescriptor",
    "TypedValue",
    "ValueKind",
    "load",
    "read_aggregate",
    "read_element",
    "read_member",
    "read_schema_document",
    "render_aggregate",
    "render_descriptor",
    "render_value",
]
