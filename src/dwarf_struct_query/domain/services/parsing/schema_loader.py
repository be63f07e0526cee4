#!/usr/bin/env python3

"""Schema loading: ISF document to type catalog.

This module builds the catalog from a dwarf2json ISF document, handling:
- base types, pointers (single/double), arrays, bitfields, enums
- struct and union members in document order
- function symbols for the address map
- per-entry validation that invalidates a descriptor instead of failing the load
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from ....infrastructure.config import get_config
from ....infrastructure.logging import ProgressTracker, get_logger, log_timing
from ...errors import MalformedDocumentError
from ...models.dwarf import AggregateDefinition, PointerDepth, TypeCategory, TypeDescriptor
from ...models.dwarf.category_registry import CategoryRegistry
from ...models.dwarf.kind_constants import (
    AGGREGATE_KINDS,
    BIG_ENDIAN,
    LITTLE_ENDIAN,
    POINTER_BASE_NAME,
    POINTER_WIDTHS,
    TYPEREF_KINDS,
)
from ...repositories.catalog import CatalogHandle, TypeCatalog
from .base_type_classifier import BaseTypeClassifier

logger = get_logger(__name__)

REQUIRED_SECTIONS = ("base_types", "user_types")
OPTIONAL_SECTIONS = ("enums", "symbols")

# Integral kinds a bitfield may be carved out of
_BITFIELD_STORAGE = (TypeCategory.INT, TypeCategory.CHAR, TypeCategory.BOOL, TypeCategory.ENUM)


@dataclass(frozen=True)
class _Document:
    """Validated top-level sections plus the global layout attributes."""

    base_types: Mapping[str, Any]
    user_types: Mapping[str, Any]
    enums: Mapping[str, Any]
    symbols: Mapping[str, Any]
    is_little_endian: bool
    pointer_size: int


class SchemaLoader:
    """Builds a TypeCatalog from a schema document.

    The loader never aborts on a single malformed entry: the affected
    descriptor is marked invalid (with a reason) and loading continues.
    Only a document whose top-level shape is wrong raises.

    Attributes:
        default_pointer_size: Pointer width used when the document lacks a usable one
        max_type_depth: Deepest pointer/array/bitfield nesting followed
    """

    def __init__(self, default_pointer_size: int | None = None, max_type_depth: int | None = None):
        """Initialize loader, falling back to configuration for unset limits.

        Args:
            default_pointer_size: Pointer width fallback in bytes
            max_type_depth: Nesting limit for type references
        """
        config = get_config()
        self.default_pointer_size = default_pointer_size or config["DEFAULT_POINTER_SIZE"]
        self.max_type_depth = max_type_depth or config["MAX_TYPE_DEPTH"]
        self._tracker = ProgressTracker(logger)

    @log_timing
    def load(
        self, document: Mapping[str, Any], extra_functions: Mapping[int, str] | None = None
    ) -> TypeCatalog:
        """Build a catalog from a parsed schema document.

        Args:
            document: Root mapping of the ISF document
            extra_functions: Additional function entry points (e.g. from an ELF
                symbol table); the document's own symbols take precedence

        Returns:
            Fully built catalog, not yet published anywhere

        Raises:
            MalformedDocumentError: If the top-level shape is not an ISF tree
        """
        self._tracker.reset()

        with self._tracker.track_operation("load schema document"):
            doc = self._read_document(document)

            aggregates: dict[str, AggregateDefinition] = {}
            for name, entry in doc.user_types.items():
                with self._tracker.track_operation(f"user type {name}"):
                    aggregate = self._build_aggregate(name, entry, doc)
                if aggregate is not None:
                    aggregates[name] = aggregate

            functions = self._collect_functions(doc.symbols)
            for address, name in (extra_functions or {}).items():
                if address not in functions:
                    functions[address] = name
                    self._tracker.count_function()

        self._tracker.report_summary()
        return TypeCatalog(aggregates, functions)

    def load_into(
        self,
        handle: CatalogHandle,
        document: Mapping[str, Any],
        extra_functions: Mapping[int, str] | None = None,
    ) -> TypeCatalog:
        """Build a catalog and publish it through a handle as one unit.

        If loading fails the handle keeps its previous catalog.

        Raises:
            MalformedDocumentError: If the top-level shape is not an ISF tree
            CatalogReloadError: If the handle refuses a second catalog
        """
        catalog = self.load(document, extra_functions)
        handle.publish(catalog)
        return catalog

    # Document level ---------------------------------------------------------

    def _read_document(self, document: Any) -> _Document:
        """Validate the top-level shape and read global attributes."""
        if not isinstance(document, Mapping):
            raise MalformedDocumentError(
                f"Schema document must be an object, got {type(document).__name__}"
            )

        sections: dict[str, Mapping[str, Any]] = {}
        for key in REQUIRED_SECTIONS:
            if key not in document:
                raise MalformedDocumentError(f"Schema document has no '{key}' section")
        for key in REQUIRED_SECTIONS + OPTIONAL_SECTIONS:
            section = document.get(key, {})
            if section is None:
                section = {}
            if not isinstance(section, Mapping):
                raise MalformedDocumentError(
                    f"Section '{key}' must be an object, got {type(section).__name__}"
                )
            sections[key] = section

        is_little_endian, pointer_size = self._read_pointer_layout(sections["base_types"])
        logger.debug(
            f"Document layout: {'little' if is_little_endian else 'big'}-endian, "
            f"{pointer_size}-byte pointers"
        )

        return _Document(
            base_types=sections["base_types"],
            user_types=sections["user_types"],
            enums=sections["enums"],
            symbols=sections["symbols"],
            is_little_endian=is_little_endian,
            pointer_size=pointer_size,
        )

    def _read_pointer_layout(self, base_types: Mapping[str, Any]) -> tuple[bool, int]:
        """Read global byte order and pointer width from the "pointer" base type."""
        pointer = base_types.get(POINTER_BASE_NAME)
        if not isinstance(pointer, Mapping):
            logger.warning(
                f"No '{POINTER_BASE_NAME}' base type; assuming little-endian, "
                f"{self.default_pointer_size}-byte pointers"
            )
            return True, self.default_pointer_size

        endian = pointer.get("endian", LITTLE_ENDIAN)
        if endian not in (LITTLE_ENDIAN, BIG_ENDIAN):
            logger.warning(f"Unknown endianness {endian!r}; assuming little-endian")
        is_little_endian = endian != BIG_ENDIAN

        size = BaseTypeClassifier.read_unsigned(pointer.get("size"))
        if size not in POINTER_WIDTHS:
            logger.warning(
                f"Unusable pointer size {pointer.get('size')!r}; "
                f"using {self.default_pointer_size} bytes"
            )
            size = self.default_pointer_size

        return is_little_endian, size

    # Aggregates -------------------------------------------------------------

    def _build_aggregate(
        self, name: str, entry: Any, doc: _Document
    ) -> AggregateDefinition | None:
        """Build one struct/union definition, or None if the entry is unusable."""
        if not isinstance(entry, Mapping):
            self._reject(name, "user type entry is not an object")
            return None

        kind = entry.get("kind")
        if kind not in AGGREGATE_KINDS:
            self._reject(name, f"unrecognized user type kind {kind!r}")
            return None

        size = BaseTypeClassifier.read_unsigned(entry.get("size"))
        if size is None:
            self._reject(name, f"invalid size {entry.get('size')!r}")
            return None

        fields = entry.get("fields") or {}
        if not isinstance(fields, Mapping):
            self._reject(name, "fields is not an object")
            fields = {}

        members = tuple(
            self._build_member(name, size, field_name, field, doc)
            for field_name, field in fields.items()
        )
        self._tracker.count_aggregate(len(members))

        category = TypeCategory.UNION if kind == "union" else TypeCategory.STRUCT
        return AggregateDefinition(name=name, size_bytes=size, members=members, kind=category)

    def _build_member(
        self, aggregate_name: str, aggregate_size: int, field_name: str, field: Any, doc: _Document
    ) -> TypeDescriptor:
        """Resolve one member and check it fits inside its aggregate."""
        if not isinstance(field, Mapping):
            descriptor = TypeDescriptor.invalid(field_name, "field entry is not an object")
            return self._invalidate(aggregate_name, descriptor)

        offset = BaseTypeClassifier.read_unsigned(field.get("offset"))
        if offset is None:
            reason = f"invalid offset {field.get('offset')!r}"
            return self._invalidate(aggregate_name, TypeDescriptor.invalid(field_name, reason))

        resolved = self._resolve(field.get("type"), field_name, doc, depth=0)
        descriptor = resolved.renamed(field_name).at_offset(offset)

        if descriptor.is_valid:
            if offset >= aggregate_size:
                reason = f"offset {offset} outside aggregate of {aggregate_size} bytes"
                descriptor = replace(descriptor, is_valid=False, invalid_reason=reason)
            elif offset + descriptor.size_bytes > aggregate_size:
                reason = (
                    f"{descriptor.size_bytes} bytes at offset {offset} overrun "
                    f"aggregate of {aggregate_size} bytes"
                )
                descriptor = replace(descriptor, is_valid=False, invalid_reason=reason)

        if not descriptor.is_valid:
            return self._invalidate(aggregate_name, descriptor)
        return descriptor

    # Type references --------------------------------------------------------

    def _resolve(self, typeref: Any, name: str, doc: _Document, depth: int) -> TypeDescriptor:
        """Resolve a type reference into a descriptor placed at offset 0."""
        if depth > self.max_type_depth:
            return TypeDescriptor.invalid(name, f"type nesting deeper than {self.max_type_depth}")
        if not isinstance(typeref, Mapping):
            return TypeDescriptor.invalid(name, "type reference is not an object")

        kind = typeref.get("kind")
        if not isinstance(kind, str) or kind not in TYPEREF_KINDS:
            return TypeDescriptor.invalid(name, f"unrecognized type kind {kind!r}")

        if kind == "base":
            return self._resolve_base(typeref.get("name"), name, doc)
        if kind == "pointer":
            return self._resolve_pointer(typeref, name, doc, depth)
        if kind == "array":
            return self._resolve_array(typeref, name, doc, depth)
        if kind == "bitfield":
            return self._resolve_bitfield(typeref, name, doc, depth)
        if kind == "enum":
            return self._resolve_enum(typeref.get("name"), name, doc)
        if kind in AGGREGATE_KINDS:
            return self._resolve_aggregate_ref(kind, typeref.get("name"), name, doc)
        if kind == "function":
            return TypeDescriptor(
                name=name,
                category=TypeCategory.FUNCTION,
                is_little_endian=doc.is_little_endian,
                type_name=typeref.get("name"),
            )
        raise ValueError(f"Unhandled type kind: {kind}")

    def _resolve_base(self, base_name: Any, name: str, doc: _Document) -> TypeDescriptor:
        if not isinstance(base_name, str):
            return TypeDescriptor.invalid(name, "base type reference has no name")

        entry = doc.base_types.get(base_name)
        if not isinstance(entry, Mapping):
            return TypeDescriptor.invalid(name, f"unknown base type '{base_name}'")

        category = BaseTypeClassifier.classify(entry)
        if category is None:
            return TypeDescriptor.invalid(
                name, f"base type '{base_name}' has unrecognized kind {entry.get('kind')!r}"
            )

        size = BaseTypeClassifier.read_unsigned(entry.get("size"))
        if size is None:
            return TypeDescriptor.invalid(name, f"base type '{base_name}' has invalid size")

        width_error = BaseTypeClassifier.width_error(category, size)
        if width_error:
            return TypeDescriptor.invalid(name, f"base type '{base_name}': {width_error}", size)

        return TypeDescriptor(
            name=name,
            size_bytes=size,
            category=category,
            is_little_endian=doc.is_little_endian,
            is_signed=BaseTypeClassifier.is_signed(base_name, entry),
            type_name=base_name,
        )

    def _resolve_pointer(
        self, typeref: Mapping[str, Any], name: str, doc: _Document, depth: int
    ) -> TypeDescriptor:
        """Resolve a pointer; T** and deeper chains are reported as DOUBLE."""
        pointer_depth = PointerDepth.SINGLE
        target = typeref.get("subtype")
        while isinstance(target, Mapping) and target.get("kind") == "pointer":
            pointer_depth = PointerDepth.DOUBLE
            depth += 1
            if depth > self.max_type_depth:
                reason = f"pointer chain deeper than {self.max_type_depth}"
                return TypeDescriptor.invalid(name, reason)
            target = target.get("subtype")

        target_category, target_name = self._pointer_target(target, doc)
        return TypeDescriptor(
            name=name,
            size_bytes=doc.pointer_size,
            category=target_category,
            pointer_depth=pointer_depth,
            is_little_endian=doc.is_little_endian,
            is_signed=False,
            pointer_target_name=target_name,
            type_name=f"{target_name or target_category}{'*' * pointer_depth.value}",
        )

    def _pointer_target(self, target: Any, doc: _Document) -> tuple[TypeCategory, str | None]:
        """Category and name of what a pointer chain ends at.

        The pointer itself is always decodable, so an unresolvable target
        degrades to (VOID, None) instead of invalidating the pointer.
        """
        if not isinstance(target, Mapping):
            return TypeCategory.VOID, None

        kind = target.get("kind")
        target_name = target.get("name") if isinstance(target.get("name"), str) else None
        if kind == "base":
            entry = doc.base_types.get(target_name) if target_name else None
            category = BaseTypeClassifier.classify(entry) if isinstance(entry, Mapping) else None
            if category is None:
                logger.debug(f"Pointer to unresolvable base type {target_name!r}")
                return TypeCategory.VOID, target_name
            return category, target_name

        category = CategoryRegistry.category_for_typeref_kind(kind)
        if category is None:
            logger.debug(f"Pointer to unrecognized kind {kind!r}")
            return TypeCategory.VOID, None
        if category is TypeCategory.INT:
            # bitfields cannot be pointed to; treat like the storage unit
            return self._pointer_target(target.get("type"), doc)
        return category, target_name

    def _resolve_array(
        self, typeref: Mapping[str, Any], name: str, doc: _Document, depth: int
    ) -> TypeDescriptor:
        count = BaseTypeClassifier.read_unsigned(typeref.get("count", 0))
        if count is None:
            return TypeDescriptor.invalid(name, f"invalid array count {typeref.get('count')!r}")

        subtype = typeref.get("subtype")
        element_label = self._typeref_label(subtype)
        element = self._resolve(subtype, element_label, doc, depth + 1)
        if not element.is_valid:
            return TypeDescriptor.invalid(name, f"array element: {element.invalid_reason}")

        # Unknown span (flexible arrays, zero-sized elements) is recorded as 0
        size = count * element.size_bytes if count and element.size_bytes else 0
        return TypeDescriptor(
            name=name,
            size_bytes=size,
            category=TypeCategory.ARRAY,
            is_little_endian=doc.is_little_endian,
            element=element,
            type_name=f"{element.type_name or element_label}[{count}]",
        )

    def _resolve_bitfield(
        self, typeref: Mapping[str, Any], name: str, doc: _Document, depth: int
    ) -> TypeDescriptor:
        """Resolve a bitfield as its whole storage unit (byte-level approximation)."""
        storage = self._resolve(typeref.get("type"), name, doc, depth + 1)
        if not storage.is_valid:
            return TypeDescriptor.invalid(name, f"bitfield storage: {storage.invalid_reason}")
        if storage.is_pointer or storage.category not in _BITFIELD_STORAGE:
            return TypeDescriptor.invalid(
                name, f"bitfield storage must be integral, got {storage.category}"
            )

        position = BaseTypeClassifier.read_unsigned(typeref.get("bit_position"))
        length = BaseTypeClassifier.read_unsigned(typeref.get("bit_length"))
        if position is None or not length:
            return TypeDescriptor.invalid(name, "bitfield has no valid bit_position/bit_length")
        if position + length > storage.size_bytes * 8:
            return TypeDescriptor.invalid(
                name,
                f"bits {position}+{length} exceed {storage.size_bytes}-byte storage unit",
            )

        return replace(
            storage,
            category=TypeCategory.INT,
            bit_position=position,
            bit_length=length,
        )

    def _resolve_enum(self, enum_name: Any, name: str, doc: _Document) -> TypeDescriptor:
        if not isinstance(enum_name, str):
            return TypeDescriptor.invalid(name, "enum reference has no name")

        entry = doc.enums.get(enum_name)
        if not isinstance(entry, Mapping):
            return TypeDescriptor.invalid(name, f"unknown enum '{enum_name}'")

        size = BaseTypeClassifier.read_unsigned(entry.get("size"))
        if size is None:
            return TypeDescriptor.invalid(name, f"enum '{enum_name}' has invalid size")

        base_name = entry.get("base")
        base_entry = doc.base_types.get(base_name) if isinstance(base_name, str) else None
        is_signed = (
            BaseTypeClassifier.is_signed(base_name, base_entry)
            if isinstance(base_entry, Mapping)
            else False
        )

        return TypeDescriptor(
            name=name,
            size_bytes=size,
            category=TypeCategory.ENUM,
            is_little_endian=doc.is_little_endian,
            is_signed=is_signed,
            type_name=enum_name,
        )

    def _resolve_aggregate_ref(
        self, kind: str, type_name: Any, name: str, doc: _Document
    ) -> TypeDescriptor:
        if not isinstance(type_name, str):
            return TypeDescriptor.invalid(name, f"{kind} reference has no name")

        entry = doc.user_types.get(type_name)
        if not isinstance(entry, Mapping):
            return TypeDescriptor.invalid(name, f"unknown {kind} '{type_name}'")

        size = BaseTypeClassifier.read_unsigned(entry.get("size"))
        if size is None:
            return TypeDescriptor.invalid(name, f"{kind} '{type_name}' has invalid size")

        return TypeDescriptor(
            name=name,
            size_bytes=size,
            category=TypeCategory.UNION if kind == "union" else TypeCategory.STRUCT,
            is_little_endian=doc.is_little_endian,
            type_name=type_name,
        )

    @staticmethod
    def _typeref_label(typeref: Any) -> str:
        """Short label for an array element (type name, else kind)."""
        if not isinstance(typeref, Mapping):
            return "{unknown}"
        label = typeref.get("name") or typeref.get("kind")
        return label if isinstance(label, str) else "{unknown}"

    # Functions --------------------------------------------------------------

    def _collect_functions(self, symbols: Mapping[str, Any]) -> dict[int, str]:
        """Map entry address to name for symbols typed as functions.

        The first name (in document order) wins when several share an address.
        """
        functions: dict[int, str] = {}
        for name, symbol in symbols.items():
            if not isinstance(symbol, Mapping):
                continue
            typeref = symbol.get("type")
            if not isinstance(typeref, Mapping) or typeref.get("kind") != "function":
                continue

            address = BaseTypeClassifier.read_unsigned(symbol.get("address"))
            if address is None:
                logger.debug(f"Function symbol '{name}' has no usable address")
                continue
            if address in functions:
                logger.debug(
                    f"Function '{name}' shares 0x{address:x} with '{functions[address]}'"
                )
                continue

            functions[address] = name
            self._tracker.count_function()
        return functions

    # Bookkeeping ------------------------------------------------------------

    def _invalidate(self, aggregate_name: str, descriptor: TypeDescriptor) -> TypeDescriptor:
        """Record an invalid member descriptor and return it unchanged."""
        reason = descriptor.invalid_reason or "unknown"
        context = self._tracker.get_current_context()
        logger.debug(f"[{context}] Invalid member {aggregate_name}.{descriptor.name}: {reason}")
        self._tracker.count_invalid(reason)
        return descriptor

    def _reject(self, name: str, reason: str) -> None:
        """Record a user type that could not be turned into an aggregate."""
        logger.warning(f"Skipping user type '{name}': {reason}")
        self._tracker.count_invalid(reason)


def load(
    document: Mapping[str, Any],
    handle: CatalogHandle | None = None,
    extra_functions: Mapping[int, str] | None = None,
) -> TypeCatalog:
    """Load a schema document and publish the resulting catalog.

    Args:
        document: Root mapping of the ISF document
        handle: Handle to publish into; a new one is created if omitted
        extra_functions: Additional function entry points

    Returns:
        The published catalog
    """
    if handle is None:
        handle = CatalogHandle(allow_reload=get_config()["ALLOW_RELOAD"])
    return SchemaLoader().load_into(handle, document, extra_functions)
