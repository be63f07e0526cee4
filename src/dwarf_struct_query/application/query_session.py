#!/usr/bin/env python3

"""Struct query session orchestrator (Application Layer).

Wires the modular components together for one run:
- document_reader: schema document input
- ElfSymbolSource: optional function symbols and target layout
- SchemaLoader / CatalogHandle: catalog construction and publication
- MemoryImageFile: memory snapshot to decode from
- memory_decoder / LayoutRenderer: decoding and display
"""

from collections.abc import Mapping
from types import TracebackType
from typing import Any

from elftools.common.exceptions import ELFError

from ..domain.models.dwarf import AggregateDefinition, TypeDescriptor
from ..domain.repositories.catalog import CatalogHandle, TypeCatalog
from ..domain.services.decoding import read_aggregate, read_element, read_member
from ..domain.services.parsing import SchemaLoader
from ..domain.services.rendering import LayoutRenderer
from ..infrastructure.config import Config, get_config
from ..infrastructure.document_reader import read_schema_document
from ..infrastructure.elf_symbols import ElfSymbolSource
from ..infrastructure.logging import get_logger, log_timing
from ..infrastructure.memory_access import MemoryImageFile

logger = get_logger(__name__)


class StructQuerySession:
    """Loads a schema document once and answers layout and decode queries.

    Use as a context manager; the memory image (if configured) stays mapped
    until exit.
    """

    def __init__(self, config: Config, handle: CatalogHandle | None = None):
        """Initialize session.

        Args:
            config: Run configuration (schema, memory image, ELF path)
            handle: Catalog handle to publish into; a new one is created if omitted
        """
        self.config = config
        self.handle = handle or CatalogHandle(allow_reload=get_config()["ALLOW_RELOAD"])
        self.loader = SchemaLoader()
        self.renderer = LayoutRenderer()
        self.memory: MemoryImageFile | None = None

    def __enter__(self) -> "StructQuerySession":
        self.load()
        if self.config.memory_image is not None:
            self.memory = MemoryImageFile(self.config.memory_image, self.config.image_base).open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.memory is not None:
            self.memory.close()
            self.memory = None

    @property
    def catalog(self) -> TypeCatalog:
        return self.handle.current

    @log_timing
    def load(self) -> TypeCatalog:
        """Read the schema document (plus ELF symbols) and publish the catalog."""
        document = read_schema_document(self.config.schema_path)

        extra_functions: dict[int, str] = {}
        if self.config.elf_path is not None:
            source = ElfSymbolSource(self.config.elf_path)
            self._check_target(document, source)
            extra_functions = source.read_functions()

        return self.loader.load_into(self.handle, document, extra_functions)

    def _check_target(self, document: Mapping[str, Any], source: ElfSymbolSource) -> None:
        """Warn when the ELF's layout disagrees with the document's pointer type."""
        try:
            target = source.read_target()
        except ELFError as e:
            logger.warning(f"Cannot read ELF header from {source.elf_path}: {e}")
            return

        base_types = document.get("base_types")
        pointer = base_types.get("pointer") if isinstance(base_types, Mapping) else None
        if not isinstance(pointer, Mapping):
            return

        doc_little = pointer.get("endian", "little") != "big"
        if doc_little != target.little_endian:
            logger.warning(
                f"ELF is {'little' if target.little_endian else 'big'}-endian but the "
                f"schema document declares {pointer.get('endian')!r}"
            )
        if pointer.get("size") != target.pointer_size:
            logger.warning(
                f"ELF uses {target.pointer_size}-byte pointers but the schema document "
                f"declares {pointer.get('size')!r}"
            )

    def require_aggregate(self, name: str) -> AggregateDefinition:
        """Get an aggregate by name.

        Raises:
            KeyError: If the catalog has no such aggregate
        """
        aggregate = self.handle.lookup_struct(name)
        if aggregate is None:
            raise KeyError(f"Unknown struct or union: {name}")
        return aggregate

    def describe(self, name: str) -> str:
        """Render the layout of an aggregate."""
        return self.renderer.aggregate(self.require_aggregate(name))

    def list_aggregates(self) -> list[str]:
        """One summary line per aggregate, in name order."""
        return [
            f"{aggregate.kind} {aggregate.name} (size {aggregate.size_bytes}, "
            f"{len(aggregate)} members)"
            for aggregate in self.catalog.iter_aggregates()
        ]

    def function_at(self, address: int) -> str | None:
        """Name of the function containing an address."""
        return self.handle.lookup_function(address)

    def decode(self, target: str, address: int) -> str:
        """Decode ``STRUCT`` or ``STRUCT.FIELD`` from the memory image.

        Args:
            target: Aggregate name, optionally followed by ``.member``
            address: Address of the aggregate (not of the member)

        Returns:
            Rendered values

        Raises:
            KeyError: If the aggregate or member does not exist
            ValueError: If no memory image is open
        """
        if self.memory is None:
            raise ValueError("No memory image to decode from")

        struct_name, _, member_name = target.partition(".")
        aggregate = self.require_aggregate(struct_name)

        if not member_name:
            values = read_aggregate(self.memory, address, aggregate)
            return self.renderer.aggregate(aggregate, values, address)

        member = aggregate.member(member_name)
        if member is None:
            raise KeyError(f"{aggregate.kind} {struct_name} has no member '{member_name}'")
        return self._decode_member(member, address + member.offset_bytes)

    def _decode_member(self, member: TypeDescriptor, address: int) -> str:
        assert self.memory is not None
        if not (member.is_array and member.is_valid):
            result = read_member(self.memory, address, member)
            return self.renderer.member_line(member, result).strip()

        lines = [self.renderer.member_line(member).strip()]
        for index in range(member.element_count or 0):
            result = read_element(self.memory, address, member, index)
            lines.append(f"{self.renderer.indent}[{index}] = {result}")
        return "\n".join(lines)
