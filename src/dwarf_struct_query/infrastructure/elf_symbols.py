#!/usr/bin/env python3

"""Function entry points and target layout read from an ELF image.

ISF documents produced from stripped kernels or user binaries often carry
few function symbols. When the matching ELF is at hand, its symbol tables
fill in the function-address map, and its header gives the byte order and
pointer width to cross-check against the document.
"""

from dataclasses import dataclass
from pathlib import Path

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import SymbolTableSection

from .logging import get_logger

logger = get_logger(__name__)

SYMBOL_TABLE_SECTIONS = (".symtab", ".dynsym")


@dataclass(frozen=True)
class ElfTarget:
    """Layout facts about the binary an ISF document describes."""

    machine: str
    little_endian: bool
    pointer_size: int


class ElfSymbolSource:
    """Reads function symbols and layout facts from an ELF file."""

    def __init__(self, elf_path: str | Path):
        """Initialize symbol source.

        Args:
            elf_path: Path to the ELF file
        """
        self.elf_path = Path(elf_path)

    def read_target(self) -> ElfTarget:
        """Read machine, byte order and pointer width from the ELF header.

        Raises:
            OSError: If the file cannot be read
            ELFError: If the file is not a valid ELF image
        """
        with open(self.elf_path, "rb") as f:
            elf = ELFFile(f)  # type: ignore[no-untyped-call]
            target = ElfTarget(
                machine=str(elf.header["e_machine"]),
                little_endian=bool(elf.little_endian),
                pointer_size=elf.elfclass // 8,
            )

        logger.debug(
            f"ELF target: machine={target.machine}, little_endian={target.little_endian}, "
            f"pointer_size={target.pointer_size}"
        )
        return target

    def read_functions(self) -> dict[int, str]:
        """Collect STT_FUNC symbols with a nonzero address.

        The first name seen for an address wins; .symtab is read before
        .dynsym.

        Returns:
            Function entry address to name; empty if the file has no symbol tables

        Raises:
            OSError: If the file cannot be read
        """
        functions: dict[int, str] = {}

        try:
            with open(self.elf_path, "rb") as f:
                elf = ELFFile(f)  # type: ignore[no-untyped-call]
                for section_name in SYMBOL_TABLE_SECTIONS:
                    section = elf.get_section_by_name(section_name)
                    if not isinstance(section, SymbolTableSection):
                        continue

                    for symbol in section.iter_symbols():
                        if symbol["st_info"]["type"] != "STT_FUNC":
                            continue
                        address = symbol["st_value"]
                        if address and symbol.name:
                            functions.setdefault(address, symbol.name)
        except ELFError as e:
            logger.warning(f"Cannot read symbols from {self.elf_path}: {e}")
            return {}

        logger.info(f"Read {len(functions)} function symbols from {self.elf_path}")
        return functions
