#!/usr/bin/env python3

"""Memory access capabilities handed to the decoder.

The decoder only needs ``read_bytes(address, length)``. A live tracer
supplies its own implementation (guest virtual memory reads); the classes
here cover snapshots: explicit byte regions and flat memory image files.
"""

import mmap
import os
from pathlib import Path
from types import TracebackType
from typing import Protocol, runtime_checkable

from ..domain.errors import MemoryFaultError
from .logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class MemoryReader(Protocol):
    """Capability to fetch raw bytes from a target address space.

    Implementations signal an unreadable range by raising MemoryFaultError
    (returning None or a short byte string is also treated as a fault).
    """

    def read_bytes(self, address: int, length: int) -> bytes | None: ...


class RegionMemory:
    """Sparse address space made of non-overlapping byte regions."""

    def __init__(self, regions: dict[int, bytes] | None = None):
        """Initialize with optional regions.

        Args:
            regions: Base address to region contents
        """
        self._regions: dict[int, bytes] = {}
        self.read_count = 0
        for base, data in (regions or {}).items():
            self.map(base, data)

    def map(self, base: int, data: bytes) -> None:
        """Add a region.

        Raises:
            ValueError: If the region overlaps an existing one
        """
        end = base + len(data)
        for other_base, other_data in self._regions.items():
            if base < other_base + len(other_data) and other_base < end:
                raise ValueError(
                    f"Region 0x{base:x}-0x{end:x} overlaps region at 0x{other_base:x}"
                )
        self._regions[base] = bytes(data)

    def read_bytes(self, address: int, length: int) -> bytes:
        self.read_count += 1
        for base, data in self._regions.items():
            if base <= address and address + length <= base + len(data):
                start = address - base
                return data[start:start + length]
        raise MemoryFaultError(address, length, "address not mapped")


class MemoryImageFile:
    """Flat dump of a contiguous address range, mapped at ``base_address``."""

    def __init__(self, image_path: Path, base_address: int = 0):
        """Initialize image reader.

        Args:
            image_path: Raw memory dump file
            base_address: Virtual address of the first byte of the file
        """
        self.image_path = Path(image_path)
        self.base_address = base_address
        self._file = None
        # An empty dump cannot be mmapped; it maps to no bytes at all
        self._map: mmap.mmap | bytes | None = None

    def open(self) -> "MemoryImageFile":
        self._file = open(self.image_path, "rb")
        try:
            if os.fstat(self._file.fileno()).st_size == 0:
                logger.warning(f"Memory image {self.image_path} is empty")
                self._map = b""
            else:
                self._map = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
        except ValueError as e:
            self._file.close()
            self._file = None
            raise OSError(f"Cannot map memory image {self.image_path}: {e}") from e
        except OSError:
            self._file.close()
            self._file = None
            raise
        logger.debug(
            f"Mapped {self.image_path} ({len(self._map)} bytes) at 0x{self.base_address:x}"
        )
        return self

    def close(self) -> None:
        if isinstance(self._map, mmap.mmap):
            self._map.close()
        self._map = None
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "MemoryImageFile":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def read_bytes(self, address: int, length: int) -> bytes:
        if self._map is None:
            raise MemoryFaultError(address, length, "image not open")

        start = address - self.base_address
        if start < 0 or length < 0 or start + length > len(self._map):
            raise MemoryFaultError(address, length, "outside memory image")
        return self._map[start:start + length]
