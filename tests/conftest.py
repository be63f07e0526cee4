"""Pytest configuration and shared fixtures."""

import copy
import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dwarf_struct_query.domain.repositories.catalog import TypeCatalog
from dwarf_struct_query.domain.services.parsing import SchemaLoader
from dwarf_struct_query.infrastructure.logging import LoggerSetup
from dwarf_struct_query.infrastructure.memory_access import RegionMemory


def base(name: str) -> dict[str, Any]:
    return {"kind": "base", "name": name}


def pointer_to(subtype: dict[str, Any]) -> dict[str, Any]:
    return {"kind": "pointer", "subtype": subtype}


SAMPLE_DOCUMENT: dict[str, Any] = {
    "metadata": {"producer": {"name": "dwarf2json", "version": "0.8.0"}, "format": "6.2.0"},
    "base_types": {
        "pointer": {"kind": "int", "size": 8, "signed": False, "endian": "little"},
        "int": {"kind": "int", "size": 4, "signed": True, "endian": "little"},
        "unsigned int": {"kind": "int", "size": 4, "signed": False, "endian": "little"},
        "long int": {"kind": "int", "size": 8, "signed": True, "endian": "little"},
        "char": {"kind": "char", "size": 1, "signed": True, "endian": "little"},
        "_Bool": {"kind": "bool", "size": 1, "signed": False, "endian": "little"},
        "double": {"kind": "float", "size": 8, "signed": True, "endian": "little"},
        "long double": {"kind": "float", "size": 16, "signed": True, "endian": "little"},
        "void": {"kind": "void", "size": 0, "signed": False, "endian": "little"},
    },
    "user_types": {
        "Task": {
            "kind": "struct",
            "size": 16,
            "fields": {
                "pid": {"offset": 0, "type": base("int")},
                "next": {"offset": 8, "type": pointer_to({"kind": "struct", "name": "Task"})},
            },
        },
        "list_head": {
            "kind": "struct",
            "size": 16,
            "fields": {
                "next": {"offset": 0, "type": pointer_to({"kind": "struct", "name": "list_head"})},
                "prev": {"offset": 8, "type": pointer_to({"kind": "struct", "name": "list_head"})},
            },
        },
        "sample": {
            "kind": "struct",
            "size": 64,
            "fields": {
                "flag": {"offset": 0, "type": base("_Bool")},
                "letter": {"offset": 1, "type": base("char")},
                "mode": {"offset": 4, "type": {"kind": "enum", "name": "e_mode"}},
                "count": {"offset": 8, "type": base("unsigned int")},
                "ratio": {"offset": 16, "type": base("double")},
                "name": {
                    "offset": 24,
                    "type": {"kind": "array", "count": 8, "subtype": base("char")},
                },
                "argv": {"offset": 32, "type": pointer_to(pointer_to(base("char")))},
                "flags": {
                    "offset": 40,
                    "type": {
                        "kind": "bitfield",
                        "bit_position": 0,
                        "bit_length": 3,
                        "type": base("unsigned int"),
                    },
                },
                "link": {"offset": 48, "type": {"kind": "struct", "name": "list_head"}},
            },
        },
        "value_u": {
            "kind": "union",
            "size": 8,
            "fields": {
                "as_long": {"offset": 0, "type": base("long int")},
                "as_double": {"offset": 0, "type": base("double")},
            },
        },
        "broken": {
            "kind": "struct",
            "size": 8,
            "fields": {
                "good": {"offset": 0, "type": base("int")},
                "weird": {"offset": 4, "type": {"kind": "mystery"}},
            },
        },
    },
    "enums": {
        "e_mode": {"size": 4, "base": "unsigned int", "constants": {"MODE_A": 0, "MODE_B": 1}},
    },
    "symbols": {
        "do_fork": {"address": 0x1000, "type": {"kind": "function"}},
        "do_exit": {"address": 0x2000, "type": {"kind": "function"}},
        "jiffies": {"address": 0x5000, "type": base("long int")},
    },
}


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Fresh deep copy of the sample ISF document (safe to mutate)."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_catalog(sample_document: dict[str, Any]) -> TypeCatalog:
    """Catalog built from the sample document."""
    return SchemaLoader().load(sample_document)


@pytest.fixture
def region_memory() -> RegionMemory:
    """Empty in-memory address space."""
    return RegionMemory()


@pytest.fixture
def schema_file(tmp_path: Path, sample_document: dict[str, Any]) -> Path:
    """Sample document written to a .json file."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(sample_document), encoding="utf-8")
    return path


@pytest.fixture
def clean_logging() -> Iterator[None]:
    """Reset logging handlers around a test that initializes them."""
    LoggerSetup.reset()
    yield
    LoggerSetup.reset()
