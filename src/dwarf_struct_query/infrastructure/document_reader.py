#!/usr/bin/env python3

"""Schema document input: ISF JSON files, xz-compressed files, file objects.

dwarf2json output for a full kernel is usually shipped as ``.json.xz``,
so both plain and compressed files are accepted.
"""

import json
import lzma
from collections.abc import Mapping
from pathlib import Path
from typing import IO, Any

from ..domain.errors import MalformedDocumentError
from .logging import get_logger, log_timing

logger = get_logger(__name__)

SchemaSource = str | Path | IO[str] | IO[bytes] | Mapping[str, Any]


def _read_path(path: Path) -> Any:
    """Read and decode a JSON document from disk."""
    try:
        if path.suffix == ".xz":
            with lzma.open(path, "rt", encoding="utf-8") as f:
                return json.load(f)
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"Invalid JSON in {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise MalformedDocumentError(f"Invalid UTF-8 in {path}: {e}") from e
    except (lzma.LZMAError, EOFError) as e:
        # A truncated .xz stream surfaces as EOFError
        raise MalformedDocumentError(f"Cannot decompress {path}: {e}") from e


@log_timing(slow_seconds=2.0)
def read_schema_document(source: SchemaSource) -> Mapping[str, Any]:
    """Obtain the top-level mapping of a schema document.

    Args:
        source: Path (``.json`` or ``.json.xz``), open file object, or an
            already parsed mapping (returned unchanged)

    Returns:
        The document's root mapping

    Raises:
        MalformedDocumentError: If the content is not JSON or its root is not an object
        OSError: If the file cannot be opened
    """
    if isinstance(source, Mapping):
        return source

    if isinstance(source, (str, Path)):
        path = Path(source)
        logger.debug(f"Reading schema document from {path}")
        raw = _read_path(path)
    elif hasattr(source, "read"):
        try:
            raw = json.load(source)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError(f"Invalid JSON in file object: {e}") from e
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f"Invalid UTF-8 in file object: {e}") from e
    else:
        raise TypeError(f"Unsupported schema source type: {type(source).__name__}")

    if not isinstance(raw, dict):
        raise MalformedDocumentError(
            f"Schema document root must be an object, got {type(raw).__name__}"
        )
    return raw
