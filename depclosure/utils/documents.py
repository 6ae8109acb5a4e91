"""Reading JSON/TOML documents from mappings, files or inline text.

``read_document`` accepts:

* dict -> returned as is
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings (a leading ``{`` or ``[`` means JSON)
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger("depclosure.utils.documents")

DocumentSource = Union[str, Path, Dict[str, Any]]


def _sniff_format(text: str) -> str:
    return "json" if text.lstrip().startswith(("{", "[")) else "toml"


def read_document(source: DocumentSource, label: str = "document") -> Dict[str, Any]:
    """Parse a document source into a mapping.

    Args:
        source: Mapping, path to a ``.json``/``.toml`` file, or inline text.
        label: Name of the document used in log and error messages.

    Returns:
        Parsed top-level mapping.

    Raises:
        ValueError: If the text is malformed or not a mapping.
        TypeError: If ``source`` is of an unsupported type.
    """
    if isinstance(source, dict):
        logger.debug("Using provided %s mapping", label)
        return source

    if not isinstance(source, (str, Path)):
        raise TypeError(f"Unsupported {label} source type: {type(source)!r}")

    path = Path(source)
    try:
        is_file = path.is_file()
    except OSError:
        # Inline documents can exceed the platform's path length limit.
        is_file = False

    if is_file:
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = _sniff_format(text)
        logger.info("Loading %s from file: %s (fmt=%s)", label, path, fmt)
    else:
        text = str(source)
        fmt = _sniff_format(text)
        logger.info("Loading %s from inline %s string", label, fmt)

    try:
        data = json.loads(text) if fmt == "json" else tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ValueError(f"Malformed {label}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Top-level {label} must be a mapping")
    return data


__all__ = ["DocumentSource", "read_document"]
