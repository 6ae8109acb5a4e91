"""Helpers for loading closure configuration from TOML/JSON sources.

``load_closure_config`` accepts:

* None -> default ClosureConfig
* dict -> ClosureConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

from depclosure.config.schema import ClosureConfig
from depclosure.utils.documents import read_document

logger = logging.getLogger("depclosure.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def load_closure_config(source: ConfigSource) -> ClosureConfig:
    """Load ClosureConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns ClosureConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        ClosureConfig instance.

    Raises:
        ValueError: If the document is not a mapping or is malformed.
        TypeError: If the source type is not supported.
        ValidationError: If the configuration values are invalid.
    """
    if source is None:
        logger.debug("No config source provided; using default ClosureConfig")
        return ClosureConfig.default()

    data = read_document(source, "configuration")
    return ClosureConfig.from_dict(data)


__all__ = ["ConfigSource", "load_closure_config"]
