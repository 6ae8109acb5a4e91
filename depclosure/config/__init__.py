"""Configuration schema and loading for depclosure."""

from .loader import load_closure_config
from .schema import (
    ClosureConfig,
    DependencyOptionsConfig,
    ErrorClosureConfig,
    SorterConfig,
)

__all__ = [
    "ClosureConfig",
    "DependencyOptionsConfig",
    "ErrorClosureConfig",
    "SorterConfig",
    "load_closure_config",
]
