"""Configuration schema definitions using Pydantic for validation.

Configuration controls cycle tolerance of the sorters, the current closure
of each lifecycle operation and how build errors are detected. Closures are
checked against the whitelist of their operation when the configuration is
loaded, so a bad selection fails early with a clear message.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from depclosure.closure.options import DependencyOptions
from depclosure.graph.models.schema import ActivationScope, Closure, Operation


class SorterConfig(BaseModel):
    """Cycle handling of the sorters.

    Attributes:
        allow_cycles: Tolerate cycles instead of reporting them.
        allow_self_reference: Tolerate nodes depending on themselves.
        deactivation_allows_cycles: Tolerate cycles when deactivating modules.
        diagnose_cycles: Attach the requiring closure of cycle participants
            to cycle reports.
    """

    allow_cycles: bool = False
    allow_self_reference: bool = True
    deactivation_allows_cycles: bool = True
    diagnose_cycles: bool = True

    model_config = {"extra": "forbid"}


class DependencyOptionsConfig(BaseModel):
    """Current closure per lifecycle operation."""

    activate_project: Closure = Closure.PROVIDING
    deactivate_project: Closure = Closure.REQUIRING
    activate_bundle: Closure = Closure.PROVIDING
    deactivate_bundle: Closure = Closure.REQUIRING

    model_config = {"extra": "forbid"}

    @field_validator(
        "activate_project", "deactivate_project", "activate_bundle", "deactivate_bundle"
    )
    @classmethod
    def validate_closure(cls, v: Closure, info: ValidationInfo) -> Closure:
        """Validate that the closure is allowed for the operation."""
        operation = Operation(info.field_name)
        if not DependencyOptions.is_allowed(operation, v):
            valid = sorted(c.value for c in DependencyOptions.valid_closures(operation))
            raise ValueError(
                f"Closure '{v.value}' is not allowed for {operation.value}. "
                f"Valid closures: {valid}"
            )
        return v

    def to_options(self) -> DependencyOptions:
        return DependencyOptions(
            {Operation(name): closure for name, closure in self.model_dump().items()}
        )


class ErrorClosureConfig(BaseModel):
    """Build error detection.

    Attributes:
        include_duplicates: Treat duplicate projects as being in error.
        activate_on_compile_error: Ignore compile errors. Only a missing
            build state or manifest errors block an operation.
        domain: Default activation domain of error closures.
    """

    include_duplicates: bool = False
    activate_on_compile_error: bool = False
    domain: ActivationScope = ActivationScope.ACTIVATED

    model_config = {"extra": "forbid"}


class ClosureConfig(BaseModel):
    """Top-level configuration of the closure engine.

    Attributes:
        sorter: Cycle handling.
        dependency_options: Current closure per operation.
        error_closure: Build error detection.
    """

    sorter: SorterConfig = Field(default_factory=SorterConfig)
    dependency_options: DependencyOptionsConfig = Field(
        default_factory=DependencyOptionsConfig
    )
    error_closure: ErrorClosureConfig = Field(default_factory=ErrorClosureConfig)

    model_config = {"extra": "forbid"}

    @classmethod
    def default(cls) -> "ClosureConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClosureConfig":
        """Create configuration from dictionary.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
