"""Custom exception classes for PlanLens."""

from typing import Any, List, Optional, Sequence, Union


class PlanLensError(Exception):
    """Base exception for all PlanLens errors."""
    pass


class PlanLoadError(PlanLensError):
    """Raised when Terraform plan JSON cannot be loaded or is invalid."""
    pass


class NormalizationError(PlanLensError):
    """Raised when plan normalization fails."""
    pass


class GraphConstructionError(PlanLensError):
    """Raised when dependency graph construction fails."""
    pass


class ConfigError(PlanLensError):
    """Raised when configuration is invalid or missing."""
    pass


class DiffError(PlanLensError):
    """
    Raised (or reported) when two values at the same path have incomparable shapes.
    
    Only the path and the value kinds are kept so the message is safe to log.
    """

    def __init__(self, path: Sequence[Union[str, int]], before_kind: str, after_kind: str):
        self.path: List[Union[str, int]] = list(path)
        self.before_kind = before_kind
        self.after_kind = after_kind
        location = ".".join(str(p) for p in self.path) or "<root>"
        super().__init__(f"Cannot compare {before_kind} with {after_kind} at {location}")


class DependencyError(PlanLensError):
    """Raised when dependency lookup fails for a resource."""

    def __init__(self, address: str, message: str):
        self.address = address
        super().__init__(f"Dependency lookup failed for {address}: {message}")


class AnalysisCancelledError(PlanLensError):
    """Raised when an analysis run is cancelled; carries the partial report."""

    def __init__(self, report: Optional[Any] = None):
        self.report = report
        super().__init__("analysis cancelled")
