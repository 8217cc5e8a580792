"""Custom exception classes for PlanLens."""


class PlanLensError(Exception):
    """Base exception for all PlanLens errors."""
    pass


class PlanLoadError(PlanLensError):
    """Raised when Terraform plan JSON cannot be loaded or is invalid."""
    pass


class StructuralError(PlanLensError):
    """Raised when the plan document is missing required top-level structure."""
    pass


class ShapeMismatchError(PlanLensError):
    """Raised when a resource's value, sensitivity or unknown trees cannot be interpreted."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = list(path) if path is not None else []


class AnalysisError(PlanLensError):
    """Raised when change analysis fails."""
    pass


class AnalysisTimeoutError(AnalysisError):
    """Raised when the analysis deadline passes before every resource was processed."""

    def __init__(self, message: str, partial_changes=None):
        super().__init__(message)
        self.partial_changes = list(partial_changes or [])


class ConfigError(PlanLensError):
    """Raised when configuration is invalid or missing."""
    pass
