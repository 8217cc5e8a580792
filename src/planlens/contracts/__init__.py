from .core_output import AnalysisResult, ChangeStatistics
from .changes import (
    ChangeType,
    ReplacementType,
    PropertyAction,
    OutputAction,
    PropertyChange,
    PropertyChangeAnalysis,
    ResourceChange,
    OutputChange,
    SENSITIVE_PLACEHOLDER,
    UNKNOWN_PLACEHOLDER,
    format_path,
)

__all__ = [
    "AnalysisResult",
    "ChangeStatistics",
    "ChangeType",
    "ReplacementType",
    "PropertyAction",
    "OutputAction",
    "PropertyChange",
    "PropertyChangeAnalysis",
    "ResourceChange",
    "OutputChange",
    "SENSITIVE_PLACEHOLDER",
    "UNKNOWN_PLACEHOLDER",
    "format_path",
]
