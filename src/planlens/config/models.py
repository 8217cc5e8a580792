"""Pydantic models for analysis configuration."""

from typing import FrozenSet, Tuple
from pydantic import BaseModel, Field


class SensitivityRules(BaseModel):
    """Which resource types and properties make a change dangerous."""
    sensitive_resource_types: FrozenSet[str] = Field(default_factory=frozenset, description="Resource types whose deletion or replacement is dangerous")
    sensitive_properties: FrozenSet[Tuple[str, str]] = Field(default_factory=frozenset, description="(resource_type, property) pairs whose modification is dangerous")
    danger_threshold: int = Field(default=3, ge=0, description="Passed through to the caller; unused by the engine")

    class Config:
        frozen = True

    def is_sensitive_resource(self, resource_type: str) -> bool:
        return resource_type in self.sensitive_resource_types

    def is_sensitive_property(self, resource_type: str, property_name: str) -> bool:
        return (resource_type, property_name) in self.sensitive_properties


class AnalysisLimits(BaseModel):
    """Size and depth limits applied while diffing resource state."""
    max_property_changes: int = Field(default=100, ge=1, description="Property changes retained per resource")
    max_value_size_bytes: int = Field(default=10240, ge=16, description="Values larger than this are stored truncated")
    max_total_property_bytes: int = Field(default=10485760, ge=1, description="Total estimated bytes retained per resource")
    max_depth: int = Field(default=64, ge=1, description="Nesting depth past which a subtree is reported as one change")

    class Config:
        frozen = True
        extra = "forbid"


class AnalysisConfig(BaseModel):
    """Everything the engine needs besides the plan itself."""
    rules: SensitivityRules = Field(default_factory=SensitivityRules)
    limits: AnalysisLimits = Field(default_factory=AnalysisLimits)
    show_no_ops: bool = Field(default=False, description="Keep no-op resources and outputs in the result")

    class Config:
        frozen = True
