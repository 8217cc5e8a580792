"""Pydantic model for the full analysis result (versioned, stable, explicit)."""

from typing import List
from pydantic import BaseModel, Field
from .changes import ResourceChange, OutputChange


class ChangeStatistics(BaseModel):
    """Aggregate counters over a set of classified resources."""
    total: int = Field(default=0, ge=0, description="Resources counted")
    added: int = Field(default=0, ge=0, description="Resources to create")
    removed: int = Field(default=0, ge=0, description="Resources to delete")
    modified: int = Field(default=0, ge=0, description="Resources updated in place")
    replacements: int = Field(default=0, ge=0, description="Resources deleted and recreated")
    conditional_replacements: int = Field(default=0, ge=0, description="Resources whose replacement depends on values")
    dangerous: int = Field(default=0, ge=0, description="Resources flagged as dangerous")
    unchanged: int = Field(default=0, ge=0, description="No-op resources")

    class Config:
        frozen = True


class AnalysisResult(BaseModel):
    """Everything the formatter needs: classified resources, outputs and statistics."""
    version: str = Field(default="1.0.0", description="Result contract version")
    format_version: str = Field(default="", description="Plan JSON format version")
    terraform_version: str = Field(default="", description="Terraform version that produced the plan")
    resource_changes: List[ResourceChange] = Field(default_factory=list, description="Resources in plan order")
    output_changes: List[OutputChange] = Field(default_factory=list, description="Outputs in plan order")
    statistics: ChangeStatistics = Field(default_factory=ChangeStatistics, description="Counters over all resources")
    danger_threshold: int = Field(default=0, ge=0, description="Configured threshold, passed through for the caller")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "version": "1.0.0",
                "terraform_version": "1.7.5",
                "statistics": {
                    "total": 3, "added": 1, "removed": 0, "modified": 1,
                    "replacements": 1, "conditional_replacements": 0,
                    "dangerous": 1, "unchanged": 0,
                },
                "danger_threshold": 3,
            }
        }
