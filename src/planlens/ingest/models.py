"""Pydantic models for the parsed plan document handed to the engine."""

from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field


class ResourceChangeInput(BaseModel):
    """One entry of the plan's resource_changes list."""
    address: str = Field(..., description="Full resource address, e.g. 'module.db.aws_db_instance.main'")
    type: str = Field(default="", description="Resource type, e.g. 'aws_db_instance'")
    name: str = Field(default="", description="Resource name within its module")
    provider_name: str = Field(default="", description="Provider source address")
    module_address: Optional[str] = Field(default=None, description="Module address reported by Terraform")
    mode: str = Field(default="managed", description="'managed' or 'data'")
    index: Optional[Union[int, str]] = Field(default=None, description="count/for_each key")
    actions: List[str] = Field(default_factory=list, description="Reported actions in plan order")
    action_reason: Optional[str] = Field(default=None, description="Terraform's reason for the chosen action")
    before: Any = Field(default=None, description="Prior state tree")
    after: Any = Field(default=None, description="Planned state tree")
    before_sensitive: Any = Field(default=None, description="Sensitivity marks parallel to 'before'")
    after_sensitive: Any = Field(default=None, description="Sensitivity marks parallel to 'after'")
    after_unknown: Any = Field(default=None, description="Unknown marks parallel to 'after'")
    replace_paths: List[Any] = Field(default_factory=list, description="Paths whose change forces replacement")

    class Config:
        frozen = True


class OutputChangeInput(BaseModel):
    """One entry of the plan's output_changes mapping."""
    actions: List[str] = Field(default_factory=list, description="Reported actions")
    before: Any = Field(default=None, description="Prior output value")
    after: Any = Field(default=None, description="Planned output value")
    after_unknown: bool = Field(default=False, description="True when the planned value is not yet known")
    before_sensitive: bool = Field(default=False, description="True when the prior value is sensitive")
    after_sensitive: bool = Field(default=False, description="True when the planned value is sensitive")

    class Config:
        frozen = True


class ChangeDocument(BaseModel):
    """Parsed plan: resources in plan order plus named outputs."""
    format_version: str = Field(default="", description="Plan JSON format version")
    terraform_version: str = Field(default="", description="Terraform version that produced the plan")
    resource_changes: List[ResourceChangeInput] = Field(..., description="Resource changes in plan order")
    output_changes: Dict[str, OutputChangeInput] = Field(default_factory=dict, description="Output changes by name")

    class Config:
        frozen = True
