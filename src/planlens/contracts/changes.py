"""Change records produced by the analysis engine - facts only, no presentation."""

from enum import Enum
from typing import List, Optional, Any, Union, Sequence
from pydantic import BaseModel, Field

SENSITIVE_PLACEHOLDER = "(sensitive value)"
UNKNOWN_PLACEHOLDER = "(known after apply)"


class ChangeType(str, Enum):
    """What Terraform will do to a resource."""
    NO_OP = "no-op"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"

    @property
    def is_destructive(self) -> bool:
        return self in (ChangeType.DELETE, ChangeType.REPLACE)


class ReplacementType(str, Enum):
    """Whether the resource will be recreated."""
    NEVER = "Never"
    CONDITIONAL = "Conditional"
    ALWAYS = "Always"


class PropertyAction(str, Enum):
    """Kind of leaf-level difference."""
    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    UNKNOWN = "unknown"


class OutputAction(str, Enum):
    """Kind of output difference. NO_OP only appears when no-ops are retained."""
    ADD = "add"
    MODIFY = "modify"
    REMOVE = "remove"
    NO_OP = "no-op"


def format_path(path: Sequence[Union[int, str]]) -> str:
    """Render a path as 'tags.Name' / 'ingress[0].cidr_blocks[1]'; the root is ''."""
    rendered = ""
    for part in path:
        if isinstance(part, int) and not isinstance(part, bool):
            rendered += f"[{part}]"
        elif rendered:
            rendered += f".{part}"
        else:
            rendered = str(part)
    return rendered


class PropertyChange(BaseModel):
    """One leaf-level difference inside a resource's state."""
    path: List[Union[int, str]] = Field(default_factory=list, description="Object keys and array indices from the resource root")
    name: str = Field(default="", description="Last object key on the path")
    before: Any = Field(default=None, description="Prior value, masked or truncated where required")
    after: Any = Field(default=None, description="Planned value, masked or truncated where required")
    sensitive: bool = Field(default=False, description="Both values replaced by the sensitive placeholder")
    is_unknown: bool = Field(default=False, description="Planned value is not known until apply")
    action: PropertyAction = Field(..., description="add, remove, modify or unknown")
    triggers_replacement: bool = Field(default=False, description="Path is related to one of the resource's replace paths")
    size_bytes: int = Field(default=0, ge=0, description="Estimated size of before and after")
    truncated: bool = Field(default=False, description="A value was shortened because it exceeded the size limit")

    class Config:
        use_enum_values = True
        frozen = True

    @property
    def path_string(self) -> str:
        return format_path(self.path)


class PropertyChangeAnalysis(BaseModel):
    """Property changes for one resource, sorted by path."""
    changes: List[PropertyChange] = Field(default_factory=list, description="Retained property changes")
    count: int = Field(default=0, ge=0, description="Number of retained changes")
    total_found: int = Field(default=0, ge=0, description="Number of changes found before truncation")
    total_size_bytes: int = Field(default=0, ge=0, description="Estimated size of retained changes")
    truncated: bool = Field(default=False, description="True when changes were dropped to respect limits")
    note: Optional[str] = Field(default=None, description="Internal note, e.g. a recovered shape mismatch")

    class Config:
        frozen = True


class ResourceChange(BaseModel):
    """Classified change for one planned resource."""
    address: str = Field(..., description="Full resource address")
    type: str = Field(default="", description="Resource type")
    name: str = Field(default="", description="Resource name")
    provider: str = Field(default="", description="Provider prefix of the resource type, e.g. 'aws'")
    module_path: str = Field(default="", description="Module prefix of the address, '' at the root")
    change_type: ChangeType = Field(..., description="Derived from the reported actions")
    is_destructive: bool = Field(default=False, description="True for delete and replace")
    replacement_type: ReplacementType = Field(default=ReplacementType.NEVER, description="Never, Conditional or Always")
    replacement_reasons: List[str] = Field(default_factory=list, description="Replace paths rendered as property paths")
    is_dangerous: bool = Field(default=False, description="Matched a sensitivity rule")
    danger_reasons: List[str] = Field(default_factory=list, description="Why the change is dangerous, resource-level first")
    physical_id: Optional[str] = Field(default=None, description="Current 'id' attribute, if any")
    planned_id: Optional[str] = Field(default=None, description="Planned 'id' attribute, if already known")
    change_attributes: List[str] = Field(default_factory=list, description="'all' for create, delete and replace; 'modified' for update")
    top_changes: List[str] = Field(default_factory=list, description="First changed top-level attributes of an update; removed ones end in ' (removed)'")
    property_changes: PropertyChangeAnalysis = Field(default_factory=PropertyChangeAnalysis, description="Leaf-level differences")

    class Config:
        use_enum_values = True
        frozen = True


class OutputChange(BaseModel):
    """Classified change for one named output."""
    name: str = Field(..., description="Output name")
    action: OutputAction = Field(..., description="add, modify, remove or no-op")
    sensitive: bool = Field(default=False, description="Values replaced by the sensitive placeholder")
    is_unknown: bool = Field(default=False, description="Planned value is not known until apply")
    before: Any = Field(default=None, description="Prior value")
    after: Any = Field(default=None, description="Planned value")

    class Config:
        use_enum_values = True
        frozen = True
