"""Classify one planned resource change: change type, replacement, danger."""

from typing import Any, List, Optional, Sequence, Tuple
from ..config.models import AnalysisLimits, SensitivityRules
from ..contracts.changes import (
    ChangeType,
    PropertyAction,
    PropertyChange,
    ReplacementType,
    ResourceChange,
    format_path,
)
from ..ingest.models import ResourceChangeInput
from ..utils.errors import ShapeMismatchError
from ..utils.logging import get_logger
from .comparator import parse_replace_path
from .properties import PropertyChangeCollector
from .values import child_mark, contains_mark

logger = get_logger("engine.classifier")

SENSITIVE_RESOURCE_REASON = "Sensitive resource replacement"
SENSITIVE_PROPERTY_REASON = "Sensitive property change: {property}"
TOP_CHANGES_LIMIT = 3
REMOVED_SUFFIX = " (removed)"


def change_type_from_actions(actions: Sequence[str]) -> ChangeType:
    """
    Map Terraform's reported actions to a ChangeType.

    Any combination of delete and create, in either order, is a replacement.
    Empty lists, "no-op", "read" and unrecognized actions are no-ops.
    """
    action_set = set(actions or [])
    if "delete" in action_set and "create" in action_set:
        return ChangeType.REPLACE
    if not actions:
        return ChangeType.NO_OP

    first = actions[0]
    if first == "create":
        return ChangeType.CREATE
    if first == "update":
        return ChangeType.UPDATE
    if first == "delete":
        return ChangeType.DELETE
    if first == "replace":
        return ChangeType.REPLACE
    return ChangeType.NO_OP


def _points_at_unknown(after_unknown: Any, path: Sequence[Any]) -> bool:
    mark = after_unknown
    for part in path:
        if mark is True:
            return True
        mark = child_mark(mark, part)
    return contains_mark(mark)


def determine_replacement_type(change_type: ChangeType, replace_paths: Sequence[Any], after_unknown: Any) -> ReplacementType:
    """
    Decide whether a resource is recreated never, conditionally or always.

    A replacement forced only by attributes whose planned values are still
    unknown depends on those values, so it is conditional.

    Args:
        change_type: Change type derived from the actions
        replace_paths: Raw replace_paths from the plan
        after_unknown: Unknown marks of the planned state

    Returns:
        ReplacementType
    """
    paths = [path for path in (parse_replace_path(entry) for entry in replace_paths or []) if path]

    if change_type == ChangeType.REPLACE:
        if paths and all(_points_at_unknown(after_unknown, path) for path in paths):
            return ReplacementType.CONDITIONAL
        return ReplacementType.ALWAYS
    if paths:
        return ReplacementType.CONDITIONAL
    return ReplacementType.NEVER


def _address_tokens(address: str) -> List[str]:
    # Split on dots outside of index brackets and quoted keys
    tokens: List[str] = []
    current = ""
    depth = 0
    in_quotes = False
    escaped = False
    for char in address:
        if in_quotes:
            current += char
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
            continue
        if char == '"':
            in_quotes = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth = max(depth - 1, 0)
        elif char == "." and depth == 0:
            tokens.append(current)
            current = ""
            continue
        current += char
    tokens.append(current)
    return tokens


def extract_module_path(address: str, module_address: Optional[str] = None) -> str:
    """
    Module prefix of a resource address.

    Examples:
        module.app.module.db.aws_db_instance.main -> module.app.module.db
        module.s3["logs"].aws_s3_bucket.this -> module.s3["logs"]
        aws_instance.web -> ''
    """
    if module_address:
        return module_address

    tokens = _address_tokens(address or "")
    parts: List[str] = []
    position = 0
    while position + 1 < len(tokens) and tokens[position] == "module":
        parts.extend(tokens[position:position + 2])
        position += 2
    return ".".join(parts)


def extract_provider(resource_type: str) -> str:
    """Provider prefix of a resource type, e.g. 'aws' from 'aws_s3_bucket'."""
    provider = (resource_type or "").split("_", 1)[0]
    return provider or "unknown"


def _string_id(state: Any) -> Optional[str]:
    if isinstance(state, dict):
        value = state.get("id")
        if isinstance(value, str) and value:
            return value
    return None


def format_replace_paths(replace_paths: Sequence[Any]) -> List[str]:
    """Replace paths rendered the way property paths are, e.g. 'network_interface[0].subnet_id'."""
    reasons = []
    for entry in replace_paths or []:
        rendered = format_path(parse_replace_path(entry))
        if rendered:
            reasons.append(rendered)
    return reasons


def change_attributes(change_type: ChangeType) -> List[str]:
    """Coarse description of what changes: the whole resource or some of its attributes."""
    if change_type in (ChangeType.CREATE, ChangeType.DELETE, ChangeType.REPLACE):
        return ["all"]
    if change_type == ChangeType.UPDATE:
        return ["modified"]
    return []


def top_changed_properties(change_type: ChangeType, changes: Sequence[PropertyChange], after: Any = None, limit: int = TOP_CHANGES_LIMIT) -> List[str]:
    """
    Names of the first top-level attributes an update touches, in path order.

    An attribute that is gone from the planned state is suffixed with
    ' (removed)'. Other change types touch the whole resource and get an
    empty list.
    """
    if change_type != ChangeType.UPDATE:
        return []

    names: List[str] = []
    seen = set()
    for change in changes:
        if len(names) >= limit:
            break
        if not change.path or not isinstance(change.path[0], str) or change.path[0] in seen:
            continue
        attribute = change.path[0]
        seen.add(attribute)
        removed = change.action == PropertyAction.REMOVE and (not isinstance(after, dict) or after.get(attribute) is None)
        names.append(attribute + REMOVED_SUFFIX if removed else attribute)
    return names


def evaluate_danger(
    resource_type: str,
    change_type: ChangeType,
    changes: Sequence[PropertyChange],
    rules: SensitivityRules,
) -> Tuple[bool, List[str]]:
    """
    Check a resource change against the sensitivity rules.

    The resource-level reason comes first, followed by one reason per
    sensitive property in path order. A property matches on its top-level
    attribute name or on its full path.

    Args:
        resource_type: Resource type
        change_type: Derived change type
        changes: All property changes, sorted, before truncation
        rules: Configured sensitivity rules

    Returns:
        (is_dangerous, reasons)
    """
    reasons: List[str] = []

    if change_type in (ChangeType.DELETE, ChangeType.REPLACE) and rules.is_sensitive_resource(resource_type):
        reasons.append(SENSITIVE_RESOURCE_REASON)

    reported = set()
    for change in changes:
        if change.action != PropertyAction.MODIFY:
            continue
        candidates = []
        if change.path and isinstance(change.path[0], str):
            candidates.append(change.path[0])
        candidates.append(change.path_string)
        for candidate in candidates:
            if candidate and candidate not in reported and rules.is_sensitive_property(resource_type, candidate):
                reported.add(candidate)
                reasons.append(SENSITIVE_PROPERTY_REASON.format(property=candidate))

    return bool(reasons), reasons


class ResourceClassifier:
    """Turns a ResourceChangeInput into a classified ResourceChange."""

    def __init__(
        self,
        rules: Optional[SensitivityRules] = None,
        limits: Optional[AnalysisLimits] = None,
        collector: Optional[PropertyChangeCollector] = None,
    ):
        self.rules = rules or SensitivityRules()
        self.collector = collector or PropertyChangeCollector(limits=limits)

    def classify(self, resource: ResourceChangeInput) -> ResourceChange:
        """
        Classify one resource.

        Shape problems inside the resource never propagate: the change type
        still comes from the reported actions and the property analysis
        carries a note instead.

        Args:
            resource: Normalized resource change

        Returns:
            ResourceChange
        """
        change_type = change_type_from_actions(resource.actions)

        try:
            found = self.collector.collect(resource)
            analysis = self.collector.limit(found)
        except ShapeMismatchError as e:
            analysis = self.collector.fallback(resource, e)
            found = analysis.changes

        is_dangerous, danger_reasons = evaluate_danger(resource.type, change_type, found, self.rules)
        if is_dangerous:
            logger.debug(f"{resource.address} flagged: {', '.join(danger_reasons)}")

        top_changes = top_changed_properties(change_type, found, resource.after)
        return self.build(resource, change_type, analysis, is_dangerous, danger_reasons, top_changes)

    def build(
        self,
        resource: ResourceChangeInput,
        change_type: ChangeType,
        analysis,
        is_dangerous: bool = False,
        danger_reasons: Optional[List[str]] = None,
        top_changes: Optional[List[str]] = None,
    ) -> ResourceChange:
        """Assemble the ResourceChange record from an already computed analysis."""
        return ResourceChange(
            address=resource.address,
            type=resource.type,
            name=resource.name,
            provider=extract_provider(resource.type),
            module_path=extract_module_path(resource.address, resource.module_address),
            change_type=change_type,
            is_destructive=change_type.is_destructive,
            replacement_type=determine_replacement_type(change_type, resource.replace_paths, resource.after_unknown),
            replacement_reasons=format_replace_paths(resource.replace_paths),
            is_dangerous=is_dangerous,
            danger_reasons=danger_reasons or [],
            physical_id=_string_id(resource.before),
            planned_id=_string_id(resource.after),
            change_attributes=change_attributes(change_type),
            top_changes=top_changes or [],
            property_changes=analysis,
        )
