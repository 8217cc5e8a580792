"""Translate raw Terraform plan JSON into the ChangeDocument the engine consumes."""

from typing import Dict, Any
from pydantic import ValidationError
from .models import ChangeDocument, ResourceChangeInput, OutputChangeInput
from .plan_validator import validate_plan_structure, validate_resource_change
from ..utils.errors import StructuralError
from ..utils.logging import get_logger

logger = get_logger("ingest.plan_normalizer")


def collapse_mark(mark: Any) -> bool:
    """True when a boolean mark, or any leaf of a nested mark tree, is true."""
    if mark is True:
        return True
    if isinstance(mark, dict):
        return any(collapse_mark(v) for v in mark.values())
    if isinstance(mark, list):
        return any(collapse_mark(v) for v in mark)
    return False


def _normalize_resource(resource_change: Dict[str, Any]) -> ResourceChangeInput:
    change = resource_change.get("change") or {}

    return ResourceChangeInput(
        address=resource_change["address"],
        type=resource_change.get("type") or "",
        name=resource_change.get("name") or "",
        provider_name=resource_change.get("provider_name") or "",
        module_address=resource_change.get("module_address"),
        mode=resource_change.get("mode") or "managed",
        index=resource_change.get("index"),
        actions=change.get("actions") or [],
        action_reason=resource_change.get("action_reason"),
        before=change.get("before"),
        after=change.get("after"),
        before_sensitive=change.get("before_sensitive"),
        after_sensitive=change.get("after_sensitive"),
        after_unknown=change.get("after_unknown"),
        replace_paths=change.get("replace_paths") or [],
    )


def _normalize_output(output_change: Any) -> OutputChangeInput:
    if not isinstance(output_change, dict):
        raise ValueError(f"output change must be an object, got {type(output_change).__name__}")

    return OutputChangeInput(
        actions=output_change.get("actions") or [],
        before=output_change.get("before"),
        after=output_change.get("after"),
        after_unknown=collapse_mark(output_change.get("after_unknown")),
        before_sensitive=collapse_mark(output_change.get("before_sensitive")),
        after_sensitive=collapse_mark(output_change.get("after_sensitive")),
    )


def normalize_plan(plan_data: Dict[str, Any]) -> ChangeDocument:
    """
    Build a ChangeDocument from parsed Terraform plan JSON.

    Resource entries that cannot be read (no address, wrong types) are
    skipped with a warning; a broken top-level structure is fatal.

    Args:
        plan_data: Raw Terraform plan JSON dictionary

    Returns:
        ChangeDocument with resources in plan order

    Raises:
        StructuralError: If the plan lacks a usable resource list
    """
    validate_plan_structure(plan_data)

    resources = []
    for position, resource_change in enumerate(plan_data.get("resource_changes") or []):
        warnings = validate_resource_change(resource_change)
        address = resource_change.get("address") if isinstance(resource_change, dict) else None
        if not address:
            logger.warning(f"Skipping resource change #{position}: {'; '.join(warnings)}")
            continue
        if warnings:
            logger.debug(f"Resource {address}: {'; '.join(warnings)}")

        try:
            resources.append(_normalize_resource(resource_change))
        except (ValidationError, AttributeError) as e:
            logger.warning(f"Skipping resource {address}: {e}")

    outputs = {}
    for name, output_change in (plan_data.get("output_changes") or {}).items():
        try:
            outputs[name] = _normalize_output(output_change)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping output {name}: {e}")

    try:
        document = ChangeDocument(
            format_version=plan_data.get("format_version") or "",
            terraform_version=plan_data.get("terraform_version") or "",
            resource_changes=resources,
            output_changes=outputs,
        )
    except ValidationError as e:
        raise StructuralError(f"Failed to build change document: {e}")

    logger.info(f"Normalized {len(resources)} resources and {len(outputs)} outputs from plan")
    return document
