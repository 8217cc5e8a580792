"""Validate the top-level structure of Terraform plan JSON."""

from typing import Dict, Any, List
from ..utils.errors import StructuralError
from ..utils.logging import get_logger

logger = get_logger("ingest.plan_validator")

SUPPORTED_FORMAT_VERSIONS = ["1.0", "1.1", "1.2", "1.3", "1.4", "1.5", "1.6", "1.7", "1.8", "1.9", "1.10"]


def validate_plan_structure(plan_data: Any) -> None:
    """
    Validate the fields the analyzer cannot work without.

    A plan must be a dictionary with a ``resource_changes`` list. Terraform
    omits that list for plans with no changes, so a plan that carries
    ``planned_values`` but no ``resource_changes`` is accepted as empty.

    Args:
        plan_data: Parsed Terraform plan JSON

    Raises:
        StructuralError: If plan structure is unusable
    """
    if not isinstance(plan_data, dict):
        raise StructuralError(
            f"Plan JSON must be an object, got {type(plan_data).__name__}. "
            "Generate a plan using: terraform show -json plan.tfplan > plan.json"
        )

    format_version = plan_data.get("format_version")
    if format_version is not None:
        if not isinstance(format_version, str):
            raise StructuralError("Plan 'format_version' must be a string")
        version_major_minor = ".".join(format_version.split(".")[:2])
        if version_major_minor not in SUPPORTED_FORMAT_VERSIONS:
            logger.warning(
                f"Plan format version '{format_version}' may not be fully supported. "
                f"Supported versions: {', '.join(SUPPORTED_FORMAT_VERSIONS)}"
            )

    if "resource_changes" not in plan_data:
        if "planned_values" not in plan_data:
            raise StructuralError(
                "Plan JSON has no 'resource_changes' list. "
                "This doesn't appear to be a Terraform plan JSON file."
            )
        logger.warning("Plan JSON has no 'resource_changes' field; treating it as a plan with no changes")
    elif not isinstance(plan_data["resource_changes"], list):
        raise StructuralError("Plan 'resource_changes' must be a list")

    output_changes = plan_data.get("output_changes")
    if output_changes is not None and not isinstance(output_changes, dict):
        raise StructuralError("Plan 'output_changes' must be an object")

    terraform_version = plan_data.get("terraform_version")
    if terraform_version is not None and not isinstance(terraform_version, str):
        raise StructuralError("Plan 'terraform_version' must be a string")

    logger.debug("Plan structure validation passed")


def validate_resource_change(resource: Any) -> List[str]:
    """
    Validate a single resource change entry.

    Args:
        resource: Resource change dictionary

    Returns:
        List of validation warnings (empty if valid)
    """
    warnings = []

    if not isinstance(resource, dict):
        return ["Resource change must be a dictionary"]

    if not resource.get("address"):
        warnings.append("Missing 'address'")

    missing_fields = [field for field in ("type", "name", "change") if field not in resource]
    if missing_fields:
        warnings.append(f"Missing fields: {', '.join(missing_fields)}")

    change = resource.get("change", {})
    if not isinstance(change, dict):
        warnings.append("Resource 'change' must be a dictionary")
    elif not isinstance(change.get("actions", []), list):
        warnings.append("Resource change 'actions' must be a list")

    return warnings


def get_plan_summary(plan_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract summary information from plan for logging.

    Args:
        plan_data: Parsed Terraform plan JSON

    Returns:
        Dictionary with format/terraform versions and resource/output counts
    """
    return {
        "format_version": plan_data.get("format_version", "unknown"),
        "terraform_version": plan_data.get("terraform_version", "unknown"),
        "resource_count": len(plan_data.get("resource_changes") or []),
        "output_count": len(plan_data.get("output_changes") or {}),
    }
