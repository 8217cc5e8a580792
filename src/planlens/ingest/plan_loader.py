"""Load Terraform plan JSON from disk."""

import json
from pathlib import Path
from typing import Dict, Any
from ..utils.errors import PlanLoadError
from ..utils.logging import get_logger
from .plan_validator import validate_plan_structure, get_plan_summary

logger = get_logger("ingest.plan_loader")


def load_plan_json(plan_path: str) -> Dict[str, Any]:
    """
    Load and validate Terraform plan JSON file.

    Args:
        plan_path: Path to Terraform plan JSON file

    Returns:
        Parsed plan data

    Raises:
        PlanLoadError: If file cannot be read or is not JSON
        StructuralError: If the JSON lacks the plan structure
    """
    path = Path(plan_path)

    if not path.exists():
        raise PlanLoadError(
            f"Plan file not found: {plan_path}. "
            "Generate a plan using: terraform show -json plan.tfplan > plan.json"
        )

    if not path.is_file():
        raise PlanLoadError(f"Path is not a file: {plan_path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise PlanLoadError(f"Error reading plan file: {e}")

    return parse_plan_text(text, source=str(plan_path))


def parse_plan_text(text: str, source: str = "<string>") -> Dict[str, Any]:
    """
    Parse and validate plan JSON text.

    Args:
        text: Raw JSON text
        source: Name used in log and error messages

    Returns:
        Parsed plan data
    """
    try:
        plan_data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PlanLoadError(f"Invalid JSON in plan file {source}: {e}")

    validate_plan_structure(plan_data)

    summary = get_plan_summary(plan_data)
    logger.info(
        f"Loaded Terraform plan from {source} "
        f"(terraform: {summary['terraform_version']}, "
        f"resources: {summary['resource_count']}, outputs: {summary['output_count']})"
    )
    return plan_data
