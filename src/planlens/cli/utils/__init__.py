"""CLI utilities package."""

from typing import Optional
from ...contracts.core_output import AnalysisResult
from ...utils.logging import get_logger

logger = get_logger("cli.utils")


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.

    Args:
        message: Error message
        suggestion: Optional suggestion or help text

    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


def run_analysis(plan_json: str, config_path: Optional[str] = None, show_no_ops: Optional[bool] = None, timeout: Optional[float] = None) -> AnalysisResult:
    """
    Shared analysis execution helper - all commands call this.

    Args:
        plan_json: Path to Terraform plan JSON file
        config_path: Optional config YAML file
        show_no_ops: Override for plan.show_no_ops
        timeout: Optional time budget in seconds

    Returns:
        AnalysisResult

    Raises:
        PlanLensError: If loading or analysis fails
    """
    from ... import analyze_plan_data
    from ...ingest.plan_loader import load_plan_json

    plan_data = load_plan_json(plan_json)
    logger.debug(f"Loaded plan {plan_json}")
    return analyze_plan_data(plan_data, config_path=config_path, show_no_ops=show_no_ops, timeout=timeout)


__all__ = ["run_analysis", "format_error"]
