"""PlanLens - Deterministic Terraform plan change analysis engine."""

import time
from typing import Dict, Any, Optional
from .ingest.plan_loader import load_plan_json
from .ingest.plan_normalizer import normalize_plan
from .engine.analyzer import PlanAnalyzer
from .contracts.core_output import AnalysisResult
from .config import load_analysis_config
from .utils.logging import setup_logging, get_logger
from .utils.errors import PlanLensError

__version__ = "0.1.0"

__all__ = ["analyze", "analyze_plan_data"]

setup_logging()
logger = get_logger("planlens")


def analyze_plan_data(plan_data: Dict[str, Any], config_path: Optional[str] = None, show_no_ops: Optional[bool] = None, timeout: Optional[float] = None) -> AnalysisResult:
    """
    Analyze already-parsed Terraform plan JSON.

    Args:
        plan_data: Raw Terraform plan JSON dictionary
        config_path: Optional config YAML layered over the defaults
        show_no_ops: Override for plan.show_no_ops
        timeout: Optional time budget in seconds for resource analysis

    Returns:
        AnalysisResult

    Raises:
        PlanLensError: If the plan or configuration cannot be used
    """
    config = load_analysis_config(config_path, show_no_ops=show_no_ops)
    document = normalize_plan(plan_data)

    if not document.resource_changes:
        logger.warning("No resource changes found in plan")

    deadline = time.monotonic() + timeout if timeout is not None else None
    return PlanAnalyzer(config).analyze(document, deadline=deadline)


def analyze(plan_json_path: str, config_path: str = None, show_no_ops: Optional[bool] = None) -> Dict[str, Any]:
    """Analyze a Terraform plan JSON file and return the classified changes."""
    try:
        logger.info(f"Starting analysis of plan: {plan_json_path}")

        plan_data = load_plan_json(plan_json_path)
        result = analyze_plan_data(plan_data, config_path=config_path, show_no_ops=show_no_ops)

        logger.info(
            f"Analysis complete: {result.statistics.total} resources, "
            f"{result.statistics.dangerous} dangerous"
        )
        return result.model_dump()

    except PlanLensError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during analysis: {e}", exc_info=True)
        raise PlanLensError(f"Analysis failed: {e}") from e
