"""Analyze command - run PlanLens change analysis on a Terraform plan."""

import json
import sys
from pathlib import Path
import click
from ...contracts.core_output import AnalysisResult
from ...utils.errors import PlanLensError, AnalysisTimeoutError
from ...utils.logging import get_logger
from ..utils import run_analysis, format_error

logger = get_logger("cli.analyze")


@click.command()
@click.argument('plan_json', type=click.Path(exists=False))
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Config YAML layered over defaults, user and project config')
@click.option('--show-no-ops', is_flag=True, help='Keep unchanged resources and outputs in the result')
@click.option('--timeout', type=float, help='Abort if resource analysis takes longer than this many seconds')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
@click.option('--compact', is_flag=True, help='Emit single-line JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def analyze(plan_json, config_path, show_no_ops, timeout, output, compact, quiet):
    """
    Analyze Terraform plan and print classified changes as JSON.

    Generate the input with: terraform show -json plan.tfplan > plan.json
    """
    try:
        if not quiet:
            click.echo(f"Loading and analyzing plan: {plan_json}", err=True)

        result = run_analysis(plan_json, config_path=config_path, show_no_ops=True if show_no_ops else None, timeout=timeout)

        if not quiet:
            stats = result.statistics
            click.echo(
                f"Analysis complete: {stats.total} resources, {stats.dangerous} dangerous",
                err=True,
            )

        output_text = _format_json_output(result, compact)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(output_text)
            if not quiet:
                click.echo(f"Output saved to: {output_path}", err=True)
        else:
            click.echo(output_text)

    except AnalysisTimeoutError as e:
        click.echo(format_error(str(e), "Raise --timeout or split the plan"), err=True)
        sys.exit(1)
    except PlanLensError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Analysis failed: {e}"), err=True)
        sys.exit(1)


def _format_json_output(result: AnalysisResult, compact: bool = False) -> str:
    """Format AnalysisResult as JSON string."""
    if compact:
        return json.dumps(result.model_dump(mode="json"), separators=(",", ":"))
    return json.dumps(result.model_dump(mode="json"), indent=2)
