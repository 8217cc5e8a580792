"""Summary command - plain-text statistics and dangerous resources."""

import json
import sys
from typing import List
import click
from ...contracts.changes import ChangeType
from ...contracts.core_output import AnalysisResult
from ...engine.analyzer import changes_by_type, destructive_changes, group_by_provider, has_destructive_changes
from ...utils.errors import PlanLensError
from ...utils.logging import get_logger
from ..utils import run_analysis, format_error

logger = get_logger("cli.summary")


def render_summary(result: AnalysisResult) -> str:
    """Render statistics, dangerous resources and output changes as plain text."""
    stats = result.statistics
    lines: List[str] = [
        f"Plan summary (Terraform {result.terraform_version or 'unknown'})",
        "-" * 60,
        f"Total:        {stats.total}",
        f"Add:          {stats.added}",
        f"Change:       {stats.modified}",
        f"Destroy:      {stats.removed}",
        f"Replace:      {stats.replacements} ({stats.conditional_replacements} conditional)",
        f"Unchanged:    {stats.unchanged}",
        f"Dangerous:    {stats.dangerous}",
    ]

    dangerous = [change for change in result.resource_changes if change.is_dangerous]
    if dangerous:
        lines.append("")
        lines.append("Dangerous changes:")
        for change in dangerous:
            lines.append(f"  {change.address} ({change.change_type}): {'; '.join(change.danger_reasons)}")

    destructive = destructive_changes(result.resource_changes)
    if destructive:
        lines.append("")
        lines.append("Destructive changes:")
        for change in destructive:
            lines.append(f"  {change.address} ({change.change_type}, replacement {change.replacement_type})")

    updates = [change for change in changes_by_type(result.resource_changes, ChangeType.UPDATE) if change.top_changes]
    if updates:
        lines.append("")
        lines.append("Updated attributes:")
        for change in updates:
            lines.append(f"  {change.address}: {', '.join(change.top_changes)}")

    groups = group_by_provider(result.resource_changes)
    if groups:
        lines.append("")
        lines.append("By provider:")
        for provider, changes in groups.items():
            lines.append(f"  {provider}: {len(changes)}")

    if stats.dangerous >= result.danger_threshold > 0:
        lines.append("")
        lines.append(f"Warning: {stats.dangerous} dangerous changes reach the threshold of {result.danger_threshold}")

    if result.output_changes:
        lines.append("")
        lines.append("Output changes:")
        for output in result.output_changes:
            suffix = " (sensitive)" if output.sensitive else ""
            lines.append(f"  {output.name}: {output.action}{suffix}")

    return "\n".join(lines)


@click.command()
@click.argument('plan_json', type=click.Path(exists=False))
@click.option('--config', '-c', 'config_path', type=click.Path(), help='Config YAML layered over defaults, user and project config')
@click.option('--json', 'as_json', is_flag=True, help='Output statistics as JSON')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def summary(plan_json, config_path, as_json, quiet):
    """Summarize change counts and dangerous resources."""
    try:
        if not quiet:
            click.echo(f"Analyzing plan: {plan_json}", err=True)
        result = run_analysis(plan_json, config_path=config_path)

        if as_json:
            output_data = {
                "statistics": result.statistics.model_dump(),
                "dangerous": [
                    {"address": change.address, "reasons": change.danger_reasons}
                    for change in result.resource_changes if change.is_dangerous
                ],
                "danger_threshold": result.danger_threshold,
                "has_destructive_changes": has_destructive_changes(result.resource_changes),
            }
            click.echo(json.dumps(output_data, indent=2))
        else:
            click.echo(render_summary(result))

    except PlanLensError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Summary generation failed: {e}"), err=True)
        sys.exit(1)
