"""Run the change-analysis engine over a whole ChangeDocument."""

import time
from typing import Dict, List, Optional
from ..config.models import AnalysisConfig
from ..contracts.changes import ChangeType, PropertyChangeAnalysis, ResourceChange
from ..contracts.core_output import AnalysisResult
from ..ingest.models import ChangeDocument, ResourceChangeInput
from ..utils.errors import AnalysisTimeoutError, PlanLensError
from ..utils.logging import get_logger
from .classifier import ResourceClassifier, change_type_from_actions
from .comparator import ValueComparator
from .outputs import analyze_output_changes
from .properties import PropertyChangeCollector
from .statistics import calculate_statistics

logger = get_logger("engine.analyzer")

DEFAULT_GROUPING_THRESHOLD = 10


def filter_no_ops(changes: List[ResourceChange]) -> List[ResourceChange]:
    """Drop resources Terraform will leave untouched."""
    return [change for change in changes if change.change_type != ChangeType.NO_OP]


def destructive_changes(changes: List[ResourceChange]) -> List[ResourceChange]:
    """Deletions and replacements, in input order."""
    return [change for change in changes if change.is_destructive]


def has_destructive_changes(changes: List[ResourceChange]) -> bool:
    return any(change.is_destructive for change in changes)


def changes_by_type(changes: List[ResourceChange], change_type: ChangeType) -> List[ResourceChange]:
    return [change for change in changes if change.change_type == change_type]


def changes_by_resource_type(changes: List[ResourceChange], resource_type: str) -> List[ResourceChange]:
    """
    Changes whose resource type starts with the given prefix.

    'aws_s3' matches aws_s3_bucket and aws_s3_bucket_policy.
    """
    return [change for change in changes if change.type.startswith(resource_type)]


def group_by_provider(changes: List[ResourceChange], threshold: int = DEFAULT_GROUPING_THRESHOLD) -> Dict[str, List[ResourceChange]]:
    """
    Group changes by provider, providers in order of first appearance.

    Grouping only pays off for larger, mixed plans: fewer than threshold
    changes, or changes from a single provider, give an empty mapping.

    Args:
        changes: Classified resource changes
        threshold: Minimum number of changes before grouping applies

    Returns:
        Mapping of provider to its changes
    """
    if len(changes) < threshold:
        return {}

    groups: Dict[str, List[ResourceChange]] = {}
    for change in changes:
        groups.setdefault(change.provider, []).append(change)

    if len(groups) <= 1:
        return {}
    return groups


class PlanAnalyzer:
    """
    Classify every resource and output of a plan.

    Resources are processed independently and in document order; the only
    shared input is the frozen configuration.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        comparator = ValueComparator(self.config.limits)
        collector = PropertyChangeCollector(comparator, self.config.limits)
        self.classifier = ResourceClassifier(self.config.rules, self.config.limits, collector)

    def classify_resources(self, resources: List[ResourceChangeInput], deadline: Optional[float] = None) -> List[ResourceChange]:
        """
        Classify resources in order.

        Args:
            resources: Normalized resource changes
            deadline: Optional time.monotonic() value checked between resources

        Returns:
            Classified resources, one per input

        Raises:
            AnalysisTimeoutError: If the deadline passes before all resources are done
        """
        classified: List[ResourceChange] = []
        for resource in resources:
            if deadline is not None and time.monotonic() > deadline:
                raise AnalysisTimeoutError(
                    f"Analysis deadline passed after {len(classified)} of {len(resources)} resources",
                    partial_changes=classified,
                )
            classified.append(self._classify_isolated(resource))
        return classified

    def _classify_isolated(self, resource: ResourceChangeInput) -> ResourceChange:
        try:
            return self.classifier.classify(resource)
        except (PlanLensError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Could not analyze properties of {resource.address}: {e}", exc_info=True)
            change_type = change_type_from_actions(resource.actions)
            analysis = PropertyChangeAnalysis(note=f"Property analysis failed: {e}")
            return self.classifier.build(resource, change_type, analysis)

    def analyze(self, document: ChangeDocument, deadline: Optional[float] = None) -> AnalysisResult:
        """
        Analyze a parsed plan.

        Statistics cover every resource in the document; no-op resources are
        then removed from the returned list unless show_no_ops is set.

        Args:
            document: Parsed plan
            deadline: Optional time.monotonic() value checked between resources

        Returns:
            AnalysisResult

        Raises:
            AnalysisTimeoutError: If the deadline passes before all resources are done
        """
        logger.info(f"Analyzing {len(document.resource_changes)} resource changes")

        classified = self.classify_resources(document.resource_changes, deadline)
        statistics = calculate_statistics(classified)
        resource_changes = classified if self.config.show_no_ops else filter_no_ops(classified)
        output_changes = analyze_output_changes(document.output_changes, self.config.show_no_ops)

        logger.info(
            f"Analysis complete: {statistics.total} resources, {statistics.dangerous} dangerous, "
            f"{len(output_changes)} output changes"
        )

        return AnalysisResult(
            format_version=document.format_version,
            terraform_version=document.terraform_version,
            resource_changes=resource_changes,
            output_changes=output_changes,
            statistics=statistics,
            danger_threshold=self.config.rules.danger_threshold,
        )
