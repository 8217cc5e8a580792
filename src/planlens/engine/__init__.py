"""Change-analysis engine: comparator, collector, classifier, statistics, outputs."""

from .analyzer import (
    PlanAnalyzer,
    changes_by_resource_type,
    changes_by_type,
    destructive_changes,
    filter_no_ops,
    group_by_provider,
    has_destructive_changes,
)
from .classifier import ResourceClassifier, change_type_from_actions, evaluate_danger
from .comparator import ValueComparator
from .outputs import analyze_output_changes
from .properties import PropertyChangeCollector
from .statistics import calculate_statistics

__all__ = [
    "PlanAnalyzer",
    "filter_no_ops",
    "destructive_changes",
    "has_destructive_changes",
    "changes_by_type",
    "changes_by_resource_type",
    "group_by_provider",
    "ResourceClassifier",
    "change_type_from_actions",
    "evaluate_danger",
    "ValueComparator",
    "analyze_output_changes",
    "PropertyChangeCollector",
    "calculate_statistics",
]
