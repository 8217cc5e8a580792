"""Collect, order and bound the property changes of one resource."""

from typing import List, Optional
from ..config.models import AnalysisLimits
from ..contracts.changes import PropertyAction, PropertyChange, PropertyChangeAnalysis
from ..ingest.models import ResourceChangeInput
from ..utils.errors import ShapeMismatchError
from ..utils.logging import get_logger
from .comparator import ValueComparator, matches_replace_path, normalize_replace_paths
from .values import MAX_STORED_DEPTH, contains_mark, estimate_size, limit_depth, mask_value, truncate_value

logger = get_logger("engine.properties")


def _describe(value) -> str:
    return f"<unreadable {type(value).__name__}>"


def sort_key(change: PropertyChange):
    """Case-insensitive path order, ties broken by the exact path string."""
    path_string = change.path_string
    return (path_string.lower(), path_string)


class PropertyChangeCollector:
    """Runs the comparator over a resource root and applies per-resource limits."""

    def __init__(self, comparator: Optional[ValueComparator] = None, limits: Optional[AnalysisLimits] = None):
        self.limits = limits or (comparator.limits if comparator else AnalysisLimits())
        self.comparator = comparator or ValueComparator(self.limits)

    def collect(self, resource: ResourceChangeInput) -> List[PropertyChange]:
        """
        Compare a resource's before and after trees.

        Args:
            resource: Normalized resource change

        Returns:
            All property changes, sorted by path

        Raises:
            ShapeMismatchError: If the resource's trees cannot be interpreted
        """
        changes: List[PropertyChange] = []
        self.comparator.compare(
            [],
            resource.before,
            resource.after,
            resource.before_sensitive,
            resource.after_sensitive,
            resource.after_unknown,
            resource.replace_paths,
            changes,
        )
        return sorted(changes, key=sort_key)

    def limit(self, changes: List[PropertyChange], note: Optional[str] = None) -> PropertyChangeAnalysis:
        """
        Keep a prefix of sorted changes that fits the count and size limits.

        Args:
            changes: Sorted property changes
            note: Optional note carried into the analysis

        Returns:
            PropertyChangeAnalysis with count, total_found and truncation flag
        """
        kept: List[PropertyChange] = []
        total_size = 0
        # Stored values are already cut to the per-value limit, so budget on that
        stored_cap = 2 * self.limits.max_value_size_bytes
        for change in changes:
            if len(kept) >= self.limits.max_property_changes:
                break
            size = min(change.size_bytes, stored_cap)
            if total_size + size > self.limits.max_total_property_bytes:
                break
            kept.append(change)
            total_size += size

        truncated = len(kept) < len(changes)
        if truncated:
            logger.debug(f"Kept {len(kept)} of {len(changes)} property changes")

        return PropertyChangeAnalysis(
            changes=kept,
            count=len(kept),
            total_found=len(changes),
            total_size_bytes=total_size,
            truncated=truncated,
            note=note,
        )

    def analyze(self, resource: ResourceChangeInput) -> PropertyChangeAnalysis:
        """
        Collect and limit property changes for one resource.

        A resource whose trees cannot be interpreted gets a single root-level
        modify entry, masked when any sensitivity mark is present.
        """
        try:
            return self.limit(self.collect(resource))
        except ShapeMismatchError as e:
            return self.fallback(resource, e)

    def fallback(self, resource: ResourceChangeInput, error: ShapeMismatchError) -> PropertyChangeAnalysis:
        """Single root-level modify entry for a resource whose trees could not be read."""
        logger.warning(f"Shape mismatch in {resource.address} at {error.path}: {error}")
        return self.limit([self._root_change(resource)], note=f"Shape mismatch at {error.path}: {error}")

    def _root_change(self, resource: ResourceChangeInput) -> PropertyChange:
        sensitive = contains_mark(resource.before_sensitive) or contains_mark(resource.after_sensitive)
        if sensitive:
            before, after = mask_value(resource.before), mask_value(resource.after)
        else:
            before, after = resource.before, resource.after

        # Unreadable trees may hold non-JSON values; store a description instead
        depth_budget = min(self.limits.max_depth, MAX_STORED_DEPTH)
        try:
            size_bytes = estimate_size(before) + estimate_size(after)
            before, before_cut = limit_depth(before, depth_budget)
            after, after_cut = limit_depth(after, depth_budget)
        except ShapeMismatchError:
            before, after = _describe(before), _describe(after)
            size_bytes = len(before.encode("utf-8")) + len(after.encode("utf-8"))
            before_cut = after_cut = False
        stored_before, before_truncated = truncate_value(before, self.limits.max_value_size_bytes)
        stored_after, after_truncated = truncate_value(after, self.limits.max_value_size_bytes)

        return PropertyChange(
            path=[],
            name="",
            before=stored_before,
            after=stored_after,
            sensitive=sensitive,
            action=PropertyAction.MODIFY,
            triggers_replacement=matches_replace_path([], normalize_replace_paths(resource.replace_paths)),
            size_bytes=size_bytes,
            truncated=before_cut or after_cut or before_truncated or after_truncated,
        )
