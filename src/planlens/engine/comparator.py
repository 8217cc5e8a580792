"""Type-dispatching differ over one before/after value pair."""

from typing import Any, List, NamedTuple, Optional, Sequence, Tuple
from ..config.models import AnalysisLimits
from ..contracts.changes import PropertyAction, PropertyChange, UNKNOWN_PLACEHOLDER
from ..utils.logging import get_logger
from .values import (
    MAX_STORED_DEPTH,
    PathPart,
    ValueKind,
    check_mark_shape,
    child_mark,
    contains_mark,
    estimate_size,
    is_marked,
    kind_of,
    limit_depth,
    mask_value,
    truncate_value,
    values_equal,
)

logger = get_logger("engine.comparator")

ReplacePath = Tuple[str, ...]


class _Frame(NamedTuple):
    """One pending comparison on the work stack."""
    path: Tuple[PathPart, ...]
    before: Any
    after: Any
    before_present: bool
    after_present: bool
    before_sensitive: Any
    after_sensitive: Any
    after_unknown: Any
    depth: int


def parse_replace_path(entry: Any) -> Tuple[PathPart, ...]:
    """
    Convert one replace_paths entry to path components.

    Terraform reports ["network_interface", 0, "subnet_id"]; JSON decoders
    may turn the index into 0.0. Dotted strings are split on '.'.
    """
    if isinstance(entry, (list, tuple)):
        parts: List[PathPart] = []
        for part in entry:
            if isinstance(part, float) and part.is_integer():
                parts.append(int(part))
            elif isinstance(part, (int, str)) and not isinstance(part, bool):
                parts.append(part)
            else:
                parts.append(str(part))
        return tuple(parts)
    if isinstance(entry, str):
        return tuple(part for part in entry.split(".") if part)
    return (str(entry),)


def normalize_replace_paths(replace_paths: Optional[Sequence[Any]]) -> Tuple[ReplacePath, ...]:
    """Replace paths as tuples of strings, empty paths dropped."""
    normalized = []
    for entry in replace_paths or []:
        parts = tuple(str(part) for part in parse_replace_path(entry))
        if parts:
            normalized.append(parts)
    return tuple(normalized)


def matches_replace_path(path: Sequence[PathPart], replace_paths: Sequence[ReplacePath]) -> bool:
    """True when the path and a replace path are prefix-related on whole components."""
    path_parts = tuple(str(part) for part in path)
    for replace_path in replace_paths:
        common = min(len(path_parts), len(replace_path))
        if path_parts[:common] == replace_path[:common]:
            return True
    return False


class ValueComparator:
    """
    Diff two JSON value trees into flat PropertyChange records.

    Traversal uses an explicit work stack so deep documents cannot exhaust
    the interpreter stack; subtrees deeper than ``limits.max_depth`` are
    reported as a single change.
    """

    def __init__(self, limits: Optional[AnalysisLimits] = None):
        self.limits = limits or AnalysisLimits()

    def compare(
        self,
        path: Sequence[PathPart],
        before: Any,
        after: Any,
        before_sensitive: Any,
        after_sensitive: Any,
        after_unknown: Any,
        replace_paths: Optional[Sequence[Any]],
        accumulator: List[PropertyChange],
    ) -> None:
        """
        Append one PropertyChange per divergence between before and after.

        Args:
            path: Path of the values being compared (empty for a resource root)
            before: Prior value
            after: Planned value
            before_sensitive: Sensitivity marks parallel to before
            after_sensitive: Sensitivity marks parallel to after
            after_unknown: Unknown marks parallel to after
            replace_paths: Raw or normalized replace paths
            accumulator: List the changes are appended to

        Raises:
            ShapeMismatchError: If a value is not JSON or a sensitivity tree contradicts its value
        """
        normalized = normalize_replace_paths(replace_paths)
        stack = [_Frame(tuple(path), before, after, True, True, before_sensitive, after_sensitive, after_unknown, 0)]

        while stack:
            frame = stack.pop()
            children = self._visit(frame, normalized, accumulator)
            stack.extend(reversed(children))

    def _visit(self, frame: _Frame, replace_paths: Tuple[ReplacePath, ...], accumulator: List[PropertyChange]) -> List[_Frame]:
        before_kind = kind_of(frame.before, frame.path)
        after_kind = kind_of(frame.after, frame.path)
        check_mark_shape(frame.before_sensitive, before_kind, frame.path)
        check_mark_shape(frame.after_sensitive, after_kind, frame.path)

        before_missing = not frame.before_present or before_kind == ValueKind.NULL
        after_missing = not frame.after_present or after_kind == ValueKind.NULL
        unknown = after_missing and is_marked(frame.after_unknown)

        # A sensitive value is opaque: one masked entry, no recursion
        if is_marked(frame.before_sensitive) or is_marked(frame.after_sensitive):
            if unknown:
                self._emit(frame, PropertyAction.UNKNOWN, replace_paths, accumulator, sensitive=True, unknown=True)
            elif self._differs(frame, before_missing, after_missing):
                action = self._scalar_action(before_missing, after_missing)
                self._emit(frame, action, replace_paths, accumulator, sensitive=True)
            return []

        # Unknown subtrees are opaque too; a null planned value here is not a removal
        if unknown:
            self._emit(frame, PropertyAction.UNKNOWN, replace_paths, accumulator, sensitive=self._has_sensitive_marks(frame), unknown=True)
            return []

        if before_missing and after_missing:
            return []

        same_container = before_kind == after_kind and before_kind.is_container
        if same_container:
            if values_equal(frame.before, frame.after) and not contains_mark(frame.after_unknown):
                return []
            if frame.depth >= self.limits.max_depth:
                logger.debug(f"Depth limit reached at {frame.path}; reporting subtree as one change")
                self._emit_opaque(frame, PropertyAction.MODIFY, replace_paths, accumulator)
                return []
            return self._children(frame)

        if (before_missing and after_kind.is_container) or (after_missing and before_kind.is_container):
            action = PropertyAction.ADD if before_missing else PropertyAction.REMOVE
            children = self._children(frame) if frame.depth < self.limits.max_depth else []
            if not children:
                self._emit_opaque(frame, action, replace_paths, accumulator)
            return children

        if before_missing or after_missing:
            self._emit(frame, self._scalar_action(before_missing, after_missing), replace_paths, accumulator, sensitive=False)
            return []

        if before_kind != after_kind:
            # Shape drift between two present values: one modify, no recursion
            self._emit_opaque(frame, PropertyAction.MODIFY, replace_paths, accumulator)
            return []

        if not values_equal(frame.before, frame.after):
            self._emit(frame, PropertyAction.MODIFY, replace_paths, accumulator, sensitive=False)
        return []

    def _children(self, frame: _Frame) -> List[_Frame]:
        before = frame.before if frame.before_present else None
        after = frame.after if frame.after_present else None
        depth = frame.depth + 1
        children = []

        if isinstance(before, dict) or isinstance(after, dict):
            before_map = before if isinstance(before, dict) else {}
            after_map = after if isinstance(after, dict) else {}
            keys = list(before_map)
            keys.extend(key for key in after_map if key not in before_map)
            # Terraform leaves unknown attributes out of 'after' entirely
            if isinstance(frame.after_unknown, dict):
                keys.extend(
                    key for key, mark in frame.after_unknown.items()
                    if mark is True and key not in before_map and key not in after_map
                )
            for key in keys:
                children.append(_Frame(
                    frame.path + (key if isinstance(key, str) else str(key),),
                    before_map.get(key),
                    after_map.get(key),
                    key in before_map,
                    key in after_map,
                    child_mark(frame.before_sensitive, key),
                    child_mark(frame.after_sensitive, key),
                    child_mark(frame.after_unknown, key),
                    depth,
                ))
            return children

        before_list = before if isinstance(before, (list, tuple)) else []
        after_list = after if isinstance(after, (list, tuple)) else []
        for index in range(max(len(before_list), len(after_list))):
            children.append(_Frame(
                frame.path + (index,),
                before_list[index] if index < len(before_list) else None,
                after_list[index] if index < len(after_list) else None,
                index < len(before_list),
                index < len(after_list),
                child_mark(frame.before_sensitive, index),
                child_mark(frame.after_sensitive, index),
                child_mark(frame.after_unknown, index),
                depth,
            ))
        return children

    @staticmethod
    def _differs(frame: _Frame, before_missing: bool, after_missing: bool) -> bool:
        if before_missing or after_missing:
            return before_missing != after_missing
        return not values_equal(frame.before, frame.after)

    @staticmethod
    def _scalar_action(before_missing: bool, after_missing: bool) -> PropertyAction:
        if before_missing:
            return PropertyAction.ADD
        if after_missing:
            return PropertyAction.REMOVE
        return PropertyAction.MODIFY

    @staticmethod
    def _has_sensitive_marks(frame: _Frame) -> bool:
        return contains_mark(frame.before_sensitive) or contains_mark(frame.after_sensitive)

    def _emit_opaque(self, frame: _Frame, action: PropertyAction, replace_paths: Tuple[ReplacePath, ...], accumulator: List[PropertyChange]) -> None:
        # Any mark inside an unexpanded subtree masks the whole entry
        self._emit(frame, action, replace_paths, accumulator, sensitive=self._has_sensitive_marks(frame))

    def _emit(
        self,
        frame: _Frame,
        action: PropertyAction,
        replace_paths: Tuple[ReplacePath, ...],
        accumulator: List[PropertyChange],
        sensitive: bool,
        unknown: bool = False,
    ) -> None:
        if sensitive:
            before = mask_value(frame.before)
            after = mask_value(frame.after)
        else:
            before = frame.before if frame.before_present else None
            after = UNKNOWN_PLACEHOLDER if unknown else (frame.after if frame.after_present else None)

        size_bytes = estimate_size(before) + estimate_size(after)
        depth_budget = max(min(self.limits.max_depth - frame.depth, MAX_STORED_DEPTH), 1)
        before, before_cut = limit_depth(before, depth_budget)
        after, after_cut = limit_depth(after, depth_budget)
        stored_before, before_truncated = truncate_value(before, self.limits.max_value_size_bytes)
        stored_after, after_truncated = truncate_value(after, self.limits.max_value_size_bytes)

        accumulator.append(PropertyChange(
            path=list(frame.path),
            name=next((part for part in reversed(frame.path) if isinstance(part, str)), ""),
            before=stored_before,
            after=stored_after,
            sensitive=sensitive,
            is_unknown=unknown,
            action=action,
            triggers_replacement=matches_replace_path(frame.path, replace_paths),
            size_bytes=size_bytes,
            truncated=before_cut or after_cut or before_truncated or after_truncated,
        ))
