"""Aggregate counters over classified resource changes."""

from typing import Sequence
from ..contracts.changes import ChangeType, ReplacementType, ResourceChange
from ..contracts.core_output import ChangeStatistics

_CHANGE_TYPE_COUNTERS = {
    ChangeType.NO_OP.value: "unchanged",
    ChangeType.CREATE.value: "added",
    ChangeType.UPDATE.value: "modified",
    ChangeType.DELETE.value: "removed",
    ChangeType.REPLACE.value: "replacements",
}


def calculate_statistics(changes: Sequence[ResourceChange]) -> ChangeStatistics:
    """
    Count resources by change type, replacement type and danger.

    Every record lands in exactly one change-type counter, so
    added + removed + modified + replacements + unchanged == total.

    Args:
        changes: Classified resource changes

    Returns:
        ChangeStatistics
    """
    counts = {counter: 0 for counter in _CHANGE_TYPE_COUNTERS.values()}
    conditional = 0
    dangerous = 0

    for change in changes:
        counts[_CHANGE_TYPE_COUNTERS[ChangeType(change.change_type).value]] += 1
        if change.replacement_type == ReplacementType.CONDITIONAL:
            conditional += 1
        if change.is_dangerous:
            dangerous += 1

    return ChangeStatistics(
        total=len(changes),
        conditional_replacements=conditional,
        dangerous=dangerous,
        **counts,
    )
