"""Shallow change analysis for named outputs."""

from typing import Dict, List, Optional
from ..contracts.changes import OutputAction, OutputChange, UNKNOWN_PLACEHOLDER
from ..ingest.models import OutputChangeInput
from ..utils.logging import get_logger
from .values import MAX_STORED_DEPTH, limit_depth, mask_value, values_equal

logger = get_logger("engine.outputs")


def classify_output(name: str, output: OutputChangeInput, show_no_ops: bool = False) -> Optional[OutputChange]:
    """
    Classify one output, or return None when it is unchanged and no-ops are hidden.

    The value is compared as a whole. Unknown planned values are reported as
    '(known after apply)' rather than as removals; sensitive outputs carry the
    placeholder on both sides.
    """
    actions = set(output.actions)
    sensitive = output.before_sensitive or output.after_sensitive
    unknown = output.after_unknown and output.after is None

    if unknown:
        action = OutputAction.ADD if output.before is None else OutputAction.MODIFY
    elif "create" in actions and "delete" not in actions:
        action = OutputAction.ADD
    elif "delete" in actions and "create" not in actions:
        action = OutputAction.REMOVE
    elif values_equal(output.before, output.after):
        if not show_no_ops:
            return None
        action = OutputAction.NO_OP
    elif output.before is None:
        action = OutputAction.ADD
    elif output.after is None:
        action = OutputAction.REMOVE
    else:
        action = OutputAction.MODIFY

    if sensitive:
        before, after = mask_value(output.before), mask_value(output.after)
    else:
        before, _ = limit_depth(output.before, MAX_STORED_DEPTH)
        after, _ = limit_depth(output.after, MAX_STORED_DEPTH)
        if unknown:
            after = UNKNOWN_PLACEHOLDER

    return OutputChange(
        name=name,
        action=action,
        sensitive=sensitive,
        is_unknown=unknown,
        before=before,
        after=after,
    )


def analyze_output_changes(outputs: Dict[str, OutputChangeInput], show_no_ops: bool = False) -> List[OutputChange]:
    """
    Classify every output in document order.

    Args:
        outputs: Output changes by name
        show_no_ops: Keep unchanged outputs with action 'no-op'

    Returns:
        List of OutputChange
    """
    changes = []
    for name, output in outputs.items():
        change = classify_output(name, output, show_no_ops)
        if change is not None:
            changes.append(change)

    logger.debug(f"Classified {len(changes)} of {len(outputs)} outputs")
    return changes
