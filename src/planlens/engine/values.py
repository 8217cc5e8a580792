"""Value kinds, equality, masking and size estimation for plan state trees."""

import json
import math
from enum import Enum
from typing import Any, Sequence, Tuple, Union
from ..contracts.changes import SENSITIVE_PLACEHOLDER
from ..utils.errors import ShapeMismatchError

TRUNCATION_SUFFIX = "... (truncated)"
DEPTH_MARKER = "(nested too deeply)"
CONTAINER_SIZE = 2

# Stored values never nest deeper than this, whatever max_depth allows
MAX_STORED_DEPTH = 32

PathPart = Union[int, str]


class ValueKind(str, Enum):
    """Closed set of JSON value kinds found in plan state trees."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        return self in (ValueKind.ARRAY, ValueKind.OBJECT)


def kind_of(value: Any, path: Sequence[PathPart] = ()) -> ValueKind:
    """
    Classify a value.

    bool is checked before numbers because it subclasses int.

    Raises:
        ShapeMismatchError: If the value is not a JSON value
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise ShapeMismatchError(f"Unsupported value type {type(value).__name__}", path)


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality where numbers compare by value (1 == 1.0) and bools never equal numbers."""
    pending = [(left, right)]
    while pending:
        a, b = pending.pop()
        kind = kind_of(a)
        if kind != kind_of(b):
            return False

        if kind == ValueKind.OBJECT:
            if a.keys() != b.keys():
                return False
            pending.extend((a[key], b[key]) for key in a)
        elif kind == ValueKind.ARRAY:
            if len(a) != len(b):
                return False
            pending.extend(zip(a, b))
        elif kind == ValueKind.NUMBER:
            both_nan = isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b)
            if not both_nan and a != b:
                return False
        elif a != b:
            return False
    return True


def is_marked(mark: Any) -> bool:
    """A mark applies at this level only when it is literally true."""
    return mark is True


def contains_mark(mark: Any) -> bool:
    """True when the mark, or any mark beneath it, is true."""
    pending = [mark]
    while pending:
        current = pending.pop()
        if current is True:
            return True
        if isinstance(current, dict):
            pending.extend(current.values())
        elif isinstance(current, (list, tuple)):
            pending.extend(current)
    return False


def child_mark(mark: Any, key: PathPart) -> Any:
    """
    Descend one level in a mark tree.

    A true mark covers everything beneath it, so it propagates to children.
    Missing children are unmarked.
    """
    if mark is True:
        return True
    if isinstance(key, int) and isinstance(mark, (list, tuple)):
        return mark[key] if 0 <= key < len(mark) else None
    if isinstance(key, str) and isinstance(mark, dict):
        return mark.get(key)
    return None


def check_mark_shape(mark: Any, kind: ValueKind, path: Sequence[PathPart]) -> None:
    """
    Ensure a sensitivity tree can describe a value of the given kind.

    Booleans and null are valid anywhere; a container mark must match the
    container kind of the value it marks.

    Raises:
        ShapeMismatchError: If the mark tree contradicts the value shape
    """
    if mark is None or isinstance(mark, bool):
        return
    if isinstance(mark, (dict, list, tuple)) and not contains_mark(mark):
        return
    if isinstance(mark, dict) and kind in (ValueKind.OBJECT, ValueKind.NULL):
        return
    if isinstance(mark, (list, tuple)) and kind in (ValueKind.ARRAY, ValueKind.NULL):
        return
    raise ShapeMismatchError(
        f"Sensitivity marks of type {type(mark).__name__} do not fit a {kind.value} value", path
    )


def mask_value(value: Any) -> str:
    """Replace any value, including an already masked one, with the sensitive placeholder."""
    return SENSITIVE_PLACEHOLDER


def estimate_size(value: Any) -> int:
    """Approximate in-memory size in bytes of a JSON value."""
    total = 0
    pending = [value]
    while pending:
        current = pending.pop()
        kind = kind_of(current)
        if kind == ValueKind.BOOL:
            total += 1
        elif kind == ValueKind.NUMBER:
            total += 8
        elif kind == ValueKind.STRING:
            total += len(current.encode("utf-8"))
        elif kind == ValueKind.ARRAY:
            total += CONTAINER_SIZE
            pending.extend(current)
        elif kind == ValueKind.OBJECT:
            total += CONTAINER_SIZE
            for key, item in current.items():
                total += len(str(key).encode("utf-8"))
                pending.append(item)
    return total


def limit_depth(value: Any, max_depth: int) -> Tuple[Any, bool]:
    """
    Copy a value, replacing containers nested max_depth levels down with a marker.

    The root container sits at level 0, so max_depth=1 keeps the root and
    replaces every container inside it.

    Returns:
        (bounded copy, whether anything was replaced)
    """
    holder = [None]
    replaced = False
    pending = [(value, holder, 0, 0)]
    while pending:
        current, parent, key, depth = pending.pop()
        kind = kind_of(current)
        if not kind.is_container:
            parent[key] = current
        elif depth >= max_depth:
            parent[key] = DEPTH_MARKER
            replaced = True
        elif kind == ValueKind.OBJECT:
            copy = dict.fromkeys(current)
            pending.extend((item, copy, item_key, depth + 1) for item_key, item in current.items())
            parent[key] = copy
        else:
            copy = [None] * len(current)
            pending.extend((item, copy, index, depth + 1) for index, item in enumerate(current))
            parent[key] = copy
    return holder[0], replaced


def truncate_value(value: Any, max_bytes: int) -> Tuple[Any, bool]:
    """
    Shorten a value whose estimated size exceeds max_bytes.

    Oversized values are rendered as compact JSON (strings as-is), cut to
    max_bytes and suffixed so the result reads as incomplete.

    Returns:
        (stored value, truncated flag)
    """
    if estimate_size(value) <= max_bytes:
        return value, False

    if isinstance(value, str):
        rendered = value
    else:
        try:
            rendered = json.dumps(value, separators=(",", ":"), sort_keys=True, default=str)
        except RecursionError:
            raise ShapeMismatchError("Value is nested too deeply to render")
    cut = rendered.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    return cut + TRUNCATION_SUFFIX, True
