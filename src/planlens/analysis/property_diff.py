"""Recursive before/after comparison producing ordered, size-bounded change lists."""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union
from ..contracts.change_details import PropertyChange, PropertyChangeSet
from ..utils.errors import DiffError
from ..utils.logging import get_logger

logger = get_logger("analysis.property_diff")

DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_PROPERTIES = 100
DEFAULT_MAX_TOTAL_BYTES = 10 * 1024 * 1024

PathPart = Union[str, int]


@dataclass(frozen=True)
class DiffLimits:
    """Budgets bounding a single resource diff."""
    max_depth: int = DEFAULT_MAX_DEPTH
    max_properties: int = DEFAULT_MAX_PROPERTIES
    max_total_bytes: int = DEFAULT_MAX_TOTAL_BYTES


def diff_properties(
    before: Any,
    after: Any,
    limits: Optional[DiffLimits] = None
) -> Tuple[PropertyChangeSet, List[DiffError]]:
    """
    Compare two opaque state trees.

    Maps are compared key by key (sorted, so output is reproducible), sequences
    and scalars as whole values. Keys present on one side only produce a single
    change without descending into their subtree. Collection stops once any
    budget in ``limits`` is exhausted and the result is flagged truncated.

    Incomparable shapes (e.g. a map against a scalar) are recorded as a
    whole-value change and reported as DiffError; they never abort the diff.

    Args:
        before: Value before the change
        after: Value after the change
        limits: Depth/count/size budgets (defaults if None)

    Returns:
        Tuple of (change set, list of non-fatal DiffError)
    """
    # a created or deleted object is diffed against an empty one so every
    # top-level property is its own change
    if before is None and isinstance(after, Mapping):
        before = {}
    elif after is None and isinstance(before, Mapping):
        after = {}

    collector = _DiffCollector(limits or DiffLimits())
    collector.compare(before, after, [], 0)
    return collector.result(), collector.errors


def estimate_size(value: Any) -> int:
    """Cheap recursive size estimate in bytes (no serialization)."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 8
    if isinstance(value, str):
        return len(value)
    if isinstance(value, Mapping):
        return sum(len(str(k)) + estimate_size(v) for k, v in value.items())
    if _is_sequence(value):
        return sum(estimate_size(v) for v in value)
    return len(str(value))


def values_equal(a: Any, b: Any) -> bool:
    """Deep equality that does not treat booleans as numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(values_equal(a[k], b[k]) for k in a)
    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))
    return a == b


class _DiffCollector:
    """Accumulates changes for one diff while tracking budgets."""

    def __init__(self, limits: DiffLimits):
        self.limits = limits
        self.changes: List[PropertyChange] = []
        self.errors: List[DiffError] = []
        self.total_size = 0
        self.truncated = False
        self.stopped = False

    def result(self) -> PropertyChangeSet:
        return PropertyChangeSet(
            changes=self.changes,
            count=len(self.changes),
            total_size=self.total_size,
            truncated=self.truncated,
        )

    def compare(self, before: Any, after: Any, path: List[PathPart], depth: int) -> None:
        if self.stopped:
            return
        if before is None and after is None:
            return
        if before is None or after is None:
            self.record(path, before, after)
            return

        before_kind = _kind(before)
        after_kind = _kind(after)

        if before_kind == "map" and after_kind == "map":
            self._compare_maps(before, after, path, depth)
        elif before_kind == after_kind:
            # sequences and scalars are compared as whole values
            if not values_equal(before, after):
                self.record(path, before, after)
        else:
            error = DiffError(path, _kind_name(before), _kind_name(after))
            logger.debug(str(error))
            self.errors.append(error)
            self.record(path, before, after)

    def _compare_maps(self, before: Mapping, after: Mapping, path: List[PathPart], depth: int) -> None:
        if depth >= self.limits.max_depth:
            if not values_equal(before, after):
                self.truncated = True
                self.record(path, before, after)
            return

        for key in sorted(set(before) | set(after), key=str):
            if self.stopped:
                return
            child_path = path + [key]
            if key in before and key in after:
                self.compare(before[key], after[key], child_path, depth + 1)
                continue
            value = before.get(key, after.get(key))
            if value is None:
                continue
            self.record(child_path, before.get(key), after.get(key))

    def record(self, path: List[PathPart], before: Any, after: Any) -> bool:
        """Append a change unless a budget is exhausted; returns False once stopped."""
        if self.stopped:
            return False
        size = estimate_size(before) + estimate_size(after)
        if (len(self.changes) >= self.limits.max_properties
                or self.total_size + size > self.limits.max_total_bytes):
            self.stopped = True
            self.truncated = True
            return False
        self.changes.append(PropertyChange(path=list(path), before=before, after=after, size=size))
        self.total_size += size
        return True


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "map"
    if _is_sequence(value):
        return "sequence"
    return "scalar"


def _kind_name(value: Any) -> str:
    kind = _kind(value)
    return type(value).__name__ if kind == "scalar" else kind
