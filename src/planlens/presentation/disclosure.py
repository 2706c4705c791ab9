"""Progressive disclosure: wrap analysis facts as summary/detail/expand triples."""

import json
from typing import Any, Dict, Sequence
from ..contracts.change_details import CollapsibleValue, DependencyInfo, PropertyChange, PropertyChangeSet
from ..contracts.core_output import RiskLevel

DEFAULT_MAX_DETAIL_LENGTH = 500
REDACTION_MARKER = "(sensitive value)"
TRUNCATION_MARKER = "...[truncated]"


def should_expand(risk_level: RiskLevel, changes: PropertyChangeSet, expand_all: bool = False) -> bool:
    """Expand when risk is high or above, or any change is sensitive, unless overridden."""
    if expand_all:
        return True
    return risk_level >= RiskLevel.HIGH or any(c.sensitive for c in changes.changes)


def collapsible(summary: str, detail: Any, expand: bool, max_detail_length: int = DEFAULT_MAX_DETAIL_LENGTH) -> CollapsibleValue:
    """Build a CollapsibleValue, replacing oversized detail with a truncated preview."""
    serialized = json.dumps(detail, sort_keys=True, default=str)
    if len(serialized) > max_detail_length:
        detail = serialized[:max_detail_length] + TRUNCATION_MARKER
    return CollapsibleValue(summary=summary, detail=detail, expand_by_default=expand)


def property_changes_view(
    changes: PropertyChangeSet,
    expand: bool,
    max_detail_length: int = DEFAULT_MAX_DETAIL_LENGTH
) -> CollapsibleValue:
    """Collapsible property diff; sensitive values are redacted in the detail."""
    summary = f"{changes.count} property change{'s' if changes.count != 1 else ''}"
    sensitive = sum(1 for c in changes.changes if c.sensitive)
    if sensitive:
        summary += f" ({sensitive} sensitive)"
    if changes.truncated:
        summary += " (truncated)"
    detail = [_change_detail(c) for c in changes.changes]
    return collapsible(summary, detail, expand, max_detail_length)


def reasons_view(
    reasons: Sequence[str],
    replacement_hints: Sequence[str],
    expand: bool,
    max_detail_length: int = DEFAULT_MAX_DETAIL_LENGTH
) -> CollapsibleValue:
    """Collapsible replacement reasons (used instead of the diff for replacements)."""
    summary = f"{len(reasons)} reason{'s' if len(reasons) != 1 else ''}"
    if replacement_hints:
        summary += f", {len(replacement_hints)} replacement trigger{'s' if len(replacement_hints) != 1 else ''}"
    detail = {"reasons": list(reasons), "replacement_hints": list(replacement_hints)}
    return collapsible(summary, detail, expand, max_detail_length)


def dependencies_view(
    dependencies: DependencyInfo,
    expand: bool,
    max_detail_length: int = DEFAULT_MAX_DETAIL_LENGTH
) -> CollapsibleValue:
    summary = f"depends on {len(dependencies.depends_on)}, used by {len(dependencies.used_by)}"
    if dependencies.partial:
        summary += " (partial)"
    detail = {"depends_on": list(dependencies.depends_on), "used_by": list(dependencies.used_by)}
    return collapsible(summary, detail, expand, max_detail_length)


def redact(value: Any) -> Any:
    """Replace a present value with the redaction marker."""
    return REDACTION_MARKER if value is not None else None


def _change_detail(change: PropertyChange) -> Dict[str, Any]:
    before, after = change.before, change.after
    if change.sensitive:
        before, after = redact(before), redact(after)
    detail: Dict[str, Any] = {
        "path": change.name,
        "before": before,
        "after": after,
    }
    if change.sensitive:
        detail["sensitive"] = True
    if change.forces_replacement:
        detail["forces_replacement"] = True
    return detail
