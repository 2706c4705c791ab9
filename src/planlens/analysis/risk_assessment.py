"""Deterministic risk assessment for a single resource change (pure, no I/O)."""

from typing import List, Tuple, Union
from ..contracts.core_output import RiskLevel
from ..ingest.models import ResourceAction

REASON_SENSITIVE_DELETION = "sensitive resource deletion"
REASON_DELETION = "resource deletion"
REASON_SENSITIVE_REPLACEMENT = "sensitive resource replacement"
REASON_REPLACEMENT = "resource replacement"
REASON_SENSITIVE_PROPERTY = "sensitive property change"

_PROPERTY_ACTIONS = (ResourceAction.UPDATE, ResourceAction.REPLACE, ResourceAction.DELETE)


def assess_risk(
    action: Union[ResourceAction, str],
    is_sensitive_resource: bool,
    sensitive_properties_touched: int
) -> Tuple[RiskLevel, List[str]]:
    """
    Assign a risk level and the reasons behind it.

    The first matching rule decides the level; every matching rule contributes
    its reason, so a replacement touching sensitive properties carries both.

    Args:
        action: Normalized action of the change
        is_sensitive_resource: Whether the resource type is registered sensitive
        sensitive_properties_touched: Number of registered sensitive properties changed

    Returns:
        Tuple of (risk level, ordered reasons)
    """
    action = ResourceAction(action)
    level = None
    reasons: List[str] = []

    if action == ResourceAction.DELETE:
        if is_sensitive_resource:
            level = RiskLevel.CRITICAL
            reasons.append(REASON_SENSITIVE_DELETION)
        else:
            level = RiskLevel.HIGH
            reasons.append(REASON_DELETION)
    elif action == ResourceAction.REPLACE:
        if is_sensitive_resource:
            level = RiskLevel.HIGH
            reasons.append(REASON_SENSITIVE_REPLACEMENT)
        else:
            level = RiskLevel.MEDIUM
            reasons.append(REASON_REPLACEMENT)

    if sensitive_properties_touched > 0 and action in _PROPERTY_ACTIONS:
        reasons.append(REASON_SENSITIVE_PROPERTY)
        if level is None:
            level = RiskLevel.MEDIUM

    return level or RiskLevel.LOW, reasons


def escalate_risk(level: RiskLevel) -> RiskLevel:
    """Raise a level after a failed stage: one step up, never below medium."""
    escalated = level.escalate()
    return escalated if escalated >= RiskLevel.MEDIUM else RiskLevel.MEDIUM
