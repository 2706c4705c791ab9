"""Pydantic model for the analysis report (versioned, stable, explicit)."""

from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, Field
from ..ingest.models import ResourceAction
from .change_details import PropertyChangeSet, DependencyInfo, CollapsibleValue


class RiskLevel(str, Enum):
    """Risk level enumeration, totally ordered low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self.value)

    def escalate(self) -> "RiskLevel":
        """Return the next level up (critical stays critical)."""
        return RiskLevel(_RISK_ORDER[min(self.rank + 1, len(_RISK_ORDER) - 1)])

    def __lt__(self, other):
        if isinstance(other, RiskLevel):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, RiskLevel):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, RiskLevel):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, RiskLevel):
            return self.rank >= other.rank
        return NotImplemented


_RISK_ORDER = ["low", "medium", "high", "critical"]


class AnalysisStage(str, Enum):
    """Pipeline stage a non-fatal error was raised in."""
    DIFF = "diff"
    RISK = "risk"
    DEPENDENCY = "dependency"
    SENSITIVITY = "sensitivity"


class AnalysisError(BaseModel):
    """Non-fatal per-resource failure recorded in the report."""
    address: str = Field(..., description="Address of the resource that failed")
    stage: AnalysisStage = Field(..., description="Stage that failed")
    message: str = Field(..., description="Failure description (never contains raw values)")
    cause: Optional[str] = Field(default=None, description="Exception class that caused the failure")


class RuleValidationError(BaseModel):
    """A sensitivity rule that was rejected and excluded from the index."""
    index: int = Field(..., ge=0, description="Position of the rule in the supplied list")
    resource_type: Optional[str] = Field(default=None, description="Resource type of the rule, if readable")
    property: Optional[str] = Field(default=None, description="Property of the rule, if any")
    message: str = Field(..., description="Why the rule was rejected")


class ResourceAnalysis(BaseModel):
    """Annotated, risk-scored analysis of one resource change."""
    address: str = Field(..., description="Full resource address")
    type: str = Field(..., description="Resource type")
    module: Optional[str] = Field(default=None, description="Module path, if any")
    action: ResourceAction = Field(..., description="Normalized action")
    provider: str = Field(..., description="Provider inferred from the resource type")
    property_changes: PropertyChangeSet = Field(default_factory=PropertyChangeSet, description="Property-level diff")
    risk_level: RiskLevel = Field(..., description="Assessed (possibly escalated) risk level")
    danger_reasons: List[str] = Field(default_factory=list, description="Ordered, deduplicated risk reasons")
    danger_properties: List[str] = Field(default_factory=list, description="Registered sensitive properties touched")
    top_changes: List[str] = Field(default_factory=list, description="First changed property names (updates only)")
    replacement_hints: List[str] = Field(default_factory=list, description="Attribute paths forcing replacement")
    dependencies: DependencyInfo = Field(default_factory=DependencyInfo, description="Direct dependency neighbours")
    change_details: CollapsibleValue = Field(..., description="Collapsible diff (or reasons, for replacements)")
    dependency_details: CollapsibleValue = Field(..., description="Collapsible dependency listing")

    @property
    def is_dangerous(self) -> bool:
        return self.risk_level != RiskLevel.LOW


class AnalysisStatistics(BaseModel):
    """Flat statistics for dashboards and CI gating."""
    to_add: int = Field(default=0, ge=0, description="Resources to be created")
    to_change: int = Field(default=0, ge=0, description="Resources to be updated in place")
    to_destroy: int = Field(default=0, ge=0, description="Resources to be deleted")
    replacements: int = Field(default=0, ge=0, description="Resources to be replaced")
    unmodified: int = Field(default=0, ge=0, description="Resources with no changes")
    high_risk: int = Field(default=0, ge=0, description="Analyses with risk level high or above")
    total: int = Field(default=0, ge=0, description="All changes except no-ops")
    errors: int = Field(default=0, ge=0, description="Non-fatal analysis errors")


class AnalysisReport(BaseModel):
    """Analysis output contract - versioned, stable, explicit."""
    version: str = Field(default="1.0.0", description="Report contract version")
    analyses: List[ResourceAnalysis] = Field(default_factory=list, description="Analyses in plan order")
    statistics: AnalysisStatistics = Field(default_factory=AnalysisStatistics, description="Aggregated counts")
    errors: List[AnalysisError] = Field(default_factory=list, description="Non-fatal errors in plan order")
    rule_errors: List[RuleValidationError] = Field(default_factory=list, description="Excluded sensitivity rules")
    groups: Dict[str, List[int]] = Field(default_factory=dict, description="Provider -> indices into analyses")
    grouping_applied: bool = Field(default=False, description="Whether the renderer should use the groups")
    cancelled: bool = Field(default=False, description="True if the run stopped before every resource was analyzed")

    @property
    def dangerous(self) -> List[ResourceAnalysis]:
        return [a for a in self.analyses if a.is_dangerous]
