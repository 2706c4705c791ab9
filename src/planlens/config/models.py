"""Pydantic models for PlanLens configuration."""

from typing import Any, List, Optional
from pydantic import BaseModel, Field
from ..analysis.grouping import DEFAULT_GROUP_THRESHOLD
from ..analysis.orchestrator import AnalysisOptions
from ..analysis.property_diff import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PROPERTIES,
    DEFAULT_MAX_TOTAL_BYTES,
    DiffLimits,
)
from ..graph.dependency_graph import DEFAULT_MAX_RESULTS
from ..presentation.disclosure import DEFAULT_MAX_DETAIL_LENGTH


class GroupingSettings(BaseModel):
    """Provider grouping settings."""
    enabled: bool = Field(default=True, description="Allow grouping by provider")
    threshold: int = Field(default=DEFAULT_GROUP_THRESHOLD, ge=1, description="Minimum resources before grouping")


class LimitSettings(BaseModel):
    """Per-resource diff budgets."""
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0, description="Maximum map nesting depth")
    max_properties: int = Field(default=DEFAULT_MAX_PROPERTIES, ge=0, description="Maximum property changes per resource")
    max_total_bytes: int = Field(default=DEFAULT_MAX_TOTAL_BYTES, ge=0, description="Maximum estimated bytes per resource")


class PlanSettings(BaseModel):
    """Analysis settings under the 'plan' key."""
    grouping: GroupingSettings = Field(default_factory=GroupingSettings)
    expand_all: bool = Field(default=False, description="Expand every collapsible section")
    max_detail_length: int = Field(default=DEFAULT_MAX_DETAIL_LENGTH, ge=1, description="Serialized detail cap (characters)")
    max_dependencies: int = Field(default=DEFAULT_MAX_RESULTS, ge=0, description="Cap for depends-on/used-by lists")
    workers: Optional[int] = Field(default=None, ge=1, description="Worker threads (default: CPU count)")
    limits: LimitSettings = Field(default_factory=LimitSettings)


class PlanLensConfig(BaseModel):
    """Top-level configuration."""
    # raw entries; each rule is validated individually when the index is built
    sensitive_resources: List[Any] = Field(default_factory=list, description="Sensitive resource rules")
    sensitive_properties: List[Any] = Field(default_factory=list, description="Sensitive property rules")
    plan: PlanSettings = Field(default_factory=PlanSettings)

    def sensitivity_rules(self) -> List[Any]:
        """Resource rules followed by property rules, in file order."""
        property_rules = [
            {**rule, "property": rule.get("property") or ""} if isinstance(rule, dict) else rule
            for rule in self.sensitive_properties
        ]
        return list(self.sensitive_resources) + property_rules

    def analysis_options(self) -> AnalysisOptions:
        """Translate plan settings into AnalysisOptions."""
        plan = self.plan
        return AnalysisOptions(
            limits=DiffLimits(
                max_depth=plan.limits.max_depth,
                max_properties=plan.limits.max_properties,
                max_total_bytes=plan.limits.max_total_bytes,
            ),
            grouping_enabled=plan.grouping.enabled,
            group_threshold=plan.grouping.threshold,
            expand_all=plan.expand_all,
            max_detail_length=plan.max_detail_length,
            max_dependencies=plan.max_dependencies,
            workers=plan.workers,
        )
