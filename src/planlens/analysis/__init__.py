"""Change analysis: sensitivity, diffing, risk, grouping and orchestration."""

from .sensitivity import SensitivityRule, SensitivityIndex, build_sensitivity_index
from .property_diff import DiffLimits, diff_properties
from .risk_assessment import assess_risk
from .grouping import ProviderResolver, PrefixProviderResolver, group_by_provider
from .orchestrator import AnalysisOptions, analyze_changes

__all__ = [
    "SensitivityRule",
    "SensitivityIndex",
    "build_sensitivity_index",
    "DiffLimits",
    "diff_properties",
    "assess_risk",
    "ProviderResolver",
    "PrefixProviderResolver",
    "group_by_provider",
    "AnalysisOptions",
    "analyze_changes",
]
