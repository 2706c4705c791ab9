from .core_output import (
    AnalysisReport,
    AnalysisStatistics,
    AnalysisError,
    AnalysisStage,
    ResourceAnalysis,
    RiskLevel,
    RuleValidationError,
)
from .change_details import PropertyChange, PropertyChangeSet, DependencyInfo, CollapsibleValue

__all__ = [
    "AnalysisReport",
    "AnalysisStatistics",
    "AnalysisError",
    "AnalysisStage",
    "ResourceAnalysis",
    "RiskLevel",
    "RuleValidationError",
    "PropertyChange",
    "PropertyChangeSet",
    "DependencyInfo",
    "CollapsibleValue",
]
