"""Fan resource changes out to a worker pool and assemble the analysis report."""

import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple
from ..contracts.change_details import DependencyInfo, PropertyChange, PropertyChangeSet
from ..contracts.core_output import (
    AnalysisError,
    AnalysisReport,
    AnalysisStage,
    AnalysisStatistics,
    ResourceAnalysis,
    RiskLevel,
    RuleValidationError,
)
from ..graph.dependency_graph import DEFAULT_MAX_RESULTS, build_reverse_index, extract_dependencies
from ..ingest.models import ResourceAction, ResourceChangeInput
from ..presentation import disclosure
from ..utils.errors import AnalysisCancelledError
from ..utils.logging import get_logger
from .grouping import DEFAULT_GROUP_THRESHOLD, PrefixProviderResolver, ProviderResolver, group_by_provider
from .property_diff import DiffLimits, diff_properties
from .replacement import forces_replacement, replacement_hints
from .risk_assessment import assess_risk, escalate_risk
from .sensitivity import SensitivityIndex, is_marked_sensitive

logger = get_logger("analysis.orchestrator")

TOP_CHANGES_LIMIT = 3


@dataclass
class AnalysisOptions:
    """Tunables for one analysis run (from config, CLI flags or defaults)."""
    limits: DiffLimits = field(default_factory=DiffLimits)
    grouping_enabled: bool = True
    group_threshold: int = DEFAULT_GROUP_THRESHOLD
    expand_all: bool = False
    max_detail_length: int = disclosure.DEFAULT_MAX_DETAIL_LENGTH
    max_dependencies: int = DEFAULT_MAX_RESULTS
    workers: Optional[int] = None
    resolver: ProviderResolver = field(default_factory=PrefixProviderResolver)

    def worker_count(self, job_count: int) -> int:
        workers = self.workers or os.cpu_count() or 1
        return max(1, min(workers, job_count))


def analyze_changes(
    changes: Sequence[ResourceChangeInput],
    index: SensitivityIndex,
    forward_edges: Optional[Mapping[str, Iterable[str]]] = None,
    options: Optional[AnalysisOptions] = None,
    cancel_event: Optional[threading.Event] = None,
    rule_errors: Optional[List[RuleValidationError]] = None
) -> AnalysisReport:
    """
    Analyze every resource change of a plan and assemble the report.

    Resources are analyzed independently on a bounded thread pool; each
    worker reads only the shared, immutable index and reverse dependency
    index and writes its own output slot. Per-resource failures become
    AnalysisError records and escalate that resource's risk.

    Args:
        changes: Resource changes in plan order
        index: Compiled sensitivity index
        forward_edges: Address -> declared dependencies (defaults to each change's depends_on)
        options: Analysis tunables (defaults if None)
        cancel_event: Checked between resources; when set, no new resources start
        rule_errors: Rejected sensitivity rules to carry into the report

    Returns:
        AnalysisReport with analyses in plan order

    Raises:
        AnalysisCancelledError: If cancel_event was set; carries the partial report
    """
    options = options or AnalysisOptions()
    reverse_index = build_reverse_index(changes, forward_edges)

    slots: List[Optional[Tuple[ResourceAnalysis, List[AnalysisError]]]] = [None] * len(changes)

    def run(position: int, change: ResourceChangeInput) -> None:
        if cancel_event is not None and cancel_event.is_set():
            return
        try:
            slots[position] = analyze_resource(change, index, forward_edges, reverse_index, options)
        except Exception as e:
            logger.error(f"Analysis of {change.address} failed: {type(e).__name__}", exc_info=True)
            slots[position] = _fallback_analysis(change, e, options)

    if changes:
        workers = options.worker_count(len(changes))
        logger.info(f"Analyzing {len(changes)} resource changes with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(run, position, change) for position, change in enumerate(changes)]
            for future in futures:
                future.result()

    report = _assemble_report(slots, options, rule_errors or [])

    if cancel_event is not None and cancel_event.is_set():
        report.cancelled = True
        logger.warning(f"Analysis cancelled after {len(report.analyses)} of {len(changes)} resources")
        raise AnalysisCancelledError(report)

    logger.info(
        f"Analysis complete: {report.statistics.total} changes, "
        f"{report.statistics.high_risk} high risk, {len(report.errors)} errors"
    )
    return report


def analyze_resource(
    change: ResourceChangeInput,
    index: SensitivityIndex,
    forward_edges: Optional[Mapping[str, Iterable[str]]],
    reverse_index: Mapping[str, Sequence[str]],
    options: AnalysisOptions
) -> Tuple[ResourceAnalysis, List[AnalysisError]]:
    """Run diff, sensitivity tagging, risk and dependency stages for one resource."""
    errors: List[AnalysisError] = []
    action = ResourceAction(change.action)

    def fail(stage: AnalysisStage, exc: Exception, message: Optional[str] = None) -> None:
        message = message or str(exc)
        logger.warning(f"{stage.value} stage failed for {change.address}: {message}")
        errors.append(AnalysisError(
            address=change.address,
            stage=stage,
            message=message,
            cause=type(exc).__name__,
        ))

    try:
        sensitive_resource = index.is_sensitive_resource(change.type)
    except Exception as e:
        fail(AnalysisStage.SENSITIVITY, e)
        sensitive_resource = True

    if action == ResourceAction.NO_OP:
        change_set = PropertyChangeSet()
    else:
        try:
            change_set, diff_errors = diff_properties(change.before, change.after, options.limits)
            for diff_error in diff_errors:
                fail(AnalysisStage.DIFF, diff_error)
        except Exception as e:
            # raw values may appear in arbitrary exception text
            fail(AnalysisStage.DIFF, e, f"diff failed with {type(e).__name__}")
            change_set = PropertyChangeSet(
                changes=[PropertyChange(path=[], before=change.before, after=change.after, sensitive=True)],
                count=1,
                truncated=True,
            )

    try:
        change_set, danger_properties = _tag_sensitive(change, change_set, index)
    except Exception as e:
        fail(AnalysisStage.SENSITIVITY, e)
        change_set = _redact_all(change_set)
        danger_properties = []

    try:
        risk_level, reasons = assess_risk(action, sensitive_resource, len(danger_properties))
    except Exception as e:
        fail(AnalysisStage.RISK, e)
        risk_level, reasons = RiskLevel.HIGH, []

    try:
        dependencies = extract_dependencies(change, forward_edges, reverse_index, options.max_dependencies)
    except Exception as e:
        fail(AnalysisStage.DEPENDENCY, e)
        dependencies = DependencyInfo()

    if errors:
        risk_level = escalate_risk(risk_level)
        for stage in dict.fromkeys(err.stage for err in errors):
            reasons.append(f"analysis incomplete: {stage.value} stage failed")

    reasons = list(dict.fromkeys(reasons))
    hints = replacement_hints(change.replace_paths) if action == ResourceAction.REPLACE else []
    expand = disclosure.should_expand(risk_level, change_set, options.expand_all)

    if action == ResourceAction.REPLACE:
        change_details = disclosure.reasons_view(reasons, hints, expand, options.max_detail_length)
    else:
        change_details = disclosure.property_changes_view(change_set, expand, options.max_detail_length)

    analysis = ResourceAnalysis(
        address=change.address,
        type=change.type,
        module=change.module,
        action=action,
        provider=options.resolver.resolve(change.type),
        property_changes=change_set,
        risk_level=risk_level,
        danger_reasons=reasons,
        danger_properties=danger_properties,
        top_changes=_top_changes(change_set) if action == ResourceAction.UPDATE else [],
        replacement_hints=hints,
        dependencies=dependencies,
        change_details=change_details,
        dependency_details=disclosure.dependencies_view(dependencies, expand, options.max_detail_length),
    )
    logger.debug(f"Analyzed {change.address}: {action.value} -> {risk_level.value}")
    return analysis, errors


def _tag_sensitive(
    change: ResourceChangeInput,
    change_set: PropertyChangeSet,
    index: SensitivityIndex
) -> Tuple[PropertyChangeSet, List[str]]:
    """
    Mark sensitive and replacement-forcing changes; collect registered sensitive properties.

    Sensitive changes carry the redaction marker in place of their values, so
    every rendering of the report is redacted.
    """
    registered_names = index.sensitive_properties(change.type)
    tagged = []
    danger_properties: List[str] = []
    for prop in change_set.changes:
        touched = _registered_properties(prop, registered_names)
        for name in touched:
            if name not in danger_properties:
                danger_properties.append(name)
        sensitive = (prop.sensitive
                     or bool(touched)
                     or is_marked_sensitive(change.before_sensitive, prop.path)
                     or is_marked_sensitive(change.after_sensitive, prop.path))
        update = {"sensitive": sensitive, "forces_replacement": forces_replacement(prop.path, change.replace_paths)}
        if sensitive:
            update["before"] = disclosure.redact(prop.before)
            update["after"] = disclosure.redact(prop.after)
        tagged.append(prop.model_copy(update=update))
    return change_set.model_copy(update={"changes": tagged}), danger_properties


def _registered_properties(prop: PropertyChange, registered_names: FrozenSet[str]) -> List[str]:
    """Registered property names a change touches; a root-level change touches its top-level keys."""
    if not registered_names:
        return []
    if prop.path:
        name = str(prop.path[0])
        return [name] if name in registered_names else []
    names = []
    for value in (prop.before, prop.after):
        if not isinstance(value, Mapping):
            continue
        for key in value:
            if str(key) in registered_names and str(key) not in names:
                names.append(str(key))
    return names


def _redact_all(change_set: PropertyChangeSet) -> PropertyChangeSet:
    """Redact every change (used when sensitivity could not be determined)."""
    return change_set.model_copy(update={"changes": [
        prop.model_copy(update={
            "sensitive": True,
            "before": disclosure.redact(prop.before),
            "after": disclosure.redact(prop.after),
        })
        for prop in change_set.changes
    ]})


def _top_changes(change_set: PropertyChangeSet) -> List[str]:
    names: List[str] = []
    for prop in change_set.changes:
        if not prop.path:
            continue
        name = str(prop.path[0])
        if prop.after is None and len(prop.path) == 1:
            name += " (removed)"
        if name not in names:
            names.append(name)
        if len(names) >= TOP_CHANGES_LIMIT:
            break
    return names


def _assemble_report(
    slots: Sequence[Optional[Tuple[ResourceAnalysis, List[AnalysisError]]]],
    options: AnalysisOptions,
    rule_errors: List[RuleValidationError]
) -> AnalysisReport:
    analyses: List[ResourceAnalysis] = []
    errors: List[AnalysisError] = []
    for slot in slots:
        if slot is None:
            continue
        analysis, resource_errors = slot
        analyses.append(analysis)
        errors.extend(resource_errors)

    groups: Dict[str, List[int]] = {}
    applied = False
    if options.grouping_enabled:
        groups, applied = group_by_provider(analyses, options.group_threshold, options.resolver)

    return AnalysisReport(
        analyses=analyses,
        statistics=calculate_statistics(analyses, errors),
        errors=errors,
        rule_errors=rule_errors,
        groups=groups,
        grouping_applied=applied,
    )


def calculate_statistics(analyses: Sequence[ResourceAnalysis], errors: Sequence[AnalysisError] = ()) -> AnalysisStatistics:
    """Count analyses by action and risk."""
    counts = {action: 0 for action in ResourceAction}
    high_risk = 0
    for analysis in analyses:
        counts[ResourceAction(analysis.action)] += 1
        if analysis.risk_level >= RiskLevel.HIGH:
            high_risk += 1

    stats = AnalysisStatistics(
        to_add=counts[ResourceAction.CREATE],
        to_change=counts[ResourceAction.UPDATE],
        to_destroy=counts[ResourceAction.DELETE],
        replacements=counts[ResourceAction.REPLACE],
        unmodified=counts[ResourceAction.NO_OP],
        high_risk=high_risk,
        errors=len(errors),
    )
    stats.total = stats.to_add + stats.to_change + stats.to_destroy + stats.replacements
    return stats


def _fallback_analysis(
    change: ResourceChangeInput,
    exc: Exception,
    options: AnalysisOptions
) -> Tuple[ResourceAnalysis, List[AnalysisError]]:
    """Conservative stand-in when a resource could not be analyzed at all."""
    action = ResourceAction(change.action)
    risk_level = RiskLevel.CRITICAL if action == ResourceAction.DELETE else RiskLevel.HIGH
    reasons = ["analysis incomplete: resource could not be analyzed"]
    expand = True
    error = AnalysisError(
        address=change.address,
        stage=AnalysisStage.RISK,
        message=f"analysis failed with {type(exc).__name__}",
        cause=type(exc).__name__,
    )
    analysis = ResourceAnalysis(
        address=change.address,
        type=change.type,
        module=change.module,
        action=action,
        provider=options.resolver.resolve(change.type),
        risk_level=risk_level,
        danger_reasons=reasons,
        change_details=disclosure.reasons_view(reasons, [], expand, options.max_detail_length),
        dependency_details=disclosure.dependencies_view(DependencyInfo(), expand, options.max_detail_length),
    )
    return analysis, [error]
