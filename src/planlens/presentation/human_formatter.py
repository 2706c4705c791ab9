"""Human-friendly output formatter - converts an AnalysisReport to readable text."""

import os
from typing import List, Optional
from ..contracts.core_output import AnalysisReport, ResourceAnalysis, RiskLevel


def _use_ascii(ascii_mode: Optional[bool] = None) -> bool:
    """Resolve whether to use ASCII output (checked at format time)."""
    if ascii_mode is not None:
        return bool(ascii_mode)
    return os.environ.get("PLANLENS_ASCII", "").lower() in ("1", "true", "yes")


def _box(title: str, width: int = 65, ascii_mode: bool = False) -> List[str]:
    """Return box-drawing header lines."""
    b = {"tl": "+", "tr": "+", "h": "-", "v": "|"} if ascii_mode else {"tl": "┌", "tr": "┐", "h": "─", "v": "│"}
    h = b["h"] * (width - 2)
    return [
        b["tl"] + h + b["tr"],
        f"{b['v']} {title:<{width - 4}} {b['v']}",
        ("+" if ascii_mode else "└") + h + ("+" if ascii_mode else "┘"),
        "",
    ]


def _section(title: str, width: int = 65) -> List[str]:
    """Return section divider."""
    h = "-" * width
    return [h, title.center(width), h]


def _risk_marker(level: RiskLevel, ascii_mode: bool = False) -> str:
    if level >= RiskLevel.HIGH:
        return "[!]" if ascii_mode else "⚠️ "
    if level == RiskLevel.MEDIUM:
        return "[i]" if ascii_mode else "ℹ️ "
    return "   "


def _format_statistics(report: AnalysisReport) -> List[str]:
    s = report.statistics
    return [
        f"To add:       {s.to_add}",
        f"To change:    {s.to_change}",
        f"To destroy:   {s.to_destroy}",
        f"Replacements: {s.replacements}",
        f"Unmodified:   {s.unmodified}",
        f"High risk:    {s.high_risk}",
        f"Total:        {s.total}",
    ]


def _format_analysis(analysis: ResourceAnalysis, ascii_mode: bool = False) -> List[str]:
    branch, last = ("|-", "\\-") if ascii_mode else ("├─", "└─")
    lines = [f"{_risk_marker(analysis.risk_level, ascii_mode)} {analysis.address} ({analysis.action.value}, {analysis.risk_level.value})"]
    details = []
    if analysis.danger_reasons:
        details.append(("Reasons", ", ".join(analysis.danger_reasons)))
    if analysis.replacement_hints:
        details.append(("Replaced because of", ", ".join(analysis.replacement_hints)))
    if analysis.top_changes:
        details.append(("Top changes", ", ".join(analysis.top_changes)))
    details.append(("Changes", analysis.change_details.summary))
    details.append(("Dependencies", analysis.dependency_details.summary))
    for i, (label, value) in enumerate(details):
        prefix = last if i == len(details) - 1 else branch
        lines.append(f"    {prefix} {label}: {value}")
    return lines


def format_human_friendly(report: AnalysisReport, ascii_mode: Optional[bool] = None) -> str:
    """
    Render a report as plain text for terminals.

    Args:
        report: AnalysisReport from analysis
        ascii_mode: Force ASCII-only output (defaults to PLANLENS_ASCII)

    Returns:
        Formatted multi-line string
    """
    ascii_mode = _use_ascii(ascii_mode)
    lines = _box("PlanLens Change Analysis", ascii_mode=ascii_mode)
    lines.extend(_section("STATISTICS"))
    lines.extend(_format_statistics(report))
    lines.append("")

    if not report.analyses:
        lines.append("No resource changes.")
        return "\n".join(lines)

    if report.grouping_applied:
        for provider, indices in report.groups.items():
            lines.extend(_section(f"PROVIDER: {provider} ({len(indices)})"))
            for idx in indices:
                lines.extend(_format_analysis(report.analyses[idx], ascii_mode))
            lines.append("")
    else:
        lines.extend(_section("RESOURCE CHANGES"))
        for analysis in report.analyses:
            lines.extend(_format_analysis(analysis, ascii_mode))
        lines.append("")

    if report.errors:
        lines.extend(_section("ANALYSIS ERRORS"))
        for error in report.errors:
            lines.append(f"  {error.address} [{error.stage.value}]: {error.message}")
        lines.append("")

    if report.rule_errors:
        lines.extend(_section("IGNORED SENSITIVITY RULES"))
        for rule_error in report.rule_errors:
            lines.append(f"  #{rule_error.index}: {rule_error.message}")
        lines.append("")

    return "\n".join(lines)
