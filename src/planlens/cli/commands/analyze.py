"""Analyze command - run change analysis on a Terraform plan."""

import json
import logging
import signal
import sys
import threading
from pathlib import Path
import click
from ...analysis.orchestrator import AnalysisOptions
from ...analysis.property_diff import DiffLimits
from ...config import load_config
from ...contracts.core_output import AnalysisReport
from ...utils.errors import AnalysisCancelledError, PlanLensError
from ...utils.logging import get_logger
from ..utils import format_error, resolve_file_path

logger = get_logger("cli.analyze")


@click.command()
@click.argument('plan_json', type=click.Path(exists=False))
@click.option('--config', 'config_path', type=click.Path(), help='Config file (defaults to ~/.planlens and ./.planlens)')
@click.option('--json', 'as_json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--output', '-o', type=click.Path(), help='Save output to file')
@click.option('--expand-all', is_flag=True, help='Expand every collapsible section')
@click.option('--group-threshold', type=click.IntRange(min=1), help='Minimum resources before grouping by provider')
@click.option('--max-properties', type=click.IntRange(min=0), help='Maximum property changes reported per resource')
@click.option('--workers', type=click.IntRange(min=1), help='Number of worker threads')
@click.option('--quiet', is_flag=True, help='Suppress progress messages')
def analyze(plan_json, config_path, as_json, output, expand_all, group_threshold, max_properties, workers, quiet):
    """
    Analyze a Terraform plan and show per-resource changes and risk.
    
    PLAN_JSON is the output of: terraform show -json plan.tfplan
    """
    if quiet:
        logging.getLogger("planlens").setLevel(logging.WARNING)
    
    from ... import analyze_plan
    
    cancel_event = threading.Event()
    try:
        try:
            plan_path = resolve_file_path(plan_json)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        if not quiet:
            click.echo(f"Loading and analyzing plan: {plan_path}", err=True)
        
        options = _build_options(config_path, expand_all, group_threshold, max_properties, workers)
        
        # Ctrl-C stops new resources from starting; the partial run is reported as cancelled
        previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
        try:
            report = analyze_plan(str(plan_path), config_path, options=options, cancel_event=cancel_event)
        finally:
            signal.signal(signal.SIGINT, previous_handler)
        
        if as_json:
            output_text = _format_json_output(report)
        else:
            from ...presentation.human_formatter import format_human_friendly
            output_text = format_human_friendly(report)
        
        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(output_text)
            if not quiet:
                click.echo(f"Output saved to: {output_path}", err=True)
        else:
            try:
                click.echo(output_text)
            except UnicodeEncodeError:
                click.echo(output_text.encode('ascii', errors='replace').decode('ascii'))
    
    except AnalysisCancelledError:
        click.echo(format_error("Analysis cancelled"), err=True)
        sys.exit(130)
    except PlanLensError as e:
        logger.debug(f"analyze failed: {type(e).__name__}")
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


def _build_options(config_path, expand_all, group_threshold, max_properties, workers) -> AnalysisOptions:
    """Config-derived options with command-line overrides applied."""
    options = load_config(config_path).analysis_options()
    if expand_all:
        options.expand_all = True
    if group_threshold is not None:
        options.group_threshold = group_threshold
    if max_properties is not None:
        limits = options.limits
        options.limits = DiffLimits(
            max_depth=limits.max_depth,
            max_properties=max_properties,
            max_total_bytes=limits.max_total_bytes,
        )
    if workers is not None:
        options.workers = workers
    return options


def _format_json_output(report: AnalysisReport) -> str:
    """Format an AnalysisReport as a JSON string."""
    return json.dumps(report.model_dump(mode="json"), indent=2)
