"""PlanLens - Terraform plan change analysis and risk engine."""

import threading
from typing import Optional
from .ingest.plan_loader import load_plan_json
from .ingest.plan_normalizer import normalize_plan
from .analysis.orchestrator import AnalysisOptions, analyze_changes
from .analysis.sensitivity import build_sensitivity_index
from .contracts.core_output import AnalysisReport
from .config import load_config
from .utils.logging import setup_logging, get_logger
from .utils.errors import PlanLensError

__version__ = "0.1.0"

__all__ = ["analyze_plan", "__version__"]

setup_logging()
logger = get_logger("core")


def analyze_plan(
    plan_json_path: str,
    config_path: Optional[str] = None,
    options: Optional[AnalysisOptions] = None,
    cancel_event: Optional[threading.Event] = None
) -> AnalysisReport:
    """
    Analyze a Terraform plan JSON file end to end.
    
    Args:
        plan_json_path: Path to plan JSON (``terraform show -json`` output)
        config_path: Optional config file; defaults plus user/project config otherwise
        options: Analysis options; derived from config when None
        cancel_event: Set to stop starting new resources
        
    Returns:
        AnalysisReport
        
    Raises:
        PlanLensError: On any load, config or analysis failure (including cancellation)
    """
    try:
        logger.info(f"Starting analysis of plan: {plan_json_path}")
        
        config = load_config(config_path)
        index, rule_errors = build_sensitivity_index(config.sensitivity_rules())
        if options is None:
            options = config.analysis_options()
        
        plan_data = load_plan_json(plan_json_path)
        normalized_plan = normalize_plan(plan_data)
        
        if not normalized_plan.resources:
            logger.warning("No resource changes found in plan")
        
        return analyze_changes(
            normalized_plan.resources,
            index,
            forward_edges=normalized_plan.forward_edges(),
            options=options,
            cancel_event=cancel_event,
            rule_errors=rule_errors,
        )
        
    except PlanLensError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during analysis: {e}", exc_info=True)
        raise PlanLensError(f"Analysis failed: {e}") from e
