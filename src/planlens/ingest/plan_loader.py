"""Load and validate Terraform plan JSON."""

import json
from pathlib import Path
from typing import Dict, Any
from ..utils.errors import PlanLoadError
from ..utils.logging import get_logger
from .plan_validator import validate_plan_structure, get_plan_summary

logger = get_logger("ingest.plan_loader")


def load_plan_json(plan_path: str) -> Dict[str, Any]:
    """
    Load and validate a Terraform plan JSON file.
    
    Args:
        plan_path: Path to plan JSON (output of ``terraform show -json``)
        
    Returns:
        Parsed and validated plan data
        
    Raises:
        PlanLoadError: If file cannot be loaded or is invalid
    """
    path = Path(plan_path)
    
    if not path.exists():
        raise PlanLoadError(
            f"Plan file not found: {plan_path}. "
            "Generate a plan using: terraform show -json plan.tfplan > plan.json"
        )
    
    if not path.is_file():
        raise PlanLoadError(f"Path is not a file: {plan_path}")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            plan_data = json.load(f)
    except json.JSONDecodeError as e:
        raise PlanLoadError(f"Invalid JSON in plan file: {e}")
    except OSError as e:
        raise PlanLoadError(f"Error reading plan file: {e}")
    
    try:
        validate_plan_structure(plan_data)
    except PlanLoadError as e:
        raise PlanLoadError(f"Invalid Terraform plan structure: {e}")
    
    if "resource_changes" not in plan_data:
        logger.warning("Plan JSON missing 'resource_changes' field - treating as empty plan")
        plan_data["resource_changes"] = []
    
    summary = get_plan_summary(plan_data)
    logger.info(
        f"Loaded Terraform plan from {plan_path} "
        f"(format: {summary['format_version']}, "
        f"terraform: {summary['terraform_version']}, "
        f"resources: {summary['resource_count']})"
    )
    
    return plan_data
