"""Validate Terraform plan JSON structure."""

from typing import Dict, Any, List
from ..utils.errors import PlanLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.plan_validator")

SUPPORTED_FORMAT_VERSIONS = ["0.1", "0.2", "1.0", "1.1", "1.2"]


def validate_plan_structure(plan_data: Dict[str, Any]) -> None:
    """
    Validate Terraform plan JSON structure.
    
    Args:
        plan_data: Parsed Terraform plan JSON
        
    Raises:
        PlanLoadError: If plan structure is invalid
    """
    if not isinstance(plan_data, dict):
        raise PlanLoadError("Plan JSON must be an object at the top level.")
    
    if "format_version" not in plan_data:
        raise PlanLoadError(
            "Plan JSON missing required field: format_version. "
            "This doesn't appear to be a Terraform plan in JSON form. "
            "Generate one using: terraform show -json plan.tfplan > plan.json"
        )
    
    format_version = plan_data.get("format_version")
    if not isinstance(format_version, str):
        raise PlanLoadError("Plan 'format_version' must be a string.")
    
    version_major_minor = ".".join(format_version.split(".")[:2])
    if version_major_minor not in SUPPORTED_FORMAT_VERSIONS:
        logger.warning(
            f"Plan format version '{format_version}' may not be fully supported. "
            f"Supported versions: {', '.join(SUPPORTED_FORMAT_VERSIONS)}"
        )
    
    if "resource_changes" in plan_data and not isinstance(plan_data["resource_changes"], list):
        raise PlanLoadError("Plan 'resource_changes' must be a list.")
    
    terraform_version = plan_data.get("terraform_version")
    if terraform_version is not None and not isinstance(terraform_version, str):
        raise PlanLoadError("Plan 'terraform_version' must be a string.")
    
    logger.debug("Plan structure validation passed")


def validate_resource_change(resource: Any) -> List[str]:
    """
    Validate a single resource change entry.
    
    Returns:
        List of problems (empty if valid)
    """
    if not isinstance(resource, dict):
        return ["Resource change must be an object"]
    
    problems = []
    missing = [name for name in ("address", "change") if name not in resource]
    if missing:
        problems.append(f"Missing required fields: {', '.join(missing)}")
    
    change = resource.get("change")
    if change is not None:
        if not isinstance(change, dict):
            problems.append("Resource 'change' must be an object")
        elif not isinstance(change.get("actions", []), list):
            problems.append("Resource change 'actions' must be a list")
    
    return problems


def get_plan_summary(plan_data: Dict[str, Any]) -> Dict[str, Any]:
    """Extract version and size information for logging."""
    return {
        "format_version": plan_data.get("format_version", "unknown"),
        "terraform_version": plan_data.get("terraform_version", "unknown"),
        "resource_count": len(plan_data.get("resource_changes", [])),
    }
