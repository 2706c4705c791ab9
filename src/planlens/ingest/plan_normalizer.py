"""Translate Terraform plan JSON into ResourceChangeInput records."""

import re
from typing import Dict, Any, List, Optional
from .models import NormalizedPlan, ResourceAction, ResourceChangeInput
from .plan_validator import validate_resource_change
from ..utils.errors import NormalizationError
from ..utils.logging import get_logger

logger = get_logger("ingest.plan_normalizer")

_INDEX_PATTERN = re.compile(r'\[[^\]]*\]')
# reference roots that never name a managed resource
_NON_RESOURCE_ROOTS = {"var", "local", "data", "path", "count", "each", "self", "terraform", "module"}


def _strip_index(address: str) -> str:
    """``aws_instance.web[0]`` -> ``aws_instance.web``."""
    return _INDEX_PATTERN.sub('', address)


def _module_path(address: str) -> Optional[str]:
    """
    Module path from a resource address.
    
    ``module.net.module.vpc.aws_vpc.main`` -> ``net.vpc``; root resources give None.
    """
    parts = _strip_index(address).split('.')
    modules = []
    i = 0
    while i + 1 < len(parts) and parts[i] == 'module':
        modules.append(parts[i + 1])
        i += 2
    return '.'.join(modules) if modules else None


def _module_prefix(address: str) -> str:
    """``module.a["x"].module.b.aws_vpc.main`` -> ``module.a["x"].module.b.``"""
    match = re.match(r'^((?:module\.[^.\[]+(?:\[[^\]]*\])?\.)*)', address)
    return match.group(1) if match else ""


def _normalize_action(actions: List[str]) -> ResourceAction:
    """
    Normalize a Terraform action list to a single ResourceAction.
    
    ``["delete", "create"]`` and ``["create", "delete"]`` are replacements;
    ``["read"]`` and ``["no-op"]`` change nothing.
    """
    normalized = {str(a).lower() for a in actions or []}
    
    if "delete" in normalized and "create" in normalized:
        return ResourceAction.REPLACE
    if "delete" in normalized:
        return ResourceAction.DELETE
    if "create" in normalized:
        return ResourceAction.CREATE
    if "update" in normalized:
        return ResourceAction.UPDATE
    return ResourceAction.NO_OP


def _reference_to_address(ref: str) -> Optional[str]:
    """
    Resource address named by an expression reference, if any.
    
    ``aws_lb.shared.arn`` -> ``aws_lb.shared``; ``var.region`` -> None.
    """
    parts = _strip_index(ref).split('.')
    if len(parts) < 2 or parts[0] in _NON_RESOURCE_ROOTS or '_' not in parts[0]:
        return None
    return f"{parts[0]}.{parts[1]}"


def _collect_references(expr: Any, refs: List[str]) -> None:
    """Recursively gather ``references`` arrays from configuration expressions."""
    if isinstance(expr, dict):
        for ref in expr.get("references", []) or []:
            if isinstance(ref, str):
                address = _reference_to_address(ref)
                if address and address not in refs:
                    refs.append(address)
        for value in expr.values():
            if isinstance(value, (dict, list)):
                _collect_references(value, refs)
    elif isinstance(expr, list):
        for item in expr:
            _collect_references(item, refs)


def _build_configuration_resource_map(plan_data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Map full (index-free) resource addresses to their configuration blocks.
    
    Walks ``configuration.root_module`` and nested ``module_calls``.
    """
    config_map: Dict[str, Dict[str, Any]] = {}
    
    def process_module(module: Dict[str, Any], prefix: str) -> None:
        for resource in module.get("resources", []) or []:
            address = resource.get("address")
            if address:
                config_map[f"{prefix}{address}"] = resource
        for name, call in (module.get("module_calls") or {}).items():
            child = call.get("module") if isinstance(call, dict) else None
            if isinstance(child, dict):
                process_module(child, f"{prefix}module.{name}.")
    
    configuration = plan_data.get("configuration") or {}
    root_module = configuration.get("root_module") or {}
    if isinstance(root_module, dict):
        process_module(root_module, "")
    return config_map


def _extract_dependencies(
    resource_change: Dict[str, Any],
    config_resource_map: Dict[str, Dict[str, Any]]
) -> List[str]:
    """
    Dependencies of one resource change, as full addresses in first-seen order.
    
    Sources: an explicit ``depends_on`` on the change, then the configuration
    block's ``depends_on`` and expression ``references``. Configuration
    addresses are module-relative and get the resource's module prefix.
    """
    address = resource_change["address"]
    deps: List[str] = []
    
    def add(dep: str) -> None:
        if dep and dep != address and dep not in deps:
            deps.append(dep)
    
    for dep in resource_change.get("depends_on", []) or []:
        add(str(dep))
    
    config_resource = config_resource_map.get(_strip_index(address))
    if config_resource:
        prefix = _strip_index(_module_prefix(address))
        relative: List[str] = []
        for dep in config_resource.get("depends_on", []) or []:
            target = _reference_to_address(str(dep))
            if target and target not in relative:
                relative.append(target)
        _collect_references(config_resource.get("expressions") or {}, relative)
        for dep in relative:
            add(f"{prefix}{dep}")
    
    return deps


def _normalize_resource(
    resource_change: Dict[str, Any],
    config_resource_map: Dict[str, Dict[str, Any]]
) -> ResourceChangeInput:
    address = resource_change["address"]
    change = resource_change.get("change") or {}
    resource_type = resource_change.get("type") or _strip_index(address).split('.')[-2]
    
    return ResourceChangeInput(
        address=address,
        type=resource_type,
        module=_module_path(address),
        action=_normalize_action(change.get("actions", [])),
        before=change.get("before"),
        after=change.get("after"),
        before_sensitive=change.get("before_sensitive"),
        after_sensitive=change.get("after_sensitive"),
        replace_paths=list(change.get("replace_paths") or []),
        depends_on=_extract_dependencies(resource_change, config_resource_map),
    )


def normalize_plan(plan_data: Dict[str, Any]) -> NormalizedPlan:
    """
    Normalize Terraform plan JSON into resource changes in plan order.
    
    Data sources (``mode: data``) are skipped, as are entries that fail
    validation; each skip is logged as a warning.
    
    Args:
        plan_data: Raw Terraform plan JSON dictionary
        
    Returns:
        NormalizedPlan
        
    Raises:
        NormalizationError: If the plan as a whole cannot be normalized
    """
    try:
        resource_changes = plan_data.get("resource_changes", []) or []
        config_resource_map = _build_configuration_resource_map(plan_data)
    except (AttributeError, TypeError) as e:
        raise NormalizationError(f"Failed to normalize plan: {e}") from e
    
    resources: List[ResourceChangeInput] = []
    for position, resource_change in enumerate(resource_changes):
        problems = validate_resource_change(resource_change)
        if problems:
            logger.warning(f"Skipping resource change #{position}: {'; '.join(problems)}")
            continue
        if resource_change.get("mode") == "data":
            logger.debug(f"Skipping data source {resource_change['address']}")
            continue
        try:
            resources.append(_normalize_resource(resource_change, config_resource_map))
        except Exception as e:
            logger.warning(f"Failed to normalize resource {resource_change.get('address', 'unknown')}: {e}")
            continue
    
    logger.info(f"Normalized {len(resources)} of {len(resource_changes)} resource changes")
    return NormalizedPlan(
        resources=resources,
        format_version=plan_data.get("format_version"),
        terraform_version=plan_data.get("terraform_version"),
    )
