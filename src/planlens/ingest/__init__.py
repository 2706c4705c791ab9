"""Plan ingest: load Terraform plan JSON and normalize it into resource changes."""

from .models import ResourceAction, ResourceChangeInput, NormalizedPlan
from .plan_loader import load_plan_json
from .plan_normalizer import normalize_plan

__all__ = [
    "ResourceAction",
    "ResourceChangeInput",
    "NormalizedPlan",
    "load_plan_json",
    "normalize_plan",
]
