"""Pydantic models for normalized resource changes."""

from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class ResourceAction(str, Enum):
    """Normalized resource action types."""
    NO_OP = "no-op"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"


class ResourceChangeInput(BaseModel):
    """A single resource change as handed to the analysis engine (read-only)."""
    address: str = Field(..., description="Full resource address, including module prefix")
    type: str = Field(..., description="Resource type (e.g., 'aws_instance')")
    module: Optional[str] = Field(None, description="Module path if resource is in a module")
    action: ResourceAction = Field(..., description="Normalized action type")
    before: Any = Field(None, description="State before the change (opaque tree)")
    after: Any = Field(None, description="State after the change (opaque tree)")
    before_sensitive: Any = Field(None, description="Plan-declared sensitivity mask for 'before'")
    after_sensitive: Any = Field(None, description="Plan-declared sensitivity mask for 'after'")
    replace_paths: List[Any] = Field(default_factory=list, description="Attribute paths that force replacement")
    depends_on: List[str] = Field(default_factory=list, description="Addresses this resource declares as dependencies")


class NormalizedPlan(BaseModel):
    """Normalized plan - ordered collection of resource changes."""
    resources: List[ResourceChangeInput] = Field(default_factory=list, description="Resource changes in plan order")
    format_version: Optional[str] = Field(None, description="Plan format version")
    terraform_version: Optional[str] = Field(None, description="Terraform version that produced the plan")

    def forward_edges(self) -> Dict[str, List[str]]:
        """Map each address to the addresses it depends on."""
        return {resource.address: list(resource.depends_on) for resource in self.resources}
