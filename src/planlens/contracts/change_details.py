"""Leaf-level change facts: property diffs, dependencies and collapsible views."""

from typing import List, Any, Union
from pydantic import BaseModel, Field


class PropertyChange(BaseModel):
    """A single leaf-level difference between before and after state."""
    path: List[Union[str, int]] = Field(default_factory=list, description="Ordered keys/indices from the resource root")
    before: Any = Field(None, description="Value before the change")
    after: Any = Field(None, description="Value after the change")
    sensitive: bool = Field(default=False, description="Whether the value must be redacted")
    size: int = Field(default=0, ge=0, description="Estimated size of before + after in bytes")
    forces_replacement: bool = Field(default=False, description="Whether this path is listed as forcing replacement")

    @property
    def name(self) -> str:
        """Dotted property name (empty for a whole-resource change)."""
        return ".".join(str(part) for part in self.path)


class PropertyChangeSet(BaseModel):
    """Ordered, size-bounded list of property changes for one resource."""
    changes: List[PropertyChange] = Field(default_factory=list, description="Changes in deterministic diff order")
    count: int = Field(default=0, ge=0, description="Number of changes collected")
    total_size: int = Field(default=0, ge=0, description="Cumulative estimated size in bytes")
    truncated: bool = Field(default=False, description="True if a depth, count or size budget was hit")


class DependencyInfo(BaseModel):
    """Direct dependency neighbours of a resource."""
    depends_on: List[str] = Field(default_factory=list, description="Addresses this resource depends on")
    used_by: List[str] = Field(default_factory=list, description="Addresses that depend on this resource")
    partial: bool = Field(default=False, description="True if either list was cut at the result cap")


class CollapsibleValue(BaseModel):
    """Summary/detail pair for progressive disclosure, independent of output format."""
    summary: str = Field(..., description="Always-visible one-line summary")
    detail: Any = Field(None, description="Detail payload shown when expanded")
    expand_by_default: bool = Field(default=False, description="Whether the renderer should start expanded")
