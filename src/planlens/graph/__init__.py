"""Dependency graph over plan resource addresses."""

from .dependency_graph import DependencyGraph, build_reverse_index, extract_dependencies

__all__ = ["DependencyGraph", "build_reverse_index", "extract_dependencies"]
