"""Presentation layer: progressive disclosure contract and text formatting."""

from .human_formatter import format_human_friendly

__all__ = ["format_human_friendly"]
