"""Command-line interface for PlanLens."""
