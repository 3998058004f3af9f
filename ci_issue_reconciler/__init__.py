"""Keeps a single GitHub issue in step with the failure streak of a CI job."""

__version__ = "0.1.0"
