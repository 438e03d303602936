"""Reporting module for exporting store snapshots."""

from teststate.reporting.json_generator import JsonSummaryGenerator

__all__ = ["JsonSummaryGenerator"]
