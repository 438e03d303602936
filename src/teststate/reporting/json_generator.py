"""JSON summary generator for machine-readable export.

Exports the classification queries of a result store as JSON for UI
components and CI integration.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from teststate.models import ClassSummary, ResultBatch, TestResult
    from teststate.store import ResultStore


class JsonSummaryGenerator:
    """Generates JSON summaries of a result store."""

    def generate(
        self,
        store: ResultStore,
        output_path: Path,
        current_results: ResultBatch | None = None,
    ) -> None:
        """Write a JSON summary.

        Args:
            store: Store to summarize.
            output_path: Path to write the JSON report.
            current_results: Latest batch; when given, the report lists stored
                failures that batch did not rerun.
        """
        report = self.build_report(store, current_results)
        output_path.write_text(json.dumps(report, indent=2, default=str))

    def build_report(
        self,
        store: ResultStore,
        current_results: ResultBatch | None = None,
    ) -> dict[str, Any]:
        """Build the report dictionary."""
        passing = store.get_passing_classes()
        failing = store.get_failing_classes()
        total_tests = sum(s.total for s in passing) + sum(s.total for s in failing)

        report: dict[str, Any] = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "total_classes": len(passing) + len(failing),
                "total_tests": total_tests,
                "passing_classes": len(passing),
                "failing_classes": len(failing),
                "total_failures": store.get_total_failure_count(),
            },
            "passing": [self._build_class_entry(s) for s in passing],
            "failing": [self._build_class_entry(s) for s in failing],
        }
        if current_results is not None:
            report["historic_failures"] = [
                self._build_result_entry(r)
                for r in store.get_new_failures(current_results)
            ]
        return report

    def _build_class_entry(self, summary: ClassSummary) -> dict[str, Any]:
        return {
            "name": summary.name,
            "passing": [self._build_result_entry(r) for r in summary.passing],
            "failing": [self._build_result_entry(r) for r in summary.failing],
            "skipped": [self._build_result_entry(r) for r in summary.skipped],
        }

    def _build_result_entry(self, result: TestResult) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "id": result.test_id,
            "name": result.name,
            "outcome": result.outcome.value,
        }
        if result.class_name is not None:
            entry["class_name"] = result.class_name
        if result.duration_seconds is not None:
            entry["duration_seconds"] = result.duration_seconds
        if result.tags:
            entry["tags"] = list(result.tags)
        if result.detail is not None:
            entry["detail"] = result.detail.model_dump(exclude_none=True)
        return entry
