"""Tests for result models."""

import pytest
from pydantic import ValidationError

from teststate.models import ClassSummary, FailureDetail, TestOutcome, TestResult
from teststate.store import classify


def _result(test_id: str, outcome: TestOutcome) -> TestResult:
    return TestResult(test_id=test_id, outcome=outcome)


class TestTestResult:
    """Tests for the TestResult model."""

    def test_minimal_result(self) -> None:
        """Only id and outcome are required."""
        result = TestResult(test_id="t1", outcome="passed")

        assert result.outcome == TestOutcome.PASSED
        assert result.detail is None
        assert result.tags == ()

    def test_result_is_frozen(self) -> None:
        """Results cannot be modified in place."""
        result = _result("t1", TestOutcome.PASSED)

        with pytest.raises(ValidationError):
            result.outcome = TestOutcome.FAILED  # type: ignore[misc]

    def test_empty_id_rejected(self) -> None:
        """Test ids must not be empty."""
        with pytest.raises(ValidationError):
            TestResult(test_id="", outcome=TestOutcome.PASSED)

    def test_unknown_outcome_rejected(self) -> None:
        """Outcomes are limited to the enum values."""
        with pytest.raises(ValidationError):
            TestResult(test_id="t1", outcome="exploded")

    def test_outcome_properties(self) -> None:
        """failed and skipped reflect the outcome."""
        assert _result("a", TestOutcome.FAILED).failed is True
        assert _result("a", TestOutcome.SKIPPED).skipped is True
        assert _result("a", TestOutcome.ABORTED).skipped is True
        assert _result("a", TestOutcome.PASSED).failed is False
        assert _result("a", TestOutcome.PASSED).skipped is False

    def test_name_falls_back_to_id(self) -> None:
        """name uses the display name when present."""
        assert _result("t1", TestOutcome.PASSED).name == "t1"
        named = TestResult(test_id="t1", outcome=TestOutcome.PASSED, display_name="adds numbers")
        assert named.name == "adds numbers"

    def test_failure_detail(self) -> None:
        """Failure detail is carried through."""
        result = TestResult(
            test_id="t1",
            outcome=TestOutcome.FAILED,
            detail=FailureDetail(message="boom", exception_type="AssertionError"),
        )

        assert result.detail is not None
        assert result.detail.message == "boom"
        assert result.detail.trace is None


class TestClassify:
    """Tests for the classify helper."""

    def test_partitions_by_outcome(self) -> None:
        """Failed, skipped/aborted and passing results are separated."""
        results = {
            "a": _result("a", TestOutcome.PASSED),
            "b": _result("b", TestOutcome.FAILED),
            "c": _result("c", TestOutcome.SKIPPED),
            "d": _result("d", TestOutcome.ABORTED),
        }

        passing, failing, skipped = classify(results)

        assert [r.test_id for r in passing] == ["a"]
        assert [r.test_id for r in failing] == ["b"]
        assert [r.test_id for r in skipped] == ["c", "d"]

    def test_empty(self) -> None:
        """An empty class yields empty partitions."""
        assert classify({}) == ([], [], [])


class TestClassSummary:
    """Tests for ClassSummary ordering and properties."""

    def test_total_and_has_failures(self) -> None:
        """total counts every partition."""
        summary = ClassSummary(
            name="Foo",
            passing=(_result("a", TestOutcome.PASSED),),
            failing=(_result("b", TestOutcome.FAILED),),
        )

        assert summary.total == 2
        assert summary.has_failures is True

    def test_ordered_by_name(self) -> None:
        """Summaries sort by class name."""
        summaries = [ClassSummary(name="b"), ClassSummary(name="c"), ClassSummary(name="a")]

        assert [s.name for s in sorted(summaries)] == ["a", "b", "c"]

    def test_ties_broken_by_contents(self) -> None:
        """Equal names fall back to partition contents."""
        failing = ClassSummary(name="Foo", failing=(_result("x", TestOutcome.FAILED),))
        passing = ClassSummary(name="Foo", passing=(_result("x", TestOutcome.PASSED),))

        assert sorted([failing, passing], key=ClassSummary.sort_key) == [passing, failing]

    def test_comparison_with_other_type(self) -> None:
        """Comparing against a non-summary is unsupported."""
        with pytest.raises(TypeError):
            _ = ClassSummary(name="a") < "a"  # type: ignore[operator]
