"""Test result data models.

Defines the immutable values produced by the execution layer and the
per-class summaries returned by the store's classification queries.
"""

from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TestId = str
ClassName = str


class TestOutcome(str, Enum):
    """Outcome of a single test execution."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


# Outcomes reported under the skipped partition of a class summary
SKIPPED_OUTCOMES = frozenset({TestOutcome.SKIPPED, TestOutcome.ABORTED})


class FailureDetail(BaseModel):
    """Why a test failed, or why it was skipped."""

    model_config = ConfigDict(frozen=True)

    message: str = ""
    exception_type: str | None = None
    trace: str | None = None


class TestResult(BaseModel):
    """Result of the latest execution of one test.

    Results are immutable. The store replaces an entry wholesale when a newer
    result for the same test id arrives.
    """

    __test__ = False
    model_config = ConfigDict(frozen=True)

    test_id: TestId = Field(min_length=1)
    outcome: TestOutcome
    detail: FailureDetail | None = None

    # Metadata carried through for reporting
    display_name: str | None = None
    class_name: ClassName | None = None
    tags: tuple[str, ...] = ()
    duration_seconds: float | None = Field(default=None, ge=0.0)

    @property
    def failed(self) -> bool:
        """True when the test failed."""
        return self.outcome == TestOutcome.FAILED

    @property
    def skipped(self) -> bool:
        """True when the test was skipped or aborted."""
        return self.outcome in SKIPPED_OUTCOMES

    @property
    def name(self) -> str:
        """Display name, falling back to the test id."""
        return self.display_name or self.test_id


ClassResults = Mapping[TestId, TestResult]
ResultBatch = Mapping[ClassName, ClassResults]


class ClassSummary(BaseModel):
    """Partition of one class's results by outcome."""

    model_config = ConfigDict(frozen=True)

    name: ClassName
    passing: tuple[TestResult, ...] = ()
    failing: tuple[TestResult, ...] = ()
    skipped: tuple[TestResult, ...] = ()

    @property
    def total(self) -> int:
        """Number of results across all partitions."""
        return len(self.passing) + len(self.failing) + len(self.skipped)

    @property
    def has_failures(self) -> bool:
        """True when at least one test in the class failed."""
        return bool(self.failing)

    def sort_key(self) -> tuple:
        """Deterministic ordering key: class name first, then partition contents."""
        return (
            self.name,
            len(self.failing),
            len(self.passing),
            len(self.skipped),
            tuple(r.test_id for r in self.failing),
            tuple(r.test_id for r in self.passing),
            tuple(r.test_id for r in self.skipped),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ClassSummary):
            return NotImplemented
        return self.sort_key() < other.sort_key()
