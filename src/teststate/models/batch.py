"""Result batch document models.

Describes the YAML/JSON documents the command line replays through a store.
"""

from pydantic import BaseModel, Field, field_validator

from teststate.models.results import (
    ClassName,
    FailureDetail,
    ResultBatch,
    TestId,
    TestOutcome,
    TestResult,
)


class ResultEntry(BaseModel):
    """One test result as written in a batch document."""

    id: TestId = Field(min_length=1)
    outcome: TestOutcome
    detail: FailureDetail | None = None
    display_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    duration_seconds: float | None = Field(default=None, ge=0.0)

    def to_result(self, class_name: ClassName) -> TestResult:
        """Convert to the store's immutable result type."""
        return TestResult(
            test_id=self.id,
            outcome=self.outcome,
            detail=self.detail,
            display_name=self.display_name,
            class_name=class_name,
            tags=tuple(self.tags),
            duration_seconds=self.duration_seconds,
        )


class BatchDocument(BaseModel):
    """A batch of results plus the classes that disappeared since the last one."""

    classes: dict[ClassName, list[ResultEntry]] = Field(default_factory=dict)
    removed: list[ClassName] = Field(default_factory=list)

    @field_validator("classes")
    @classmethod
    def unique_test_ids(
        cls, classes: dict[ClassName, list[ResultEntry]]
    ) -> dict[ClassName, list[ResultEntry]]:
        seen: dict[TestId, ClassName] = {}
        for class_name, entries in classes.items():
            if not class_name:
                msg = "Class names must not be empty"
                raise ValueError(msg)
            for entry in entries:
                owner = seen.get(entry.id)
                if owner == class_name:
                    msg = f"Test '{entry.id}' is listed more than once in '{class_name}'"
                    raise ValueError(msg)
                if owner is not None:
                    msg = f"Test '{entry.id}' appears in both '{owner}' and '{class_name}'"
                    raise ValueError(msg)
                seen[entry.id] = class_name
        return classes

    def to_batch(self) -> ResultBatch:
        """Build the mapping accepted by ResultStore.apply_update."""
        return {
            class_name: {entry.id: entry.to_result(class_name) for entry in entries}
            for class_name, entries in self.classes.items()
        }
