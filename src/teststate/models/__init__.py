"""Data models for teststate."""

from teststate.models.batch import BatchDocument, ResultEntry
from teststate.models.results import (
    ClassName,
    ClassResults,
    ClassSummary,
    FailureDetail,
    ResultBatch,
    TestId,
    TestOutcome,
    TestResult,
)

__all__ = [
    "BatchDocument",
    "ClassName",
    "ClassResults",
    "ClassSummary",
    "FailureDetail",
    "ResultBatch",
    "ResultEntry",
    "TestId",
    "TestOutcome",
    "TestResult",
]
