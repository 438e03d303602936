"""In-memory store of continuously updated test results."""

from teststate.config import StoreConfig
from teststate.exceptions import (
    ConsistencyViolationError,
    InvalidArgumentError,
    TestStateError,
)
from teststate.models import (
    ClassName,
    ClassResults,
    ClassSummary,
    FailureDetail,
    ResultBatch,
    TestId,
    TestOutcome,
    TestResult,
)
from teststate.store import ResultStore

__version__ = "0.1.0"

__all__ = [
    "ClassName",
    "ClassResults",
    "ClassSummary",
    "ConsistencyViolationError",
    "FailureDetail",
    "InvalidArgumentError",
    "ResultBatch",
    "ResultStore",
    "StoreConfig",
    "TestId",
    "TestOutcome",
    "TestResult",
    "TestStateError",
]
