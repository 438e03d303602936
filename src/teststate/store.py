"""Continuously updated store of test results.

The store holds the latest result of every test the engine has run in this
session, grouped by class, together with an index of the tests currently
failing. The engine feeds it partial batches as it reruns subsets of tests;
reporting code polls the classification queries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from functools import wraps
from types import MappingProxyType
from typing import Any, TypeVar

from teststate.config import ConsistencyMode, StoreConfig
from teststate.exceptions import ConsistencyViolationError, InvalidArgumentError
from teststate.locking import ReadWriteLock
from teststate.models import (
    ClassName,
    ClassResults,
    ClassSummary,
    ResultBatch,
    TestId,
    TestOutcome,
    TestResult,
)
from teststate.models.results import SKIPPED_OUTCOMES

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])


def _reading(func: _F) -> _F:
    """Run a store method under the shared side of the store lock."""

    @wraps(func)
    def _inner(store: ResultStore, *args: Any, **kwargs: Any) -> Any:
        with store._lock.read_locked():
            return func(store, *args, **kwargs)

    return _inner  # type: ignore[return-value]


def _writing(func: _F) -> _F:
    """Run a store method under the exclusive side of the store lock."""

    @wraps(func)
    def _inner(store: ResultStore, *args: Any, **kwargs: Any) -> Any:
        with store._lock.write_locked():
            return func(store, *args, **kwargs)

    return _inner  # type: ignore[return-value]


def classify(
    class_results: ClassResults,
) -> tuple[list[TestResult], list[TestResult], list[TestResult]]:
    """Partition one class's results by outcome.

    Aborted tests count as skipped; anything neither failed nor skipped is
    passing. Each partition is ordered by test id.

    Returns:
        (passing, failing, skipped)
    """
    passing: list[TestResult] = []
    failing: list[TestResult] = []
    skipped: list[TestResult] = []
    for test_id in sorted(class_results):
        result = class_results[test_id]
        if result.outcome == TestOutcome.FAILED:
            failing.append(result)
        elif result.outcome in SKIPPED_OUTCOMES:
            skipped.append(result)
        else:
            passing.append(result)
    return passing, failing, skipped


def _summarize(name: ClassName, class_results: ClassResults) -> ClassSummary:
    passing, failing, skipped = classify(class_results)
    return ClassSummary(
        name=name,
        passing=tuple(passing),
        failing=tuple(failing),
        skipped=tuple(skipped),
    )


def _validate_batch(latest: ResultBatch, stored_owners: Mapping[TestId, ClassName]) -> None:
    """Reject a malformed batch before anything is applied.

    Args:
        latest: Batch to check.
        stored_owners: Class currently holding each stored test id.
    """
    if latest is None:
        msg = "Result batch must not be None"
        raise InvalidArgumentError(msg)
    if not isinstance(latest, Mapping):
        msg = f"Result batch must be a mapping, got {type(latest).__name__}"
        raise InvalidArgumentError(msg)

    owners: dict[TestId, ClassName] = {}
    for class_name, tests in latest.items():
        if not isinstance(class_name, str) or not class_name:
            msg = f"Invalid class name {class_name!r}"
            raise InvalidArgumentError(msg)
        if tests is None:
            msg = f"Results for class '{class_name}' must not be None"
            raise InvalidArgumentError(msg)
        if not isinstance(tests, Mapping):
            msg = (
                f"Results for class '{class_name}' must be a mapping, "
                f"got {type(tests).__name__}"
            )
            raise InvalidArgumentError(msg)

        for test_id, result in tests.items():
            if not isinstance(result, TestResult):
                msg = (
                    f"Result for '{test_id}' in class '{class_name}' is "
                    f"{type(result).__name__}, not TestResult"
                )
                raise InvalidArgumentError(msg)
            if test_id != result.test_id:
                msg = (
                    f"Key '{test_id}' in class '{class_name}' does not match "
                    f"result id '{result.test_id}'"
                )
                raise InvalidArgumentError(msg)
            if result.class_name is not None and result.class_name != class_name:
                msg = (
                    f"Result '{test_id}' belongs to class '{result.class_name}' "
                    f"but was filed under '{class_name}'"
                )
                raise InvalidArgumentError(msg)
            owner = owners.setdefault(test_id, class_name)
            if owner != class_name:
                msg = f"Test '{test_id}' appears in both '{owner}' and '{class_name}'"
                raise InvalidArgumentError(msg)
            stored = stored_owners.get(test_id)
            if stored is not None and stored != class_name:
                msg = (
                    f"Test '{test_id}' is already stored under class '{stored}' "
                    f"and cannot be filed under '{class_name}'"
                )
                raise InvalidArgumentError(msg)


class ResultStore:
    """Authoritative result set of a test-runner session.

    One instance lives for the whole session and is shared by the execution
    layer (writer) and reporting components (readers). Mutations take an
    exclusive lock; queries take a shared lock, so a reader never sees the
    failing index and the stored results from different updates.

    A test id is stored under at most one class. Once a class is removed its
    test ids may be filed under another class.

    When a class is removed, the ids of its failing tests stay in the failing
    index unless ``StoreConfig.prune_failing_on_remove`` is set. In that state
    ``is_failing`` can report a test whose class no longer exists, and
    ``get_total_failure_count`` (a scan of stored results) is smaller than the
    index.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        """Create an empty store.

        Args:
            config: Store behaviour switches; defaults apply when omitted.
        """
        self._config = config or StoreConfig()
        self._lock = ReadWriteLock()
        self._results_by_class: dict[ClassName, dict[TestId, TestResult]] = {}
        self._owners: dict[TestId, ClassName] = {}
        self._failing: set[TestId] = set()

    @property
    def config(self) -> StoreConfig:
        return self._config

    # Mutations

    @_writing
    def apply_update(self, latest: ResultBatch) -> None:
        """Merge a batch of results into the store.

        Classes seen for the first time are inserted whole. For known classes
        each result overwrites the entry with the same test id; tests absent
        from the batch keep their previous result. A class listed with no
        results is not created.

        Args:
            latest: Mapping of class name to the results of that class's
                re-executed tests, keyed by test id.

        Raises:
            InvalidArgumentError: If the batch is malformed, or files a test id
                that is stored under another class. Nothing is applied.
        """
        _validate_batch(latest, self._owners)

        touched: list[TestId] = []
        for class_name, tests in latest.items():
            if not tests:
                continue
            existing = self._results_by_class.get(class_name)
            if existing is None:
                self._results_by_class[class_name] = dict(tests)
            else:
                existing.update(tests)

            for test_id, result in tests.items():
                self._owners[test_id] = class_name
                self._index(test_id, result)
                touched.append(test_id)

        logger.debug(
            "Applied %d result(s) across %d class(es); %d test(s) failing",
            len(touched),
            len(latest),
            len(self._failing),
        )
        self._check_consistency(touched)

    @_writing
    def remove_classes(self, names: Iterable[ClassName]) -> None:
        """Forget every result of the named classes.

        Names that are not stored are ignored, so removal is idempotent.

        Args:
            names: Classes that no longer exist, e.g. after their source file
                was deleted or renamed.

        Raises:
            InvalidArgumentError: If names is None or a single string.
        """
        if names is None:
            msg = "Class names must not be None"
            raise InvalidArgumentError(msg)
        if isinstance(names, str):
            msg = f"Class names must be a collection of names, got string '{names}'"
            raise InvalidArgumentError(msg)

        removed: list[ClassName] = []
        touched: list[TestId] = []
        for name in names:
            tests = self._results_by_class.pop(name, None)
            if tests is None:
                continue
            removed.append(name)
            for test_id in tests:
                del self._owners[test_id]
                touched.append(test_id)
            if self._config.prune_failing_on_remove:
                self._failing.difference_update(tests)

        if removed:
            logger.debug("Removed class(es): %s", ", ".join(sorted(removed)))
        self._check_consistency(touched)

    @_writing
    def clear(self) -> None:
        """Drop all results, returning the store to its initial state."""
        self._results_by_class.clear()
        self._owners.clear()
        self._failing.clear()
        logger.debug("Cleared result store")

    # Queries

    @_reading
    def get_class_names(self) -> list[ClassName]:
        """Names of all stored classes, sorted."""
        return sorted(self._results_by_class)

    @_reading
    def get_passing_classes(self) -> list[ClassSummary]:
        """Summaries of classes without any failing test, in summary order."""
        summaries = [
            _summarize(name, tests) for name, tests in self._results_by_class.items()
        ]
        return sorted((s for s in summaries if not s.failing), key=ClassSummary.sort_key)

    @_reading
    def get_failing_classes(self) -> list[ClassSummary]:
        """Summaries of classes with at least one failing test, in summary order."""
        summaries = [
            _summarize(name, tests) for name, tests in self._results_by_class.items()
        ]
        return sorted((s for s in summaries if s.failing), key=ClassSummary.sort_key)

    @_reading
    def get_total_failure_count(self) -> int:
        """Count failed results by scanning every stored class.

        The failing index is deliberately not consulted.
        """
        return sum(
            1
            for tests in self._results_by_class.values()
            for result in tests.values()
            if result.outcome == TestOutcome.FAILED
        )

    @_reading
    def get_current_results(self) -> Mapping[ClassName, Mapping[TestId, TestResult]]:
        """Read-only snapshot of all stored results, grouped by class."""
        return MappingProxyType(
            {
                name: MappingProxyType(dict(tests))
                for name, tests in self._results_by_class.items()
            }
        )

    @_reading
    def get_new_failures(self, current_results: ResultBatch) -> list[TestResult]:
        """Stored failures that the given batch did not re-execute.

        A stored failure is excluded when ``current_results`` holds a result
        for the same class and test id, whatever that result's outcome. What
        remains are failures whose present status is unknown.

        Args:
            current_results: The latest execution batch.

        Returns:
            Failed results ordered by class name, then test id.

        Raises:
            InvalidArgumentError: If current_results is None.
        """
        if current_results is None:
            msg = "Current results must not be None"
            raise InvalidArgumentError(msg)
        if not isinstance(current_results, Mapping):
            msg = f"Current results must be a mapping, got {type(current_results).__name__}"
            raise InvalidArgumentError(msg)

        historic: list[TestResult] = []
        for name in sorted(self._results_by_class):
            rerun = current_results.get(name) or {}
            tests = self._results_by_class[name]
            for test_id in sorted(tests):
                result = tests[test_id]
                if result.outcome == TestOutcome.FAILED and test_id not in rerun:
                    historic.append(result)
        return historic

    get_historic_failures = get_new_failures

    @_reading
    def is_failing(self, test_id: TestId) -> bool:
        """Whether the test is in the failing index."""
        return test_id in self._failing

    @_reading
    def failing_ids(self) -> frozenset[TestId]:
        """Snapshot of the failing index."""
        return frozenset(self._failing)

    @_reading
    def verify_consistency(self) -> None:
        """Check the whole failing index against the stored results.

        Raises:
            ConsistencyViolationError: If the two disagree.
        """
        problem = self._find_inconsistency(self._failing | set(self._owners))
        if problem:
            raise ConsistencyViolationError(problem)

    # Internals

    def _index(self, test_id: TestId, result: TestResult) -> None:
        if result.outcome == TestOutcome.FAILED:
            self._failing.add(test_id)
        else:
            self._failing.discard(test_id)

    def _should_fail(self, test_id: TestId) -> bool | None:
        """Expected index membership; None when a lingering id is tolerated."""
        owner = self._owners.get(test_id)
        if owner is None:
            return False if self._config.prune_failing_on_remove else None
        return self._results_by_class[owner][test_id].outcome == TestOutcome.FAILED

    def _find_inconsistency(self, test_ids: Iterable[TestId]) -> str | None:
        missing: list[TestId] = []
        extra: list[TestId] = []
        for test_id in test_ids:
            expected = self._should_fail(test_id)
            if expected is None:
                continue
            indexed = test_id in self._failing
            if expected and not indexed:
                missing.append(test_id)
            elif indexed and not expected:
                extra.append(test_id)

        if missing:
            return f"Failed test(s) missing from failing index: {', '.join(sorted(missing))}"
        if extra:
            return f"Failing index holds non-failed test(s): {', '.join(sorted(extra))}"
        return None

    def _check_consistency(self, touched: Iterable[TestId]) -> None:
        """Post-mutation check of the ids a mutation touched.

        Caller holds the exclusive lock. Cost is proportional to the mutation,
        not to the store; ``verify_consistency`` checks everything.
        """
        mode = self._config.consistency_check
        if mode == ConsistencyMode.OFF:
            return

        touched = set(touched)
        problem = self._find_inconsistency(touched)
        if problem is None:
            return
        if mode == ConsistencyMode.STRICT:
            raise ConsistencyViolationError(problem)

        logger.warning("%s; rebuilding failing index", problem)
        for test_id in touched:
            expected = self._should_fail(test_id)
            if expected:
                self._failing.add(test_id)
            elif expected is not None:
                self._failing.discard(test_id)
