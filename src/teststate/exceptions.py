"""Custom exception hierarchy for teststate.

All exceptions inherit from TestStateError for easy catching at the top level.
Errors propagate to the caller immediately; the store never retries.
"""


class TestStateError(Exception):
    """Base exception for all teststate errors."""

    __test__ = False


class InvalidArgumentError(TestStateError, ValueError):
    """A store operation received malformed input. Store state is unchanged."""


class ConsistencyViolationError(TestStateError):
    """The failing index disagrees with the stored results."""


class ConfigurationError(TestStateError):
    """Configuration-related errors."""


class BatchParseError(TestStateError):
    """Failed to read or parse a result batch document."""


class BatchValidationError(BatchParseError):
    """Result batch document failed schema validation."""
