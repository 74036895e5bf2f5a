# src/exceptions.py

"""Exception hierarchy for the flight tracker.

Every fatal condition of a run derives from :class:`FlightTrackerError`
so the CLI runner can report it with a single ``except`` clause.

Exception Hierarchy:
    FlightTrackerError (base)
    ├── ConfigurationError - invalid environment / CLI configuration
    ├── AgentSessionError - browser session or agent call failed
    ├── ParseYieldedNothing - agent report contained no prices
    ├── CorruptHistory - persisted history exists but is malformed
    ├── PersistenceError - history or README write failed
    ├── ReportPreconditionError - nothing to render
    └── CleanupError - session teardown failed (logged, never raised)
"""

from pathlib import Path


class FlightTrackerError(Exception):
    """Base exception for all flight tracker errors."""


class ConfigurationError(FlightTrackerError):
    """Raised when configuration values are missing or invalid."""


class AgentSessionError(FlightTrackerError):
    """Raised when the browser session or the agent run fails.

    Not retried; the scheduler owns retries.
    """


class ParseYieldedNothing(FlightTrackerError):
    """Raised when the agent report yields zero price records.

    The raw report is kept on the exception for diagnosis.
    """

    def __init__(self, raw_message: str) -> None:
        self.raw_message = raw_message
        preview = raw_message.strip()[:200] or "<empty>"
        super().__init__(
            f"No prices could be parsed from the agent report: {preview}"
        )


class CorruptHistory(FlightTrackerError):
    """Raised when the history document cannot be deserialised."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt price history at {path}: {reason}")


class PersistenceError(FlightTrackerError):
    """Raised when writing the history or the README fails."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class ReportPreconditionError(FlightTrackerError):
    """Raised when a report is requested for a snapshot with no prices."""


class CleanupError(FlightTrackerError):
    """Session teardown failure.

    Only ever logged; a teardown problem must not mask the run result.
    """
