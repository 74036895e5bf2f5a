# src/services/price_tracker.py

"""Orchestrates one flight price check from agent run to README."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from src.config.settings import TrackerConfig
from src.exceptions import (
    AgentSessionError,
    ParseYieldedNothing,
    PersistenceError,
    ReportPreconditionError,
)
from src.models.agent_result import AgentFailure
from src.models.flight_price import PriceRecord
from src.models.price_snapshot import PriceSnapshot
from src.parsers.result_parser import ResultParser
from src.report.renderer import ReportRenderer
from src.services.agent_invoker import AgentInvoker
from src.storage.file_manager import FileManager
from src.storage.history_store import HistoryStore

logger = logging.getLogger("flight_tracker.tracker")


@dataclass
class CheckResult:
    """Outcome of a completed check or re-render."""

    snapshot: PriceSnapshot
    history_path: Path | None
    readme_path: Path
    agent_steps: int = 0


def build_snapshot(
    records: list[PriceRecord],
    previous: PriceSnapshot | None,
    checked_at: datetime,
) -> PriceSnapshot:
    """Combine fresh records with the prior run's ``current`` list.

    The prior snapshot's own ``previous`` is dropped (depth 1).
    """
    return PriceSnapshot(
        checked_at=checked_at,
        current=tuple(records),
        previous=previous.current if previous is not None else None,
    )


class PriceTracker:
    """Coordinates the agent, parser, history store, and renderer."""

    def __init__(
        self,
        config: TrackerConfig,
        invoker: AgentInvoker | None = None,
        store: HistoryStore | None = None,
        parser: ResultParser | None = None,
        renderer: ReportRenderer | None = None,
    ) -> None:
        self.config = config
        self.invoker = invoker or AgentInvoker(config)
        self.store = store or HistoryStore(config.history_path)
        self.parser = parser or ResultParser.from_config(config)
        self.renderer = renderer or ReportRenderer(config)

    # ── Steps ────────────────────────────────────────────

    def snapshot_from_report(
        self,
        message: str,
        previous: PriceSnapshot | None,
        checked_at: datetime | None = None,
    ) -> PriceSnapshot:
        """Parse the agent report into a new snapshot.

        Raises:
            ParseYieldedNothing: If the report contains no prices.
        """
        stamp = checked_at or datetime.now(UTC)
        records = self.parser.parse(message, observed_at=stamp)
        if not records:
            raise ParseYieldedNothing(message)
        return build_snapshot(records, previous, stamp)

    def publish(self, snapshot: PriceSnapshot) -> CheckResult:
        """Render, then persist history and README.

        Rendering happens first so a precondition failure writes nothing.
        If the README write fails the history file is rolled back, so
        both documents stay on the same run.

        Raises:
            ReportPreconditionError: If the snapshot has no current prices.
            PersistenceError: If either document cannot be written.
        """
        content = self.renderer.render(snapshot)
        prior_history = self.store.read_raw()
        history_path = self.store.save(snapshot)
        try:
            readme_path = FileManager.write_readme(
                self.config.readme_path, content
            )
        except PersistenceError:
            try:
                self.store.restore_raw(prior_history)
            except PersistenceError as exc:
                logger.error("Could not roll back price history: %s", exc)
            raise
        return CheckResult(
            snapshot=snapshot,
            history_path=history_path,
            readme_path=readme_path,
        )

    # ── Entry points ─────────────────────────────────────

    async def check(self) -> CheckResult:
        """Run the full check.

        History is loaded before the agent runs so a corrupt document
        aborts the run before any browser time is spent.

        Raises:
            CorruptHistory: Persisted history is unreadable.
            AgentSessionError: The agent run failed.
            ParseYieldedNothing: The report held no prices.
            PersistenceError: History or README could not be written.
        """
        previous = self.store.load()

        outcome = await self.invoker.run()
        if isinstance(outcome, AgentFailure):
            raise AgentSessionError(outcome.reason)

        snapshot = self.snapshot_from_report(outcome.message, previous)
        for record in snapshot.current:
            logger.info(
                "Found price %s: %s", record.destination, record.display_price
            )

        result = self.publish(snapshot)
        result.agent_steps = outcome.steps
        return result

    def rerender(self) -> CheckResult:
        """Re-render the README from persisted history only.

        Raises:
            ReportPreconditionError: If there is no stored history.
        """
        snapshot = self.store.load()
        if snapshot is None:
            raise ReportPreconditionError(
                f"No price history at {self.store.path}; run a check first"
            )
        content = self.renderer.render(snapshot)
        readme_path = FileManager.write_readme(
            self.config.readme_path, content
        )
        return CheckResult(
            snapshot=snapshot, history_path=None, readme_path=readme_path,
        )
