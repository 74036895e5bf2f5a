# tests/test_price_tracker.py

"""Tests for the PriceTracker check pipeline."""

import json
import tempfile
import unittest
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from src.config.settings import TrackerConfig
from src.exceptions import (
    AgentSessionError,
    CorruptHistory,
    ParseYieldedNothing,
    PersistenceError,
    ReportPreconditionError,
)
from src.models.agent_result import AgentFailure, AgentSuccess
from src.models.flight_price import PriceRecord
from src.models.price_snapshot import PriceSnapshot
from src.services.price_tracker import PriceTracker, build_snapshot

FIRST_REPORT = "RESULTS:\nAthens: ZAR 10,560\nMykonos: ZAR 9,299"
SECOND_REPORT = "RESULTS:\nAthens: ZAR 9,800\nMykonos: ZAR 9,299"

T0 = datetime(2026, 3, 1, 6, 0, tzinfo=UTC)


def _rec(dest: str, amount: int) -> PriceRecord:
    return PriceRecord(dest, amount, "ZAR", T0)


def _invoker(*outcomes) -> MagicMock:
    """Fake AgentInvoker returning *outcomes* in order."""
    invoker = MagicMock()
    invoker.run = AsyncMock(side_effect=list(outcomes))
    return invoker


class _TrackerTestCase(unittest.IsolatedAsyncioTestCase):
    """Temp directory with history and README paths."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.history_path = root / "price-history.json"
        self.readme_path = root / "README.md"
        self.config = TrackerConfig.from_env({}).with_overrides(
            history_path=self.history_path,
            readme_path=self.readme_path,
        )

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _tracker(self, invoker: MagicMock) -> PriceTracker:
        return PriceTracker(self.config, invoker=invoker)


class TestCheck(_TrackerTestCase):
    """PriceTracker.check end to end with a fake agent."""

    async def test_first_run_writes_both_files(self) -> None:
        """No prior history: previous is None and both files appear."""
        tracker = self._tracker(
            _invoker(AgentSuccess(message=FIRST_REPORT, steps=7))
        )

        result = await tracker.check()

        self.assertEqual(result.agent_steps, 7)
        self.assertIsNone(result.snapshot.previous)
        self.assertEqual(
            [r.destination for r in result.snapshot.current],
            ["Athens", "Mykonos"],
        )
        self.assertEqual(result.history_path, self.history_path)
        self.assertEqual(result.readme_path, self.readme_path)

        data = json.loads(self.history_path.read_text(encoding="utf-8"))
        self.assertNotIn("previousPrices", data)
        self.assertEqual(data["prices"][0]["priceNumeric"], 10560)

        readme = self.readme_path.read_text(encoding="utf-8")
        self.assertIn("| Mykonos | ZAR 9,299 | ⭐ |", readme)
        self.assertIn("| Athens | ZAR 10,560 |  |", readme)

    async def test_second_run_carries_previous_forward(self) -> None:
        """The prior run's current list becomes previous, one level deep."""
        tracker = self._tracker(_invoker(
            AgentSuccess(message=FIRST_REPORT, steps=5),
            AgentSuccess(message=SECOND_REPORT, steps=6),
        ))

        first = await tracker.check()
        second = await tracker.check()

        assert second.snapshot.previous is not None
        self.assertEqual(
            [(r.destination, r.amount) for r in second.snapshot.previous],
            [(r.destination, r.amount) for r in first.snapshot.current],
        )

        data = json.loads(self.history_path.read_text(encoding="utf-8"))
        self.assertEqual(
            [p["priceNumeric"] for p in data["previousPrices"]], [10560, 9299]
        )

        readme = self.readme_path.read_text(encoding="utf-8")
        self.assertIn("| Mykonos | ZAR 9,299 | ➡️ ⭐ |", readme)
        self.assertIn("| Athens | ZAR 9,800 | 📉 (-760) |", readme)

    async def test_agent_failure_writes_nothing(self) -> None:
        """A failed agent run raises and leaves no files behind."""
        tracker = self._tracker(_invoker(AgentFailure("agent timed out")))

        with self.assertRaises(AgentSessionError) as ctx:
            await tracker.check()

        self.assertIn("timed out", str(ctx.exception))
        self.assertFalse(self.history_path.exists())
        self.assertFalse(self.readme_path.exists())

    async def test_unparseable_report_writes_nothing(self) -> None:
        """A report with no prices keeps the raw text and writes nothing."""
        tracker = self._tracker(
            _invoker(AgentSuccess(message="Sorry, no flights found."))
        )

        with self.assertRaises(ParseYieldedNothing) as ctx:
            await tracker.check()

        self.assertEqual(ctx.exception.raw_message, "Sorry, no flights found.")
        self.assertFalse(self.history_path.exists())
        self.assertFalse(self.readme_path.exists())

    async def test_empty_report_writes_nothing(self) -> None:
        """An empty final message is fatal for the run."""
        tracker = self._tracker(_invoker(AgentSuccess(message="")))

        with self.assertRaises(ParseYieldedNothing):
            await tracker.check()

        self.assertFalse(self.history_path.exists())
        self.assertFalse(self.readme_path.exists())

    async def test_failed_run_keeps_existing_history(self) -> None:
        """A later failure does not touch the last good history."""
        tracker = self._tracker(_invoker(
            AgentSuccess(message=FIRST_REPORT),
            AgentFailure("agent run failed: boom"),
        ))
        await tracker.check()
        before = self.history_path.read_text(encoding="utf-8")

        with self.assertRaises(AgentSessionError):
            await tracker.check()

        self.assertEqual(self.history_path.read_text(encoding="utf-8"), before)

    async def test_readme_write_failure_rolls_back_history(self) -> None:
        """History stays on the last good run when the README cannot be written."""
        tracker = self._tracker(_invoker(
            AgentSuccess(message=FIRST_REPORT),
            AgentSuccess(message=SECOND_REPORT),
        ))
        await tracker.check()
        before = self.history_path.read_text(encoding="utf-8")
        self.readme_path.unlink()
        self.readme_path.mkdir()

        with self.assertRaises(PersistenceError):
            await tracker.check()

        self.assertEqual(self.history_path.read_text(encoding="utf-8"), before)
        leftovers = [
            p.name for p in self.history_path.parent.iterdir()
            if p.name.endswith(".tmp")
        ]
        self.assertEqual(leftovers, [])

    async def test_readme_write_failure_on_first_run(self) -> None:
        """With no earlier history, a failed README write leaves no history."""
        self.readme_path.mkdir()
        tracker = self._tracker(_invoker(AgentSuccess(message=FIRST_REPORT)))

        with self.assertRaises(PersistenceError):
            await tracker.check()

        self.assertFalse(self.history_path.exists())

    async def test_corrupt_history_aborts_before_agent(self) -> None:
        """Unreadable history fails fast without spending an agent run."""
        self.history_path.write_text("{not json", encoding="utf-8")
        invoker = _invoker(AgentSuccess(message=FIRST_REPORT))

        with self.assertRaises(CorruptHistory):
            await self._tracker(invoker).check()

        invoker.run.assert_not_awaited()
        self.assertFalse(self.readme_path.exists())


class TestRerender(_TrackerTestCase):
    """README regeneration from stored history."""

    async def test_rerender_matches_check_output(self) -> None:
        """Re-rendering stored history reproduces the same README."""
        tracker = self._tracker(_invoker(AgentSuccess(message=FIRST_REPORT)))
        await tracker.check()
        original = self.readme_path.read_text(encoding="utf-8")
        self.readme_path.unlink()

        result = tracker.rerender()

        self.assertIsNone(result.history_path)
        self.assertEqual(
            self.readme_path.read_text(encoding="utf-8"), original
        )

    def test_rerender_without_history(self) -> None:
        """Nothing stored yet means nothing to render."""
        tracker = self._tracker(_invoker())

        with self.assertRaises(ReportPreconditionError):
            tracker.rerender()

        self.assertFalse(self.readme_path.exists())


class TestPublish(_TrackerTestCase):
    """Publishing a snapshot."""

    def test_empty_snapshot_writes_nothing(self) -> None:
        """Rendering is checked before either file is written."""
        tracker = self._tracker(_invoker())
        empty = PriceSnapshot(checked_at=T0, current=())

        with self.assertRaises(ReportPreconditionError):
            tracker.publish(empty)

        self.assertFalse(self.history_path.exists())
        self.assertFalse(self.readme_path.exists())


class TestBuildSnapshot(unittest.TestCase):
    """Snapshot assembly."""

    def test_first_run(self) -> None:
        snapshot = build_snapshot([_rec("Athens", 10_560)], None, T0)
        self.assertIsNone(snapshot.previous)
        self.assertEqual(snapshot.checked_at, T0)

    def test_previous_is_one_level_deep(self) -> None:
        """The prior snapshot's own previous list is dropped."""
        prior = PriceSnapshot(
            checked_at=T0,
            current=(_rec("Athens", 11_000),),
            previous=(_rec("Athens", 12_000),),
        )

        snapshot = build_snapshot([_rec("Athens", 10_560)], prior, T0)

        self.assertEqual(snapshot.previous, prior.current)
        self.assertEqual(snapshot.current, (_rec("Athens", 10_560),))


if __name__ == "__main__":
    unittest.main()
