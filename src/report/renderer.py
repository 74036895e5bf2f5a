# src/report/renderer.py

"""Turn a price snapshot into the Markdown README.

Rendering is a pure function of the snapshot and the configuration:
the same snapshot always renders byte-identical output, and the only
timestamp embedded is the snapshot's own ``checked_at``.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from string import Template

from src.config.settings import Settings, TrackerConfig
from src.exceptions import ReportPreconditionError
from src.models.flight_price import PriceRecord
from src.models.price_snapshot import PriceSnapshot

logger = logging.getLogger("flight_tracker.report")

CHEAPEST_MARKER = "⭐"


# ── Change classification ────────────────────────────────


class ChangeDirection(Enum):
    """How a destination's price moved since the previous run."""

    DECREASED = "decreased"
    INCREASED = "increased"
    UNCHANGED = "unchanged"
    UNKNOWN = "unknown"

    @property
    def glyph(self) -> str:
        """Markdown indicator; empty when there is no prior data."""
        return _GLYPHS[self]


_GLYPHS: dict[ChangeDirection, str] = {
    ChangeDirection.DECREASED: "📉",
    ChangeDirection.INCREASED: "📈",
    ChangeDirection.UNCHANGED: "➡️",
    ChangeDirection.UNKNOWN: "",
}


@dataclass(frozen=True)
class PriceChange:
    """Day-over-day movement for one record."""

    direction: ChangeDirection
    delta: int | None = None

    @property
    def delta_text(self) -> str:
        """Signed delta such as ``(-1,200)``; empty when zero or unknown."""
        if not self.delta:
            return ""
        return f"({self.delta:+,})"


def classify_change(
    record: PriceRecord, previous: Sequence[PriceRecord] | None,
) -> PriceChange:
    """Compare *record* with the first exact-name match in *previous*."""
    if previous is None:
        return PriceChange(ChangeDirection.UNKNOWN)

    prior = next(
        (p for p in previous if p.destination == record.destination),
        None,
    )
    if prior is None:
        return PriceChange(ChangeDirection.UNKNOWN)

    delta = record.amount - prior.amount
    if delta > 0:
        direction = ChangeDirection.INCREASED
    elif delta < 0:
        direction = ChangeDirection.DECREASED
    else:
        direction = ChangeDirection.UNCHANGED
    return PriceChange(direction, delta)


def classify_changes(
    current: Sequence[PriceRecord],
    previous: Sequence[PriceRecord] | None,
) -> list[PriceChange]:
    """Classify every record of *current*, aligned by position."""
    return [classify_change(record, previous) for record in current]


def find_cheapest(records: Sequence[PriceRecord]) -> int:
    """Index of the cheapest record; ties go to the first one seen.

    Raises:
        ReportPreconditionError: If *records* is empty.
    """
    if not records:
        raise ReportPreconditionError("Cannot pick the cheapest of no prices")
    cheapest = 0
    for index, record in enumerate(records):
        if record.amount < records[cheapest].amount:
            cheapest = index
    return cheapest


# ── Table ────────────────────────────────────────────────


@dataclass(frozen=True)
class ReportRow:
    """One rendered table row."""

    record: PriceRecord
    change: PriceChange
    is_cheapest: bool = False

    @property
    def change_cell(self) -> str:
        """Glyph, signed delta and cheapest marker, blanks skipped."""
        parts = [
            self.change.direction.glyph,
            self.change.delta_text,
            CHEAPEST_MARKER if self.is_cheapest else "",
        ]
        return " ".join(p for p in parts if p)

    def to_markdown(self) -> str:
        """Render as ``| Destination | Price | Change |``."""
        return (
            f"| {self.record.destination} "
            f"| {self.record.display_price} "
            f"| {self.change_cell} |"
        )


def build_rows(snapshot: PriceSnapshot) -> list[ReportRow]:
    """Classify, mark the cheapest, and sort ascending by price.

    The sort is stable, so equal prices keep their parse order.

    Raises:
        ReportPreconditionError: If the snapshot has no current prices.
    """
    if not snapshot.current:
        raise ReportPreconditionError(
            "Snapshot has no current prices; refusing to render an empty table"
        )

    changes = classify_changes(snapshot.current, snapshot.previous)
    cheapest = find_cheapest(snapshot.current)
    rows = [
        ReportRow(record, change, index == cheapest)
        for index, (record, change) in enumerate(
            zip(snapshot.current, changes, strict=True)
        )
    ]
    return sorted(rows, key=lambda row: row.record.amount)


def render_price_table(rows: Sequence[ReportRow]) -> str:
    """Render the Markdown price table, header included."""
    lines = [
        "| Destination | Price | Change |",
        "|-------------|-------|--------|",
    ]
    lines.extend(row.to_markdown() for row in rows)
    return "\n".join(lines)


def format_checked_at(moment: datetime) -> str:
    """Format as e.g. ``Sunday, June 7, 2026 at 9:05 AM UTC``.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return (
        f"{moment:%A, %B} {moment.day}, {moment.year} "
        f"at {hour}:{moment:%M} {meridiem} UTC"
    )


# ── README ───────────────────────────────────────────────


def load_template(path: Path | None = None) -> Template:
    """Read the README template (``$placeholder`` syntax)."""
    template_path = path or Settings.README_TEMPLATE_PATH
    return Template(template_path.read_text(encoding="utf-8"))


class ReportRenderer:
    """Render snapshots into the README for one configuration."""

    def __init__(
        self, config: TrackerConfig, template: Template | None = None,
    ) -> None:
        self.config = config
        self.template = template or load_template()

    def render(self, snapshot: PriceSnapshot) -> str:
        """Return the complete README for *snapshot*.

        Raises:
            ReportPreconditionError: If the snapshot has no current prices.
        """
        rows = build_rows(snapshot)
        checked_at = snapshot.checked_at
        if checked_at.tzinfo is None:
            checked_at = checked_at.replace(tzinfo=UTC)

        content = self.template.substitute(
            destination_count=len(self.config.destinations),
            origin=self.config.origin,
            region=self.config.region,
            route=self.config.route,
            travel_dates=self.config.travel_dates,
            last_checked=format_checked_at(checked_at),
            price_table=render_price_table(rows),
            updated_at=checked_at.astimezone(UTC).isoformat(),
        )
        logger.debug(
            "Rendered README with %d rows (cheapest: %s)",
            len(rows),
            next(r.record.destination for r in rows if r.is_cheapest),
        )
        return content
