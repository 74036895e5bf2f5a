# src/parsers/result_parser.py

"""Best-effort extraction of flight prices from the agent's report.

The agent is only asked (via its prompt) to answer with lines such as
``Athens: ZAR 10,560``; nothing enforces that shape.  Parsing is
therefore a chain of strategies tried in order until one yields at
least one record:

1. :class:`LabelledPriceStrategy`: ``<word>: <CUR> <digits>``.
2. :class:`PlausibleNumberStrategy`: ``<word>`` followed later on the
   same line by a number, with an assumed default currency and a
   plausibility bound that discards anything that cannot be a fare.

Nothing here raises on malformed input: fragments that do not match
simply contribute no record.
"""

import logging
import re
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

from src.config.settings import Settings, TrackerConfig
from src.models.flight_price import PriceRecord

logger = logging.getLogger("flight_tracker.parser")


# ── Patterns ─────────────────────────────────────────────

_LABELLED_PRICE_RE = re.compile(
    r"""
    (\w+)           # 1: destination token
    :\s*
    ([A-Z]{3})      # 2: three-letter currency code
    \s*
    (\d[\d,]*)      # 3: amount, optional thousands separators
    """,
    re.VERBOSE,
)

_LOOSE_PRICE_RE = re.compile(
    r"""
    ([^\W\d_]\w*)   # 1: destination token (starts with a letter)
    [:\t ]+
    [^\n]*?         # anything on the same line
    (\d[\d,]*)      # 2: first number after it
    """,
    re.VERBOSE,
)


def _to_amount(digits: str) -> int | None:
    """Strip grouping separators; ``None`` when no integer remains."""
    stripped = digits.replace(",", "")
    if not stripped.isdigit():
        return None
    return int(stripped)


# ── Strategies ───────────────────────────────────────────


class ParseStrategy(Protocol):
    """A single parse attempt over the whole report."""

    name: str

    def parse(
        self, message: str, observed_at: datetime,
    ) -> list[PriceRecord] | None:
        """Return the extracted records, or ``None`` if nothing matched."""
        ...


class LabelledPriceStrategy:
    """Match ``Destination: CUR 1,234`` segments in order of appearance.

    Repeated destinations are kept as separate records.
    """

    name = "labelled"

    def parse(
        self, message: str, observed_at: datetime,
    ) -> list[PriceRecord] | None:
        records: list[PriceRecord] = []
        for match in _LABELLED_PRICE_RE.finditer(message):
            amount = _to_amount(match.group(3))
            if amount is None:
                continue
            records.append(
                PriceRecord(
                    destination=match.group(1),
                    amount=amount,
                    currency=match.group(2),
                    observed_at=observed_at,
                )
            )
        return records or None


class PlausibleNumberStrategy:
    """Pair a word with the next number on its line, within a bound."""

    name = "plausible-number"

    def __init__(
        self,
        currency: str = Settings.DEFAULT_CURRENCY,
        min_price: int = Settings.MIN_PLAUSIBLE_PRICE,
        max_price: int = Settings.MAX_PLAUSIBLE_PRICE,
    ) -> None:
        self.currency = currency
        self.min_price = min_price
        self.max_price = max_price

    def parse(
        self, message: str, observed_at: datetime,
    ) -> list[PriceRecord] | None:
        records: list[PriceRecord] = []
        for match in _LOOSE_PRICE_RE.finditer(message):
            amount = _to_amount(match.group(2))
            if amount is None:
                continue
            if not self.min_price <= amount <= self.max_price:
                logger.debug(
                    "Discarded implausible amount %d for '%s'",
                    amount,
                    match.group(1),
                )
                continue
            records.append(
                PriceRecord(
                    destination=match.group(1),
                    amount=amount,
                    currency=self.currency,
                    observed_at=observed_at,
                )
            )
        return records or None


# ── Parser ───────────────────────────────────────────────


class ResultParser:
    """Run parse strategies in order until one yields records."""

    def __init__(self, strategies: Sequence[ParseStrategy]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def from_config(cls, config: TrackerConfig) -> "ResultParser":
        """Build the standard two-tier parser for *config*."""
        return cls([
            LabelledPriceStrategy(),
            PlausibleNumberStrategy(
                currency=config.default_currency,
                min_price=config.min_plausible_price,
                max_price=config.max_plausible_price,
            ),
        ])

    @classmethod
    def default(cls) -> "ResultParser":
        """Two-tier parser with the built-in defaults."""
        return cls([LabelledPriceStrategy(), PlausibleNumberStrategy()])

    def parse(
        self, message: str, observed_at: datetime | None = None,
    ) -> list[PriceRecord]:
        """Extract price records from *message*.

        All records of one call share *observed_at* (now, UTC, when
        omitted).  An empty list is a valid outcome.
        """
        stamp = observed_at or datetime.now(UTC)
        for index, strategy in enumerate(self.strategies):
            if index > 0:
                logger.warning(
                    "Could not parse prices with previous strategy; "
                    "falling back to '%s'",
                    strategy.name,
                )
            records = strategy.parse(message, stamp)
            if records:
                logger.info(
                    "Parsed %d price(s) with '%s' strategy",
                    len(records),
                    strategy.name,
                )
                return records
        logger.warning("No prices found in agent report")
        return []


def parse_agent_result(
    message: str, observed_at: datetime | None = None,
) -> list[PriceRecord]:
    """Parse *message* with the default two-tier parser."""
    return ResultParser.default().parse(message, observed_at)
