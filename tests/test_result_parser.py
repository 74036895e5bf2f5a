# tests/test_result_parser.py

"""Tests for parsing the agent's free-text price report."""

import unittest
from datetime import UTC, datetime

from src.config.settings import TrackerConfig
from src.parsers.result_parser import (
    LabelledPriceStrategy,
    PlausibleNumberStrategy,
    ResultParser,
    parse_agent_result,
)

_NOW = datetime(2026, 6, 1, 9, 0, tzinfo=UTC)

REPORT = (
    "RESULTS:\n"
    "Athens: ZAR 10,560\n"
    "Santorini: ZAR 14,302\n"
    "Mykonos: ZAR 9,299\n"
    "Heraklion: ZAR 12,012"
)


class TestLabelledParsing(unittest.TestCase):
    """Primary ``Destination: CUR 1,234`` pass."""

    def test_standard_report(self) -> None:
        """The requested RESULTS block yields four records in order."""
        records = parse_agent_result(REPORT, _NOW)
        self.assertEqual(
            [r.destination for r in records],
            ["Athens", "Santorini", "Mykonos", "Heraklion"],
        )
        self.assertEqual(
            [r.amount for r in records], [10560, 14302, 9299, 12012]
        )
        self.assertTrue(all(r.currency == "ZAR" for r in records))

    def test_batch_shares_timestamp(self) -> None:
        """Every record of one parse carries the same observed_at."""
        records = parse_agent_result(REPORT, _NOW)
        self.assertEqual({r.observed_at for r in records}, {_NOW})

    def test_default_timestamp_is_utc_now(self) -> None:
        """Without observed_at, records get one aware UTC timestamp."""
        records = parse_agent_result(REPORT)
        stamps = {r.observed_at for r in records}
        self.assertEqual(len(stamps), 1)
        self.assertEqual(stamps.pop().utcoffset().total_seconds(), 0)

    def test_inline_segments_and_mixed_currencies(self) -> None:
        """Segments may share a line and use different codes."""
        records = parse_agent_result(
            "Cheapest found - Athens: EUR 1,234, Rhodes: USD 987.", _NOW
        )
        self.assertEqual(len(records), 2)
        self.assertEqual(records[0].destination, "Athens")
        self.assertEqual(records[0].currency, "EUR")
        self.assertEqual(records[0].amount, 1234)
        self.assertEqual(records[1].destination, "Rhodes")
        self.assertEqual(records[1].currency, "USD")
        self.assertEqual(records[1].amount, 987)

    def test_no_space_between_code_and_amount(self) -> None:
        """``ZAR10,560`` still parses."""
        records = parse_agent_result("Athens: ZAR10,560", _NOW)
        self.assertEqual(records[0].amount, 10560)

    def test_trailing_separator_stripped(self) -> None:
        """A comma after the number does not break parsing."""
        records = parse_agent_result("Athens: ZAR 9,299, then", _NOW)
        self.assertEqual(records[0].amount, 9299)

    def test_duplicates_are_kept(self) -> None:
        """Repeated destinations produce repeated records."""
        records = parse_agent_result(
            "Athens: ZAR 10,000\nAthens: ZAR 9,000", _NOW
        )
        self.assertEqual([r.amount for r in records], [10000, 9000])

    def test_primary_takes_precedence(self) -> None:
        """Loose numbers are ignored when the labelled pass matches."""
        records = parse_agent_result(
            "Athens: ZAR 10,560\nSantorini about 14,302", _NOW
        )
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].destination, "Athens")

    def test_labelled_strategy_returns_none_when_unmatched(self) -> None:
        """A strategy signals 'nothing found' with None."""
        self.assertIsNone(
            LabelledPriceStrategy().parse("no prices here", _NOW)
        )


class TestFallbackParsing(unittest.TestCase):
    """Loose pass with default currency and plausibility bound."""

    def test_plausible_amounts_only(self) -> None:
        """Out-of-range numbers are dropped silently."""
        records = parse_agent_result(
            "Athens about 9,299\n"
            "Santorini around 60,000\n"
            "Mykonos 4,000",
            _NOW,
        )
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].destination, "Athens")
        self.assertEqual(records[0].amount, 9299)
        self.assertEqual(records[0].currency, "ZAR")

    def test_bounds_are_inclusive(self) -> None:
        """Both ends of the bound are accepted."""
        records = parse_agent_result(
            "Athens 5000\nRhodes 50000\nCorfu 4999\nKos 50001", _NOW
        )
        self.assertEqual(
            [(r.destination, r.amount) for r in records],
            [("Athens", 5000), ("Rhodes", 50000)],
        )

    def test_lowercase_currency_falls_back(self) -> None:
        """A code the primary pass rejects is recovered by the fallback."""
        records = parse_agent_result("Athens: zar 9,299", _NOW)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].destination, "Athens")
        self.assertEqual(records[0].currency, "ZAR")

    def test_header_line_not_paired_across_newline(self) -> None:
        """A heading does not steal the number on the next line."""
        records = parse_agent_result("RESULTS:\nAthens 9,299", _NOW)
        self.assertEqual(
            [(r.destination, r.amount) for r in records],
            [("Athens", 9299)],
        )

    def test_configured_currency_and_bounds(self) -> None:
        """from_config wires currency and bound into the fallback."""
        config = TrackerConfig.from_env({
            "DEFAULT_CURRENCY": "eur",
            "MIN_PLAUSIBLE_PRICE": "100",
            "MAX_PLAUSIBLE_PRICE": "2000",
        })
        parser = ResultParser.from_config(config)
        records = parser.parse("Athens 450\nRhodes 9,000", _NOW)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].currency, "EUR")
        self.assertEqual(records[0].amount, 450)

    def test_fallback_strategy_direct(self) -> None:
        """PlausibleNumberStrategy honours its own bound."""
        strategy = PlausibleNumberStrategy("GBP", 10, 20)
        records = strategy.parse("Athens 15 and Rhodes 25", _NOW)
        self.assertIsNotNone(records)
        assert records is not None
        self.assertEqual([r.destination for r in records], ["Athens"])


class TestParserEdgeCases(unittest.TestCase):
    """Malformed and empty input never raises."""

    def test_empty_message(self) -> None:
        """An empty report yields no records."""
        self.assertEqual(parse_agent_result("", _NOW), [])

    def test_prose_without_numbers(self) -> None:
        """Text without digits yields no records."""
        self.assertEqual(
            parse_agent_result("I could not load Google Flights.", _NOW),
            [],
        )

    def test_separator_only_amount(self) -> None:
        """A bare comma is never treated as an amount."""
        self.assertEqual(parse_agent_result("Athens: ZAR ,,,", _NOW), [])

    def test_empty_strategy_chain(self) -> None:
        """A parser without strategies returns an empty list."""
        self.assertEqual(ResultParser([]).parse(REPORT, _NOW), [])

    def test_fallback_logs_warning(self) -> None:
        """Falling back to the loose pass is logged."""
        with self.assertLogs("flight_tracker.parser", level="WARNING") as cm:
            parse_agent_result("Athens about 9,299", _NOW)
        self.assertTrue(
            any("plausible-number" in line for line in cm.output)
        )


if __name__ == "__main__":
    unittest.main()
