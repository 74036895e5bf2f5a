# src/storage/history_store.py

"""Single-slot JSON store for the latest price snapshot.

The document is git-tracked next to the README, so it is written with
sorted keys and a fixed indent to keep day-over-day diffs small::

    {
      "lastChecked": "2026-06-01T09:00:00+00:00",
      "previousPrices": [ ... ],
      "prices": [
        {
          "currency": "ZAR",
          "destination": "Athens",
          "price": "ZAR 10,560",
          "priceNumeric": 10560,
          "timestamp": "2026-06-01T09:00:00+00:00"
        }
      ]
    }
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from src.exceptions import CorruptHistory, PersistenceError
from src.models.flight_price import PriceRecord
from src.models.price_snapshot import PriceSnapshot
from src.storage.file_manager import FileManager

logger = logging.getLogger("flight_tracker.history")


# ── Serialisation ────────────────────────────────────────


def _record_to_dict(record: PriceRecord) -> dict[str, object]:
    return {
        "destination": record.destination,
        "price": record.display_price,
        "priceNumeric": record.amount,
        "currency": record.currency,
        "timestamp": record.observed_at.isoformat(),
    }


def snapshot_to_dict(snapshot: PriceSnapshot) -> dict[str, object]:
    """Convert a snapshot to the persisted JSON shape."""
    data: dict[str, object] = {
        "lastChecked": snapshot.checked_at.isoformat(),
        "prices": [_record_to_dict(r) for r in snapshot.current],
    }
    if snapshot.previous is not None:
        data["previousPrices"] = [
            _record_to_dict(r) for r in snapshot.previous
        ]
    return data


def dump_snapshot(snapshot: PriceSnapshot) -> str:
    """Serialise deterministically (sorted keys, trailing newline)."""
    return json.dumps(
        snapshot_to_dict(snapshot),
        ensure_ascii=False,
        indent=2,
        sort_keys=True,
    ) + "\n"


# ── Deserialisation ──────────────────────────────────────


class _ShapeError(ValueError):
    """Internal marker for a document that has the wrong shape."""


def _parse_timestamp(value: Any, field_name: str) -> datetime:
    if not isinstance(value, str):
        msg = f"'{field_name}' must be an ISO-8601 string"
        raise _ShapeError(msg)
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"'{field_name}' is not ISO-8601: {value!r}"
        raise _ShapeError(msg) from exc


def _record_from_dict(raw: Any, field_name: str, index: int) -> PriceRecord:
    label = f"{field_name}[{index}]"
    if not isinstance(raw, dict):
        msg = f"{label} is not an object"
        raise _ShapeError(msg)

    destination = raw.get("destination")
    currency = raw.get("currency")
    amount = raw.get("priceNumeric")

    if not isinstance(destination, str) or not destination:
        msg = f"{label} has no destination"
        raise _ShapeError(msg)
    if not isinstance(currency, str) or not currency:
        msg = f"{label} has no currency"
        raise _ShapeError(msg)
    if (
        isinstance(amount, bool)
        or not isinstance(amount, int)
        or amount < 0
    ):
        msg = f"{label} has invalid priceNumeric {amount!r}"
        raise _ShapeError(msg)

    return PriceRecord(
        destination=destination,
        amount=amount,
        currency=currency,
        observed_at=_parse_timestamp(
            raw.get("timestamp"), f"{label}.timestamp"
        ),
    )


def _records_from_list(raw: Any, field_name: str) -> tuple[PriceRecord, ...]:
    if not isinstance(raw, list):
        msg = f"'{field_name}' must be an array"
        raise _ShapeError(msg)
    return tuple(
        _record_from_dict(item, field_name, i) for i, item in enumerate(raw)
    )


def snapshot_from_dict(data: Any) -> PriceSnapshot:
    """Rebuild a snapshot from its persisted JSON shape.

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    if not isinstance(data, dict):
        msg = "top-level value must be an object"
        raise _ShapeError(msg)
    if "prices" not in data:
        msg = "missing 'prices'"
        raise _ShapeError(msg)

    previous_raw = data.get("previousPrices")
    return PriceSnapshot(
        checked_at=_parse_timestamp(data.get("lastChecked"), "lastChecked"),
        current=_records_from_list(data["prices"], "prices"),
        previous=(
            None
            if previous_raw is None
            else _records_from_list(previous_raw, "previousPrices")
        ),
    )


# ── Store ────────────────────────────────────────────────


class HistoryStore:
    """Durable single-slot persistence of the latest snapshot."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> PriceSnapshot | None:
        """Return the persisted snapshot, or ``None`` on the first run.

        Raises:
            CorruptHistory: If the file exists but cannot be read back.
        """
        if not self.path.exists():
            logger.info("No price history at %s (first run)", self.path)
            return None

        try:
            text = self.path.read_text(encoding="utf-8")
            snapshot = snapshot_from_dict(json.loads(text))
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError and _ShapeError are ValueErrors
            raise CorruptHistory(self.path, str(exc)) from exc

        logger.info(
            "Loaded price history from %s (%d prices, checked %s)",
            self.path,
            len(snapshot.current),
            snapshot.checked_at.isoformat(),
        )
        return snapshot

    def save(self, snapshot: PriceSnapshot) -> Path:
        """Atomically overwrite the persisted document with *snapshot*.

        Raises:
            PersistenceError: If the write fails.
        """
        FileManager.write_atomic(self.path, dump_snapshot(snapshot))
        logger.info(
            "Price history saved to %s (%d prices)",
            self.path,
            len(snapshot.current),
        )
        return self.path

    def read_raw(self) -> str | None:
        """Return the stored document verbatim, or ``None`` if absent.

        Raises:
            PersistenceError: If the file exists but cannot be read.
        """
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(self.path, str(exc)) from exc

    def restore_raw(self, text: str | None) -> None:
        """Put back a document captured by :meth:`read_raw`.

        ``None`` removes the file, returning to the first-run state.

        Raises:
            PersistenceError: If the file cannot be written or removed.
        """
        if text is not None:
            FileManager.write_atomic(self.path, text)
        else:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as exc:
                raise PersistenceError(self.path, str(exc)) from exc
        logger.warning("Price history at %s rolled back", self.path)
