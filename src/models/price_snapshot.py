# src/models/price_snapshot.py

"""Per-run price snapshot model for price history tracking."""

from dataclasses import dataclass
from datetime import datetime

from src.models.flight_price import PriceRecord


@dataclass(frozen=True)
class PriceSnapshot:
    """One run's prices plus the previous run's prices.

    ``current`` keeps parse order.  ``previous`` is the prior run's
    ``current`` carried forward verbatim, or ``None`` on the first run.
    """

    checked_at: datetime
    current: tuple[PriceRecord, ...]
    previous: tuple[PriceRecord, ...] | None = None
