# src/models/flight_price.py

"""Flight price record model for inter-module data flow."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PriceRecord:
    """One observed price for one destination at one point in time.

    ``amount`` is the price in the currency's display unit with grouping
    separators removed (``"ZAR 10,560"`` → ``10560``).
    """

    destination: str
    amount: int
    currency: str
    observed_at: datetime

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            msg = f"amount must be an int, got {self.amount!r}"
            raise TypeError(msg)
        if self.amount < 0:
            msg = f"amount must be non-negative, got {self.amount}"
            raise ValueError(msg)

    @property
    def display_price(self) -> str:
        """Price formatted as ``"<currency> <amount>"`` with separators."""
        return f"{self.currency} {self.amount:,}"
