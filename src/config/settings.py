# src/config/settings.py

"""Central configuration for the flight tracker."""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from src.exceptions import ConfigurationError

load_dotenv()

_CURRENCY_CODE_RE = re.compile(r"[A-Z]{3}")


class Settings:
    """Default values for every configurable knob."""

    # --- Route ---
    ORIGIN: str = "Johannesburg"
    DESTINATIONS: tuple[str, ...] = (
        "Athens",
        "Santorini",
        "Mykonos",
        "Heraklion",
    )
    REGION: str = "Greek Islands"
    DEPART_DATE: date = date(2026, 6, 7)
    RETURN_DATE: date = date(2026, 6, 14)

    # --- Agent ---
    START_URL: str = "https://www.google.com/travel/flights"
    MAX_STEPS: int = 60                 # Upper bound on agent actions
    AGENT_TIMEOUT: float = 900.0        # Wall-clock seconds for one run
    OPENAI_MODEL: str = "gpt-4o"
    GOOGLE_MODEL: str = "gemini-2.5-flash"

    # --- Parsing ---
    DEFAULT_CURRENCY: str = "ZAR"
    MIN_PLAUSIBLE_PRICE: int = 5_000    # Fallback parse lower bound
    MAX_PLAUSIBLE_PRICE: int = 50_000   # Fallback parse upper bound

    # --- Paths ---
    # Outputs are relative to the working directory, not the install
    HISTORY_PATH: Path = Path("price-history.json")
    README_PATH: Path = Path("README.md")
    LOGS_DIR: Path = Path("logs")
    # Packaged alongside this module
    CONFIG_DIR: Path = Path(__file__).resolve().parent
    README_TEMPLATE_PATH: Path = CONFIG_DIR / "readme_template.md"


# ── Environment parsing helpers ──────────────────────────


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip().replace(",", "").replace("_", ""))
    except ValueError as exc:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ConfigurationError(msg) from exc


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{key} must be a number, got {raw!r}"
        raise ConfigurationError(msg) from exc


def _get_date(env: Mapping[str, str], key: str, default: date) -> date:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        msg = f"{key} must be an ISO date (YYYY-MM-DD), got {raw!r}"
        raise ConfigurationError(msg) from exc


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("true", "1", "yes")


def _get_str(env: Mapping[str, str], key: str, default: str) -> str:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _get_secret(env: Mapping[str, str], key: str) -> str | None:
    raw = env.get(key)
    return raw.strip() if raw and raw.strip() else None


def format_travel_dates(depart: date, ret: date) -> str:
    """Render a compact human label for a departure/return pair.

    ``June 7-14, 2026`` within one month, ``June 28 - July 5, 2026``
    across months, and both years spelled out across years.
    """
    if depart.year != ret.year:
        return (
            f"{depart:%B} {depart.day}, {depart.year} - "
            f"{ret:%B} {ret.day}, {ret.year}"
        )
    if depart.month != ret.month:
        return (
            f"{depart:%B} {depart.day} - {ret:%B} {ret.day}, {ret.year}"
        )
    return f"{depart:%B} {depart.day}-{ret.day}, {ret.year}"


# ── Per-run configuration ────────────────────────────────


@dataclass(frozen=True)
class TrackerConfig:
    """Immutable configuration built once at process start."""

    origin: str
    destinations: tuple[str, ...]
    region: str
    depart_date: date
    return_date: date
    max_steps: int
    agent_timeout: float
    history_path: Path
    readme_path: Path
    default_currency: str
    min_plausible_price: int
    max_plausible_price: int
    start_url: str = Settings.START_URL
    agent_model: str | None = None
    kernel_api_key: str | None = None
    openai_api_key: str | None = None
    google_api_key: str | None = None
    headless: bool = True

    def __post_init__(self) -> None:
        if not self.destinations:
            raise ConfigurationError("At least one destination is required")
        if self.return_date < self.depart_date:
            raise ConfigurationError(
                "Return date must not be before the departure date"
            )
        if self.max_steps < 1:
            raise ConfigurationError("Agent step budget must be >= 1")
        if self.agent_timeout <= 0:
            raise ConfigurationError("Agent timeout must be positive")
        if self.min_plausible_price > self.max_plausible_price:
            raise ConfigurationError(
                "MIN_PLAUSIBLE_PRICE must not exceed MAX_PLAUSIBLE_PRICE"
            )
        if not _CURRENCY_CODE_RE.fullmatch(self.default_currency):
            raise ConfigurationError(
                f"DEFAULT_CURRENCY must be a 3-letter code, "
                f"got {self.default_currency!r}"
            )

    @property
    def travel_dates(self) -> str:
        """Human-readable travel date range."""
        return format_travel_dates(self.depart_date, self.return_date)

    @property
    def route(self) -> str:
        """Human-readable route description."""
        return f"{self.origin} → {self.region}"

    @property
    def use_cloud_browser(self) -> bool:
        """True when a Kernel cloud browser should be provisioned."""
        return self.kernel_api_key is not None

    def with_overrides(self, **changes: object) -> "TrackerConfig":
        """Return a copy with the given fields replaced (None skipped)."""
        kept = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **kept)  # type: ignore[arg-type]

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None,
    ) -> "TrackerConfig":
        """Build the configuration from environment variables."""
        env = os.environ if environ is None else environ

        raw_destinations = env.get("FLIGHT_DESTINATIONS")
        if raw_destinations is not None and raw_destinations.strip():
            destinations = tuple(
                d.strip() for d in raw_destinations.split(",") if d.strip()
            )
        else:
            destinations = Settings.DESTINATIONS

        return cls(
            origin=_get_str(env, "FLIGHT_ORIGIN", Settings.ORIGIN),
            destinations=destinations,
            region=_get_str(env, "FLIGHT_REGION", Settings.REGION),
            depart_date=_get_date(
                env, "FLIGHT_DEPART_DATE", Settings.DEPART_DATE
            ),
            return_date=_get_date(
                env, "FLIGHT_RETURN_DATE", Settings.RETURN_DATE
            ),
            max_steps=_get_int(env, "AGENT_MAX_STEPS", Settings.MAX_STEPS),
            agent_timeout=_get_float(
                env, "AGENT_TIMEOUT_SECONDS", Settings.AGENT_TIMEOUT
            ),
            history_path=Path(
                _get_str(
                    env, "PRICE_HISTORY_PATH", str(Settings.HISTORY_PATH)
                )
            ),
            readme_path=Path(
                _get_str(env, "README_PATH", str(Settings.README_PATH))
            ),
            default_currency=_get_str(
                env, "DEFAULT_CURRENCY", Settings.DEFAULT_CURRENCY
            ).upper(),
            min_plausible_price=_get_int(
                env, "MIN_PLAUSIBLE_PRICE", Settings.MIN_PLAUSIBLE_PRICE
            ),
            max_plausible_price=_get_int(
                env, "MAX_PLAUSIBLE_PRICE", Settings.MAX_PLAUSIBLE_PRICE
            ),
            agent_model=_get_secret(env, "AGENT_MODEL"),
            kernel_api_key=_get_secret(env, "KERNEL_API_KEY"),
            openai_api_key=_get_secret(env, "OPENAI_API_KEY"),
            google_api_key=_get_secret(env, "GOOGLE_API_KEY"),
            headless=_get_bool(env, "BROWSER_HEADLESS", True),
        )
