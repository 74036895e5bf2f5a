# main.py

"""Entry point for the automated flight price tracker."""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from src.config.logging_config import setup_logging
from src.config.settings import TrackerConfig
from src.exceptions import ConfigurationError

logger = logging.getLogger("flight_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="flight_tracker",
        description=(
            "Search flight prices with a browser agent and update the README."
        ),
        epilog="Route, dates and API keys are read from the environment / .env.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--render-only",
        action="store_true",
        default=False,
        dest="render_only",
        help="Re-render README.md from stored history without the agent.",
    )
    mode.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Print the latest stored prices and exit.",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        dest="max_steps",
        help="Upper bound on agent actions (default: AGENT_MAX_STEPS or 60).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        dest="agent_timeout",
        help="Wall-clock limit for the agent in seconds.",
    )
    parser.add_argument(
        "--local",
        action="store_true",
        default=False,
        help="Use a local browser even if KERNEL_API_KEY is set.",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=None,
        dest="history_path",
        help="Path of the price history JSON file.",
    )
    parser.add_argument(
        "--readme",
        type=Path,
        default=None,
        dest="readme_path",
        help="Path of the README to regenerate.",
    )
    return parser


def _load_config(args: argparse.Namespace) -> TrackerConfig:
    """Build the run configuration from the environment plus CLI flags."""
    config = TrackerConfig.from_env().with_overrides(
        max_steps=args.max_steps,
        agent_timeout=args.agent_timeout,
        history_path=args.history_path,
        readme_path=args.readme_path,
    )
    if args.local:
        config = replace(config, kernel_api_key=None)
    return config


def main() -> None:
    """Route to a full check, a README re-render, or a history listing."""
    log_file = setup_logging()
    logger.info("flight_tracker starting — log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    try:
        config = _load_config(args)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        print(f"❌ Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.show:
        from src.cli.runner import run_show_history

        sys.exit(run_show_history(config))
    elif args.render_only:
        from src.cli.runner import run_render_only

        sys.exit(run_render_only(config))
    else:
        from src.cli.runner import run_check

        sys.exit(asyncio.run(run_check(config)))


if __name__ == "__main__":
    main()
