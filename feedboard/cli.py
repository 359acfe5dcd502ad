"""Command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .app import Dashboard
from .config import CONFIG_PATH, LOG_PATH, DashboardConfig
from .errors import ConfigError, TerminalError
from .terminal import TerminalSession

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="feedboard", description="Terminal dashboard of live feeds.")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help=f"config file (default: {CONFIG_PATH})")
    parser.add_argument("--log-file", type=Path, default=LOG_PATH, help=f"log file (default: {LOG_PATH})")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(log_file: Path, debug: bool = False) -> None:
    """Log to a file; the terminal belongs to the dashboard."""
    log_file = Path(log_file).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        filename=str(log_file),
        format=LOG_FORMAT,
    )
    # Keep HTTP connection chatter out of the log unless debugging
    if not debug:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("PIL").setLevel(logging.WARNING)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the dashboard. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.debug)

    try:
        config = DashboardConfig.load(args.config)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        print(f"feedboard: {e}", file=sys.stderr)
        return 2

    try:
        with TerminalSession() as screen:
            asyncio.run(Dashboard(config, screen).run())
    except TerminalError as e:
        logger.error("Terminal failure: %s", e)
        print(f"feedboard: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0

if __name__ == "__main__":
    sys.exit(main())
