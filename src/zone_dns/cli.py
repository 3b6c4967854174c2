"""CLI for the zone DNS server."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import Settings
from .errors import ConfigError, ZoneLoadError
from .server import serve

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Empty or zero values leave the config file setting in place.

    Returns:
        argparse.Namespace: Parsed CLI options:
            - config (str): Path to YAML config file.
            - host (str): Bind address.
            - port (int): UDP port.
            - zones (str): Zone file path.
            - fallback (str): Upstream ``host:port``.
            - poll (int): Reload check interval in seconds.
            - log_level (str): Logging level.
    """
    parser = argparse.ArgumentParser(
        description="Zone-file DNS server with upstream fallback",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", default="config.yaml", help="Path to YAML config")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=0, help="UDP port")
    parser.add_argument("--zones", default="", help="Zone file path")
    parser.add_argument("--fallback", default="", help="Fallback DNS (e.g. 8.8.8.8:53)")
    parser.add_argument("--poll", type=int, default=0, help="Zone file reload frequency (seconds)")
    parser.add_argument(
        "--log-level",
        default="",
        choices=["", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Merge the config file with command-line overrides."""
    return Settings.load(args.config).with_overrides(
        port=args.port,
        zones=args.zones,
        fallback=args.fallback,
        poll=args.poll,
        log_level=args.log_level,
    )


def main(argv: list[str] | None = None) -> None:
    """Run the CLI entry point.

    Exits with status 1 when the configuration, the initial zone or the
    listening socket cannot be set up.
    """
    args = parse_args(argv)
    try:
        settings = build_settings(args)
        asyncio.run(serve(settings, args.host))
    except (KeyboardInterrupt, SystemExit):
        pass
    except (ConfigError, ZoneLoadError, OSError) as exc:
        logging.basicConfig()
        logger.error("failed to start server: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
