"""
Command-line entry point: ``ldap-auth-bridge --port 5000``.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import structlog

from ldapbridge.config import DEFAULT_PORT, LOG_FORMATS, LOG_LEVELS, BridgeConfig
from ldapbridge.gateway.server import run_server
from ldapbridge.log_config import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ldap-auth-bridge",
        description="HTTP authentication bridge validating proxy logins against LDAP.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"port to listen for HTTP auth requests (default {DEFAULT_PORT})",
    )
    parser.add_argument("--host", default=None, help="address to listen on")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None)
    parser.add_argument("--log-format", choices=LOG_FORMATS, default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = BridgeConfig.from_env(
            port=args.port,
            host=args.host,
            log_level=args.log_level,
            log_format=args.log_format,
        )
    except (TypeError, ValueError) as e:
        print(f"ldap-auth-bridge: invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(config.log_level, config.log_format)

    try:
        run_server(config)
    except OSError as e:
        logger.error("listen_failed", host=config.host, port=config.port, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
