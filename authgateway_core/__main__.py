"""Command line entry point: ``python -m authgateway_core``.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional

from authgateway_core.gateway.server import Gateway
from authgateway_core.middleware.logging import LoggingMiddleware
from authgateway_core.utils.config import ConfigError, load_config
from authgateway_core.utils.log import configure_logging

logger = logging.getLogger("authgateway_core")


def parse_user(value: str) -> Dict[str, str]:
    """``NAME:PASSWORD`` -> {NAME: PASSWORD}; the password may contain ':'."""
    if ":" not in value:
        raise argparse.ArgumentTypeError(f"expected NAME:PASSWORD, got {value!r}")
    username, password = value.split(":", 1)
    if not username:
        raise argparse.ArgumentTypeError("username may not be empty")
    return {username: password}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authgateway",
        description="Basic-auth reverse proxy in front of a single backend.",
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--host", help="bind address")
    parser.add_argument("--port", type=int, help="bind port")
    parser.add_argument("--backend", dest="backend_url", help="backend base URL")
    parser.add_argument("--timeout", type=float, help="backend timeout in seconds")
    parser.add_argument(
        "--user",
        dest="users",
        action="append",
        type=parse_user,
        default=[],
        metavar="NAME:PASSWORD",
        help="add a user (repeatable)",
    )
    parser.add_argument("--users-file", help="JSON file of username -> password")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-format", choices=["text", "json"])
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)

        overrides = {
            key: getattr(args, key)
            for key in ("host", "port", "backend_url", "timeout", "users_file",
                        "log_level", "log_format")
            if getattr(args, key) is not None
        }
        if args.users:
            users = dict(config.users)
            for entry in args.users:
                users.update(entry)
            overrides["users"] = users

        config = config.merge(overrides).validate()
        configure_logging(config.log_level, config.log_format)
        gateway_config = config.build_gateway_config()
    except (ConfigError, ValueError) as e:
        print(f"authgateway: {e}", file=sys.stderr)
        return 2

    if not len(gateway_config.credential_store):
        logger.warning("No users configured; every request will get 401")

    gateway = Gateway(gateway_config)
    gateway.use(LoggingMiddleware())

    try:
        gateway.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
