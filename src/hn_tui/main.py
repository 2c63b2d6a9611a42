#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .app import HackerNewsApp
from .config import Settings, load_config, setup_logging
from .datamodels import Category

logger = logging.getLogger("hn")


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hacker News TUI Client")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--category",
        type=Category.parse,
        help=f"Story list to open with. Available: {', '.join(c.value for c in Category)}",
    )
    parser.add_argument("--page-size", type=positive_int, help="Stories per page")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Config file values, overridden by command line flags."""
    settings = Settings.from_config(load_config())
    if args.category is not None:
        settings = replace(settings, category=args.category)
    if args.page_size is not None:
        settings = replace(settings, page_size=args.page_size)
    return settings


# --- Entrypoint ---
def main() -> None:
    args = parse_args()

    debug_path = setup_logging(args.debug)
    if debug_path:
        print(f"Debug logging enabled: {debug_path}", file=sys.stderr)

    settings = build_settings(args)
    logger.info("Starting with %s", settings)

    try:
        app = HackerNewsApp(settings=settings)
        app.run()
    except Exception as e:
        logger.exception("Application crashed: %s", e)
        print(f"Application crashed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
