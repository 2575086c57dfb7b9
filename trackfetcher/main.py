#!/usr/bin/env python3
"""Track Fetcher: download every stem of your purchased custom backing tracks."""

import argparse
import locale
import logging
import os
import sys

# Add the trackfetcher directory to the path (skip when frozen via PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from logging_config import setup_logging
from app import TrackFetcherApp
from automation.browser_profiles import clear_profile
from automation.session import SERVICE, BrowserSession
from config_store import ConfigStore
from console_ui import ConsoleUI
from timeouts import get_timeout

logger = logging.getLogger("trackfetcher")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download each track of a purchased karaoke-version.com mix"
    )
    parser.add_argument(
        "--visible",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Download this song page and exit (skips the menu)",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Folder for downloaded songs (default: saved setting or ~/Music/TrackFetcher)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config file path (default: ~/.trackfetcher/config.json)",
    )
    parser.add_argument(
        "--reset-profile",
        action="store_true",
        help="Delete the saved browser profile (cookies) before starting",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress logs to the console",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)
    try:
        # Song menu ordering follows the user's collation rules
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"Could not apply the system locale for sorting: {e}")

    ui = ConsoleUI()
    ui.info("[bold]Karaoke Track Downloader[/bold]\n")

    store = ConfigStore(args.config)
    config = store.load()
    if args.output_dir:
        config.output_dir = args.output_dir

    config.email, config.password = ui.ask_credentials(config.email, config.password)
    if not config.email or not config.password:
        ui.error("Email and password are required. Exiting.")
        return 2

    if args.reset_profile:
        clear_profile(SERVICE)

    try:
        with BrowserSession(
            headless=config.headless and not args.visible,
            page_load_ms=get_timeout(config, "page_load_ms"),
        ) as session:
            return TrackFetcherApp(session, store, config, ui).run(url=args.url)
    except KeyboardInterrupt:
        ui.info("\nInterrupted.")
        return 130
    finally:
        ui.info("\nSession ended. Goodbye!")


if __name__ == "__main__":
    sys.exit(main())
