"""
Track Fetcher - Centralized Logging Configuration

Sets up a rotating file handler plus a console handler.  Call
``setup_logging()`` once at startup (in main.py) before any module logs.

All modules should use named loggers under the ``trackfetcher`` namespace::

    logger = logging.getLogger("trackfetcher.automation.catalog")
    logger.info("Scraped %d songs", count)
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.path.expanduser("~/.trackfetcher/logs/")


def setup_logging(verbose: bool = False, log_dir: str | None = None) -> None:
    """Configure the root ``trackfetcher`` logger.

    - Log file: ``~/.trackfetcher/logs/trackfetcher.log`` (all levels)
    - Rotation: 5 MB per file, 3 backup copies
    - Console: WARNING and above to stderr, INFO when *verbose*
    """
    log_dir = log_dir or LOG_DIR
    os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger("trackfetcher")
    # Avoid adding handlers twice if called more than once
    if root.handlers:
        return
    root.setLevel(logging.DEBUG)

    # --- Rotating file handler (all levels) ---
    log_path = os.path.join(log_dir, "trackfetcher.log")
    fh = RotatingFileHandler(
        log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    )
    root.addHandler(fh)

    # --- Console handler ---
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO if verbose else logging.WARNING)
    ch.setFormatter(
        logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
    )
    root.addHandler(ch)
