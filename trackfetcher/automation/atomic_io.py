"""
Track Fetcher - Atomic File Operations

Config and registry files are written to a temp file and renamed over the
target, and finished downloads are moved onto their final track name with
a single rename, so a crash never leaves a half-written file under a name
the downloader would treat as complete.
"""

import os
import tempfile
import logging

logger = logging.getLogger("trackfetcher.automation")


def atomic_write_text(target_path: str, text: str, encoding: str = "utf-8") -> None:
    """Write text data atomically to target_path."""
    dir_name = os.path.dirname(target_path) or "."
    os.makedirs(dir_name, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp_path, target_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_rename(source_path, target_path) -> None:
    """Move *source_path* onto *target_path* in one step.

    Both paths must be on the same filesystem (the downloader only renames
    within one output directory).  An existing target is replaced.
    """
    os.replace(source_path, target_path)
    logger.debug("Renamed %s -> %s", source_path, target_path)
