"""Download completion detection by polling the download directory.

The site gives no signal when a browser download finishes.  Chromium
writes to ``<name>.crdownload`` and renames the file once the transfer is
done, so a finished download is any new entry in the directory that no
longer carries an in-progress suffix.
"""

import logging
import os
import time
from pathlib import Path

logger = logging.getLogger("trackfetcher.automation.completion")

# Suffixes browsers use while a transfer is still running
PARTIAL_SUFFIXES = (".crdownload", ".part", ".tmp")

POLL_INTERVAL_S = 0.5
GRACE_S = 1.0


def is_partial(name: str) -> bool:
    """Return True if *name* looks like an in-progress download."""
    return name.lower().endswith(PARTIAL_SUFFIXES)


def snapshot(directory) -> frozenset[str]:
    """Return the set of entry names in *directory*.

    A missing directory is an empty snapshot, not an error.
    """
    try:
        return frozenset(os.listdir(directory))
    except FileNotFoundError:
        return frozenset()


def new_partial_files(directory, snapshot_before) -> list[Path]:
    """Return in-progress files that appeared since *snapshot_before*."""
    directory = Path(directory)
    return sorted(
        directory / name
        for name in snapshot(directory) - set(snapshot_before)
        if is_partial(name)
    )


def _find_candidate(directory: Path, snapshot_before) -> Path | None:
    for name in sorted(snapshot(directory) - set(snapshot_before)):
        if is_partial(name):
            continue
        path = directory / name
        if path.is_dir():
            continue
        return path
    return None


def await_new_file(
    directory,
    snapshot_before,
    deadline: float,
    *,
    poll_interval: float = POLL_INTERVAL_S,
    grace: float = GRACE_S,
    clock=time.monotonic,
    sleep=time.sleep,
) -> Path | None:
    """Wait for a finished file to appear in *directory*.

    Args:
        directory: Directory the browser downloads into.
        snapshot_before: Entry names present before the download was triggered.
        deadline: Absolute time (in *clock* units) after which to give up.
        poll_interval: Seconds between directory scans.
        grace: Seconds to wait after a candidate appears, so the browser
            can finish flushing it.
        clock: Monotonic time source.
        sleep: Sleep function.

    Returns:
        Path of the new file, or None if the deadline passed first.
    """
    directory = Path(directory)
    while clock() < deadline:
        candidate = _find_candidate(directory, snapshot_before)
        if candidate is not None:
            logger.debug(f"New file detected: {candidate.name}")
            sleep(grace)
            return candidate
        sleep(poll_interval)

    logger.info(f"No finished download appeared in {directory}")
    return None
