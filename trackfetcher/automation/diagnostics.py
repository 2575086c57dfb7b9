"""Post-mortem capture for failed browser operations.

When a mix fails (mixer never mounted, a control is missing, a navigation
times out) the page HTML, the HTML of every reachable frame and a
full-page screenshot are written to the diagnostics directory.  Each
artifact is captured independently; one failing never stops the others.
"""

import logging
import time
from pathlib import Path

logger = logging.getLogger("trackfetcher.automation.diagnostics")

DIAGNOSTICS_DIR = Path.home() / ".trackfetcher" / "diagnostics"
MAX_CAPTURES = 20


def _capture_stamp(name: str) -> str | None:
    # "20261018_120000_label_page.html" -> "20261018_120000"
    parts = name.split("_", 2)
    if len(parts) < 3:
        return None
    return f"{parts[0]}_{parts[1]}"


def _rotate(directory: Path, keep: int) -> None:
    """Delete the oldest capture sets so fewer than *keep* remain."""
    stamps = set()
    for p in directory.iterdir():
        stamp = _capture_stamp(p.name) if p.is_file() else None
        if stamp:
            stamps.add(stamp)
    stamps = sorted(stamps)
    while len(stamps) >= keep:
        oldest = stamps.pop(0)
        for p in directory.glob(f"{oldest}_*"):
            try:
                p.unlink()
            except OSError as e:
                logger.debug(f"Could not remove old capture {p.name}: {e}")


def capture_snapshots(session, label: str, directory: Path | None = None) -> list[Path]:
    """Save page HTML, frame HTML and a screenshot for *label*.

    Args:
        session: BrowserSession (or anything with the same capture methods).
        label: Short name for the failure (e.g. "mixer_not_found").
        directory: Override for DIAGNOSTICS_DIR.

    Returns:
        Paths of the artifacts that were written.
    """
    directory = Path(directory or DIAGNOSTICS_DIR)
    written: list[Path] = []
    try:
        directory.mkdir(parents=True, exist_ok=True)
        _rotate(directory, MAX_CAPTURES)
    except OSError as e:
        logger.warning(f"Cannot prepare diagnostics dir {directory}: {e}")
        return written

    prefix = f"{time.strftime('%Y%m%d_%H%M%S')}_{label}"

    try:
        path = directory / f"{prefix}_page.html"
        path.write_text(session.capture_document_snapshot(), encoding="utf-8")
        written.append(path)
    except Exception as e:
        logger.warning(f"Failed to save page HTML: {e}")

    try:
        frames = session.list_frames()
    except Exception as e:
        logger.warning(f"Failed to list frames: {e}")
        frames = []

    for idx, frame in enumerate(frames):
        try:
            html = frame.content()
        except Exception as e:
            logger.debug(f"Frame {idx} not readable: {e}")
            continue
        if not html:
            continue
        path = directory / f"{prefix}_frame_{idx}.html"
        try:
            path.write_text(html, encoding="utf-8")
            written.append(path)
            logger.info(f"Saved {path} (name={frame.name!r} url={frame.url[:160]!r})")
        except OSError as e:
            logger.warning(f"Failed to save frame {idx}: {e}")

    try:
        path = directory / f"{prefix}.png"
        session.screenshot(path)
        written.append(path)
    except Exception as e:
        logger.warning(f"Failed to capture screenshot: {e}")

    logger.info(f"Diagnostics saved: {len(written)} file(s) in {directory}")
    return written
