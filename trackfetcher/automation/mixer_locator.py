"""Locate the mixer widget on a song page.

The mixer (``#html-mixer``) is usually mounted straight into the song
page, but some templates hide it behind a "Customize"/"Open the mixer"
button or render it inside an iframe, sometimes only after the page has
been scrolled.  ``locate_mixer`` tries, in order:

1. the top-level page;
2. one "open mixer" button, then the top-level page again;
3. a polling loop over the top-level page, every child frame, and any
   iframe that looks like it hosts the mixer, scrolling between rounds.

If the deadline passes, the page and every frame are dumped to the
diagnostics directory before ``MixerNotFound`` is raised.
"""

import logging
import time

from automation.diagnostics import capture_snapshots
from automation.errors import MixerNotFound
from automation.mixer_handle import MIXER_ROOT, MixerHandle

logger = logging.getLogger("trackfetcher.automation.mixer")

OPEN_MIXER_CANDIDATES = [
    "button#open-mixer",
    'button[aria-label*="open" i][aria-label*="mixer" i]',
    'a[href*="#mixer"]',
    "a.button--customize",
    "a.button--mixer",
    'button:has-text("Open the mixer")',
    'button:has-text("Customize")',
    'button:has-text("Launch")',
]

MIXER_IFRAME = 'iframe[id*="mixer"], iframe[src*="custom"], iframe[src*="mixer"]'

FRAME_VERIFY_MS = 5000
OPENER_IDLE_MS = 8000
POLL_START_MS = 700
POLL_MAX_MS = 3000
POLL_BACKOFF = 1.5


def _probe_page(session) -> MixerHandle | None:
    if session.find(MIXER_ROOT) is not None:
        return MixerHandle(session.page, kind="page", name=session.url)
    return None


def _probe_frames(session) -> MixerHandle | None:
    """Look for the mixer root in every child frame.

    Frames can detach or be cross-origin-restricted while we scan them;
    a frame that raises is treated as not hosting the mixer.
    """
    for frame in session.list_frames():
        try:
            if frame.query_selector(MIXER_ROOT) is not None:
                return MixerHandle(frame, kind="frame", name=frame.url)
        except Exception as e:
            logger.debug(f"Skipping unreadable frame: {e}")
    return None


def _probe_mixer_iframe(session) -> MixerHandle | None:
    """Check an iframe whose id/src suggests the mixer, waiting briefly."""
    iframe = session.find(MIXER_IFRAME)
    if iframe is None:
        return None
    try:
        frame = iframe.content_frame()
    except Exception as e:
        logger.debug(f"Mixer iframe has no content frame: {e}")
        return None
    if frame is None:
        return None
    handle = MixerHandle(frame, kind="frame", name=frame.url)
    if handle.wait_for(MIXER_ROOT, FRAME_VERIFY_MS) is not None:
        return handle
    return None


def _click_opener(session) -> bool:
    """Click the first "open mixer" control present.  At most one is clicked."""
    selector, element = session.find_first("mixer_opener", OPEN_MIXER_CANDIDATES)
    if element is None:
        return False
    logger.info(f"Clicking mixer opener: {selector}")
    try:
        session.click(element)
    except Exception as e:
        logger.warning(f"Mixer opener click failed ({selector}): {e}")
        return False
    session.wait_for_network_idle(OPENER_IDLE_MS)
    return True


def locate_mixer(session, timeout_ms: int = 90000, clock=time.monotonic) -> MixerHandle:
    """Return a handle on the context that hosts the mixer.

    Args:
        session: BrowserSession positioned on a song page.
        timeout_ms: Total time to keep searching.
        clock: Monotonic time source.

    Raises:
        MixerNotFound: If the mixer never appeared.  Diagnostics are
            written first.
    """
    deadline = clock() + timeout_ms / 1000

    handle = _probe_page(session)
    if handle:
        logger.info("Mixer found in page")
        return handle

    if _click_opener(session):
        handle = _probe_page(session)
        if handle:
            logger.info("Mixer found in page after opening it")
            return handle

    wait_ms = POLL_START_MS
    rounds = 0
    while clock() < deadline:
        rounds += 1
        handle = _probe_page(session) or _probe_frames(session) or _probe_mixer_iframe(session)
        if handle:
            logger.info(f"Mixer found in {handle.kind} after {rounds} round(s)")
            return handle

        session.scroll_viewport()
        session.sleep(wait_ms)
        wait_ms = min(int(wait_ms * POLL_BACKOFF), POLL_MAX_MS)

    frames = []
    for frame in session.list_frames():
        try:
            frames.append({"name": frame.name, "url": frame.url[:160]})
        except Exception:
            frames.append({"name": "?", "url": "?"})
    logger.error(f"Mixer not found after {timeout_ms} ms; frames: {frames}")
    capture_snapshots(session, "mixer_not_found")
    raise MixerNotFound(
        f"Could not locate mixer root ({MIXER_ROOT}) in page or frames"
    )
