"""Process one mix: open its page, find the mixer, download every track.

A failure that makes the whole mix impossible (page never loads, mixer
missing, song not purchased, download button gone, or a raw Playwright
error such as a detached element) ends this mix only:
diagnostics are saved, the error is logged and reported in the returned
``MixResult``, and the caller's menu loop carries on.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError

from automation import site
from automation.diagnostics import capture_snapshots
from automation.errors import BrowserError, MixerNotFound, NotPurchased, TrackFetcherError
from automation.mixer_locator import locate_mixer
from automation.naming import mix_folder_name
from automation.track_downloader import TrackDownloader, TrackOutcome, TrackStatus
from timeouts import get_timeout

logger = logging.getLogger("trackfetcher.automation")


@dataclass
class MixResult:
    """What happened to one mix."""
    url: str
    title: str = ""
    output_dir: Path | None = None
    success: bool = False
    error: TrackFetcherError | None = None
    tracks: list[TrackOutcome] = field(default_factory=list)

    @property
    def failed_tracks(self) -> list[TrackOutcome]:
        return [t for t in self.tracks if t.status is TrackStatus.FAILED]


def process_mix(session, url: str, output_root, enable_click_track: bool = True,
                decide=None, progress_fn=None, on_tracks_found=None,
                on_track_done=None, config=None) -> MixResult:
    """Download all tracks of the mix at *url*.

    Args:
        session: Logged-in BrowserSession.
        url: Song page URL.
        output_root: Parent folder; a sub-folder named after the song is used.
        enable_click_track: Desired state of the "Intro Click" toggle.
        decide: Callable(track_name) -> Decision after a timed-out download.
        progress_fn: Optional callable(str) for status updates.
        on_tracks_found: Optional callable(title, count) once tracks are known.
        on_track_done: Optional callable(TrackOutcome) per finished track.
        config: AppConfig for timeout overrides.

    Returns:
        MixResult; ``success`` is True when every track ended up on disk.
    """
    progress = progress_fn or (lambda msg: None)
    result = MixResult(url=url, title=url)
    try:
        session.navigate(url)
        site.accept_cookie_consent(session)

        title = site.mix_title(session)
        result.title = title or url
        result.output_dir = Path(output_root).expanduser() / mix_folder_name(title)
        session.set_download_directory(result.output_dir)

        progress("Locating mixer")
        handle = locate_mixer(session, get_timeout(config, "mixer_locate_ms"))
        site.set_click_track(handle, enable_click_track)
        site.ensure_purchased(session, handle)

        downloader = TrackDownloader(
            session, handle, result.output_dir,
            decide=decide,
            progress_fn=progress,
            on_track_done=on_track_done,
            download_timeout_s=get_timeout(config, "download_s"),
            settle_ms=get_timeout(config, "settle_ms"),
        )
        if on_tracks_found:
            on_tracks_found(result.title, downloader.track_count())
        result.tracks = downloader.download_all_tracks()
        result.success = not result.failed_tracks
    except NotPurchased as e:
        logger.warning(f"{result.title}: {e}")
        result.error = e
    except TrackFetcherError as e:
        logger.error(f"Processing {url} failed: {e}")
        # The mixer locator captures its own diagnostics before raising
        if not isinstance(e, MixerNotFound):
            capture_snapshots(session, e.category.value if e.category else "mix_failed")
        result.error = e
    except PlaywrightError as e:
        # Detached elements and closed frames end this mix only
        logger.error(f"Browser error while processing {url}: {e}")
        error = BrowserError(f"Browser error: {e}")
        capture_snapshots(session, error.category.value)
        result.error = error
    return result
