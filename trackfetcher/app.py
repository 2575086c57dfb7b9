"""Track Fetcher main loop: log in, list purchased songs, download mixes."""

import logging

from playwright.sync_api import Error as PlaywrightError

from automation.catalog_scraper import CatalogScraper
from automation.errors import BrowserError, LoginFailed, TrackFetcherError
from automation.mix_processor import process_mix
from automation.site import login
from automation.track_downloader import TrackStatus
from console_ui import EXIT, MANUAL, REFRESH

logger = logging.getLogger("trackfetcher.app")


class TrackFetcherApp:
    """Drives one browser session through the interactive menu.

    Args:
        session: Started BrowserSession.
        store: ConfigStore used to persist settings after each selection.
        config: AppConfig loaded from *store*.
        ui: ConsoleUI (or a stand-in with the same methods).
    """

    def __init__(self, session, store, config, ui):
        self.session = session
        self.store = store
        self.config = config
        self.ui = ui
        self.catalog = []

    def run(self, url: str | None = None) -> int:
        """Log in, then either process *url* once or run the menu.

        Returns:
            Process exit code.
        """
        try:
            login(self.session, self.config.email, self.config.password)
        except TrackFetcherError as e:
            logger.error(f"Login failed: {e}")
            if isinstance(e, LoginFailed):
                self.store.forget_password(self.config.email)
            self.ui.error(e.user_message)
            return 1
        except PlaywrightError as e:
            logger.error(f"Browser error during login: {e}")
            self.ui.error(BrowserError(str(e)).user_message)
            return 1
        self.store.save(self.config)

        if url:
            result = self.download(url)
            return 0 if result.success else 1

        self.refresh_catalog()
        while True:
            action = self.ui.choose_action(self.catalog)
            if action == EXIT:
                self.ui.info("Exiting...")
                return 0
            if action == REFRESH:
                self.refresh_catalog()
                continue
            if action == MANUAL:
                action = self.ui.ask_url(self.config.last_url)
            if not action:
                self.ui.info("No URL provided. Please try again.")
                continue
            self.download(action, ask_click_track=True)

    def refresh_catalog(self) -> None:
        """Re-scrape the purchased songs; a failure keeps the old list."""
        try:
            self.catalog = CatalogScraper(self.session, self.ui.step).scrape()
            self.ui.info(f"Found {len(self.catalog)} unique purchased songs.")
        except TrackFetcherError as e:
            logger.error(f"Catalog refresh failed: {e}")
            self.ui.error(e.user_message)
        except PlaywrightError as e:
            logger.error(f"Browser error during catalog refresh: {e}")
            self.ui.error(BrowserError(str(e)).user_message)

    def download(self, url: str, ask_click_track: bool = False):
        """Save the selection, then download every track of *url*."""
        if ask_click_track:
            self.config.enable_click_track = self.ui.ask_click_track(
                self.config.enable_click_track
            )
        self.config.last_url = url
        self.store.save(self.config)

        try:
            result = process_mix(
                self.session, url, self.config.output_dir,
                enable_click_track=self.config.enable_click_track,
                decide=self.ui.ask_retry_or_skip,
                progress_fn=self.ui.step,
                on_tracks_found=self.ui.start_mix,
                on_track_done=self.ui.track_done,
                config=self.config,
            )
        finally:
            self.ui.finish_mix()

        if result.success:
            self.ui.info(f"Successfully downloaded all tracks for: \"{result.title}\"")
        elif result.error is not None:
            self.ui.error(f"{result.title}: {result.error.user_message}")
        else:
            failed = ", ".join(t.display_name for t in result.tracks
                               if t.status is TrackStatus.FAILED)
            self.ui.error(f"Finished \"{result.title}\" with skipped tracks: {failed}")
        return result
