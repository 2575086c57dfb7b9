"""Playwright browser session for Track Fetcher.

``BrowserSession`` owns the Playwright instance, the persistent browser
context and the single page every operation runs on.  It exposes the
small set of primitives the catalog scraper, mixer locator and mix
processor need, translating Playwright timeouts into Track Fetcher
errors.
"""

import logging
from pathlib import Path

from playwright.sync_api import (
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from automation.browser_profiles import get_profile_path
from automation.errors import NavigationTimeout, SelectorMissing
from automation.retry import retry_call
from automation.selector_registry import SelectorRegistry

logger = logging.getLogger("trackfetcher.automation")

SERVICE = "karaoke-version"


class BrowserSession:
    """A single Chromium page driven through the Playwright sync API.

    Usage::

        with BrowserSession(headless=True) as session:
            session.navigate("https://www.karaoke-version.com/")
    """

    def __init__(self, headless: bool = True, page_load_ms: int = 30000,
                 registry: SelectorRegistry | None = None,
                 browser_path: str | None = None):
        self.headless = headless
        self.page_load_ms = page_load_ms
        self.browser_path = browser_path
        self.registry = registry or SelectorRegistry()
        self._playwright = None
        self.context = None
        self.page = None
        self._cdp = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "BrowserSession":
        """Launch Chromium with the persistent profile and open a page."""
        self._playwright = sync_playwright().start()
        profile_dir = get_profile_path(SERVICE)

        launch_args = {
            "headless": self.headless,
            "viewport": {"width": 1280, "height": 1024},
            "args": [
                "--disable-blink-features=AutomationControlled",
                "--disable-infobars",
            ],
        }
        if self.browser_path:
            launch_args["executable_path"] = self.browser_path

        try:
            self.context = self._playwright.chromium.launch_persistent_context(
                profile_dir, channel="chrome", **launch_args
            )
            logger.info("Launched with system Chrome + persistent profile")
        except PlaywrightError:
            self.context = self._playwright.chromium.launch_persistent_context(
                profile_dir, **launch_args
            )
            logger.info("Launched with bundled Chromium + persistent profile")

        self.context.set_default_timeout(self.page_load_ms)
        self.page = self.context.pages[0] if self.context.pages else self.context.new_page()
        return self

    def close(self) -> None:
        try:
            if self.context:
                self.context.close()
            if self._playwright:
                self._playwright.stop()
        except PlaywrightError as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            self.context = None
            self._playwright = None
            self.page = None
            self._cdp = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self.page.url

    def title(self) -> str:
        return self.page.title()

    def navigate(self, url: str, wait_until: str = "networkidle") -> None:
        """Open *url*, retrying one slow load before giving up.

        Raises:
            NavigationTimeout: If the page never finished loading.
        """
        logger.info(f"Navigating to {url}")
        try:
            retry_call(
                self.page.goto,
                args=(url,),
                kwargs={"wait_until": wait_until, "timeout": self.page_load_ms},
                max_attempts=2,
                retryable_exceptions=(PlaywrightTimeoutError,),
            )
        except PlaywrightError as e:
            raise NavigationTimeout(f"Could not load {url}: {e}") from e
        logger.info(f"Arrived at {self.page.url}")

    def wait_for_network_idle(self, timeout_ms: int) -> bool:
        """Best-effort wait for the network to go quiet."""
        try:
            self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    # ------------------------------------------------------------------
    # Element primitives
    # ------------------------------------------------------------------

    def find(self, selector: str):
        """Return the first element matching *selector* in the page, or None."""
        try:
            return self.page.query_selector(selector)
        except PlaywrightError as e:
            logger.debug(f"find({selector!r}) failed: {e}")
            return None

    def find_all(self, selector: str) -> list:
        return self.page.query_selector_all(selector)

    def find_first(self, group: str, selectors: list[str]):
        """Return ``(selector, element)`` for the first selector that matches.

        The group's order is learned through the selector registry, so the
        variant that worked last time is tried first.  Returns
        ``(None, None)`` when nothing matches.
        """
        self.registry.register_group(group, selectors)
        for sel in self.registry.get_selectors(group):
            element = self.find(sel)
            if element is not None:
                self.registry.promote(group, sel)
                return sel, element
        return None, None

    def click(self, element) -> None:
        """Scroll *element* into view and click it."""
        element.scroll_into_view_if_needed()
        element.click()

    def type_text(self, selector: str, text: str) -> None:
        self.page.type(selector, text, delay=20)

    def evaluate(self, script: str, arg=None):
        return self.page.evaluate(script, arg)

    def wait_for_selector(self, selector: str, timeout_ms: int, state: str = "attached"):
        """Wait for *selector* in the top-level page.

        Raises:
            SelectorMissing: If it did not appear within *timeout_ms*.
        """
        try:
            return self.page.wait_for_selector(selector, timeout=timeout_ms, state=state)
        except PlaywrightTimeoutError as e:
            raise SelectorMissing(
                f"Selector {selector!r} did not appear within {timeout_ms} ms",
                selector=selector,
            ) from e

    def wait_for_predicate(self, script: str, arg=None, timeout_ms: int = 20000) -> bool:
        """Wait until the JS predicate *script* returns truthy.

        Returns:
            True if the predicate held before the timeout, False otherwise.
        """
        try:
            self.page.wait_for_function(script, arg=arg, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    def list_frames(self) -> list:
        """Return every nested frame (the main frame excluded)."""
        main = self.page.main_frame
        return [f for f in self.page.frames if f is not main]

    def scroll_viewport(self) -> None:
        """Scroll down by most of a screen to trigger lazy mounting."""
        try:
            self.page.evaluate("() => window.scrollBy(0, Math.ceil(window.innerHeight * 0.8))")
        except PlaywrightError as e:
            logger.debug(f"Scroll failed: {e}")

    def sleep(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    # ------------------------------------------------------------------
    # Downloads and diagnostics
    # ------------------------------------------------------------------

    def set_download_directory(self, path) -> None:
        """Send browser downloads straight into *path*.

        Chromium then writes ``<name>.crdownload`` there and renames it
        when the transfer finishes, which is what the completion detector
        watches for.
        """
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        if self._cdp is None:
            self._cdp = self.context.new_cdp_session(self.page)
        self._cdp.send("Browser.setDownloadBehavior", {
            "behavior": "allow",
            "downloadPath": str(path.resolve()),
        })
        logger.info(f"Download folder: {path}")

    def capture_document_snapshot(self) -> str:
        return self.page.content()

    def screenshot(self, path) -> None:
        self.page.screenshot(path=str(path), full_page=True)
