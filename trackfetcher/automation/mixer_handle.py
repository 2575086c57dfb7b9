"""Capability handle for the mixer widget.

The mixer may be mounted in the top-level page or in a nested frame.
Playwright's ``Page`` and ``Frame`` share the query API we need, so a
``MixerHandle`` wraps either one and is the only way the track downloader
touches the widget.
"""

import logging

from playwright.sync_api import Error as PlaywrightError

logger = logging.getLogger("trackfetcher.automation")

MIXER_ROOT = "#html-mixer"
TRACK_ROWS = "#html-mixer .track"


class MixerHandle:
    """Wraps the Playwright ``Page`` or ``Frame`` that hosts the mixer."""

    def __init__(self, context, kind: str = "page", name: str = ""):
        """
        Args:
            context: Playwright Page or Frame containing ``#html-mixer``.
            kind: "page" for the top-level document, "frame" for a nested one.
            name: Frame name or URL, for logging.
        """
        self.context = context
        self.kind = kind
        self.name = name

    def __repr__(self) -> str:
        return f"MixerHandle(kind={self.kind!r}, name={self.name!r})"

    def query(self, selector: str):
        """Return the first element matching *selector*, or None."""
        return self.context.query_selector(selector)

    def query_all(self, selector: str) -> list:
        return self.context.query_selector_all(selector)

    def wait_for(self, selector: str, timeout_ms: int):
        """Wait for *selector* to be attached; return the element or None."""
        try:
            return self.context.wait_for_selector(
                selector, timeout=timeout_ms, state="attached"
            )
        except PlaywrightError as e:
            logger.debug(f"wait_for({selector!r}) in {self.kind} failed: {e}")
            return None

    def tracks(self) -> list:
        """Return the live track rows, in mixer order."""
        return self.query_all(TRACK_ROWS)

    @staticmethod
    def text_of(element) -> str:
        return (element.text_content() or "").strip()

    @staticmethod
    def activate(element) -> None:
        """Scroll *element* into view and click it."""
        element.scroll_into_view_if_needed()
        element.click()

    def is_checked(self, selector: str) -> bool | None:
        """Return the checked state of *selector*, or None if absent."""
        element = self.query(selector)
        if element is None:
            return None
        return bool(element.is_checked())

    def snapshot(self) -> str:
        """Return the HTML of the hosting document."""
        return self.context.content()
