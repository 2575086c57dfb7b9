"""Scraper for the "My downloads" listing of purchased songs.

The listing is paginated, but the page count is not exposed and the
"next" link sometimes swaps the rows in place instead of navigating.
Each page is merged into a mapping keyed by song URL, and paging stops
when:

- a page after the first adds no new songs (the last page is repeated), or
- there is no ``a[rel="next"]`` link, or
- the rows did not change within the wait after clicking "next", or
- the browser failed while reading a later page (songs so far are kept).
"""

import locale
import logging
import unicodedata
from dataclasses import dataclass

from playwright.sync_api import Error as PlaywrightError

from automation.errors import CatalogUnavailable, NavigationTimeout, SelectorMissing

logger = logging.getLogger("trackfetcher.automation.catalog")

CATALOG_URL = "https://www.karaoke-version.com/my/download.html"
SONG_ROW = "td.my-downloaded-files__song"
NEXT_LINK = 'a[rel="next"]'

FIRST_ROW_WAIT_MS = 30000
PAGE_CHANGE_WAIT_MS = 20000
SCROLL_PAUSE_MS = 250

# JS run in the page.  Each takes the row selector as its argument.
FIRST_KEY_JS = """
(selector) => {
    const row = document.querySelector(selector);
    const anchor = row ? row.querySelector('a') : null;
    return anchor ? anchor.href : null;
}
"""

ROWS_JS = """
(selector) => Array.from(document.querySelectorAll(selector))
    .map(row => row.querySelector('a'))
    .filter(Boolean)
    .map(a => ({name: a.textContent.trim(), key: a.href}))
"""

PAGE_CHANGED_JS = """
([selector, previous]) => {
    const row = document.querySelector(selector);
    const anchor = row ? row.querySelector('a') : null;
    return (anchor ? anchor.href : null) !== previous;
}
"""


@dataclass(frozen=True)
class CatalogEntry:
    """A purchased song: display name plus its page URL (the unique key)."""
    display_name: str
    key: str


def _collation_key(name: str) -> str:
    # "Éclair" sorts with "eclair", even under the C locale
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return locale.strxfrm(base.casefold())


def sort_entries(entries) -> list[CatalogEntry]:
    """Sort entries by display name, ignoring case and accents.

    Ties are broken by the collation of the process locale (set in main()),
    then by the exact name and key.
    """
    return sorted(
        entries,
        key=lambda e: (_collation_key(e.display_name),
                       locale.strxfrm(e.display_name.casefold()), e.display_name, e.key),
    )


class CatalogScraper:
    """Walks every page of the purchased-songs listing."""

    def __init__(self, session, progress_fn=None):
        """
        Args:
            session: Logged-in BrowserSession.
            progress_fn: Optional callable(str) for status updates.
        """
        self.session = session
        self._progress = progress_fn or (lambda msg: None)

    def scrape(self) -> list[CatalogEntry]:
        """Return every purchased song, deduplicated and sorted by name.

        Raises:
            CatalogUnavailable: If the listing page could not be loaded.
        """
        self._progress("Fetching your purchased songs...")
        try:
            self.session.navigate(CATALOG_URL)
            self.session.wait_for_selector(SONG_ROW, FIRST_ROW_WAIT_MS)
        except (NavigationTimeout, SelectorMissing, PlaywrightError) as e:
            raise CatalogUnavailable(f"Purchased songs list did not load: {e}") from e

        entries: dict[str, CatalogEntry] = {}
        page_number = 1

        while True:
            try:
                sentinel = self.session.evaluate(FIRST_KEY_JS, SONG_ROW)
                rows = self.session.evaluate(ROWS_JS, SONG_ROW) or []
            except PlaywrightError as e:
                if not entries:
                    raise CatalogUnavailable(f"Could not read the purchased songs list: {e}") from e
                logger.warning(
                    f"Reading page {page_number} failed ({e}); keeping {len(entries)} songs"
                )
                break

            before = len(entries)
            for row in rows:
                entries[row["key"]] = CatalogEntry(row["name"], row["key"])
            new_count = len(entries) - before

            logger.info(
                f"Scraped {len(rows)} songs from page {page_number}. "
                f"Found {new_count} new unique songs. Total unique: {len(entries)}"
            )
            self._progress(f"Page {page_number}: {len(entries)} songs so far")

            if page_number > 1 and new_count == 0:
                logger.info("No new unique songs on this page; assuming all pages scraped")
                break

            if not self._go_to_next_page(sentinel, page_number + 1):
                break
            page_number += 1

        result = sort_entries(entries.values())
        logger.info(f"Found {len(result)} unique purchased songs")
        return result

    def _go_to_next_page(self, sentinel, next_number: int) -> bool:
        """Click "next" and wait for the rows to change.

        Returns:
            False when there is no next page or it never loaded.
        """
        next_link = self.session.find(NEXT_LINK)
        if next_link is None:
            logger.info("No 'next' page link; assuming all pages scraped")
            return False

        logger.info(f"Found 'next' page link. Navigating to page {next_number}...")
        try:
            next_link.scroll_into_view_if_needed()
            self.session.sleep(SCROLL_PAUSE_MS)
            next_link.click()
        except Exception as e:
            logger.warning(f"Pagination click failed on page {next_number}: {e}")
            return False

        try:
            changed = self.session.wait_for_predicate(
                PAGE_CHANGED_JS, [SONG_ROW, sentinel], PAGE_CHANGE_WAIT_MS
            )
        except PlaywrightError as e:
            logger.warning(f"Waiting for page {next_number} failed: {e}")
            return False
        if not changed:
            logger.info(
                f"Page {next_number} did not load within {PAGE_CHANGE_WAIT_MS} ms; "
                "assuming it was the last page"
            )
        return changed


def scrape_catalog(session, progress_fn=None) -> list[CatalogEntry]:
    """Convenience wrapper: ``CatalogScraper(session).scrape()``."""
    return CatalogScraper(session, progress_fn).scrape()
