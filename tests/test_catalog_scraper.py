"""Tests for the paginated purchased-songs scraper."""

import pytest
from playwright.sync_api import Error as PlaywrightError

from automation import catalog_scraper
from automation.catalog_scraper import CatalogEntry, CatalogScraper, scrape_catalog, sort_entries
from automation.errors import CatalogUnavailable, NavigationTimeout, SelectorMissing
from fakes import FakeElement

BASE = "https://www.karaoke-version.com/custombackingtrack"
SONGS = {
    "A": ("Africa", f"{BASE}/toto/africa.html"),
    "B": ("Bohemian Rhapsody", f"{BASE}/queen/bohemian-rhapsody.html"),
    "C": ("Creep", f"{BASE}/radiohead/creep.html"),
    "D": ("Dancing Queen", f"{BASE}/abba/dancing-queen.html"),
}


class CatalogSession:
    """Serves a list of pages; clicking "next" moves to the following one.

    Args:
        pages: list of (song letters, has_next) tuples.
        stuck: if True, clicking "next" never changes the rows.
        broken_page: index of a page whose rows cannot be read.
    """

    def __init__(self, pages, stuck=False, fail_navigation=False, no_rows=False,
                 broken_page=None, broken_wait=False, browser_closed=False):
        self.pages = pages
        self.current = 0
        self.stuck = stuck
        self.fail_navigation = fail_navigation
        self.no_rows = no_rows
        self.broken_page = broken_page
        self.broken_wait = broken_wait
        self.browser_closed = browser_closed
        self.visited = []
        self.next_clicks = 0

    def navigate(self, url):
        if self.browser_closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        if self.fail_navigation:
            raise NavigationTimeout(f"Could not load {url}")
        self.visited.append(url)

    def wait_for_selector(self, selector, timeout_ms, state="attached"):
        if self.no_rows:
            raise SelectorMissing("no rows", selector=selector)

    def _rows(self):
        letters, _ = self.pages[self.current]
        return [{"name": SONGS[x][0], "key": SONGS[x][1]} for x in letters]

    def evaluate(self, script, arg=None):
        if self.current == self.broken_page:
            raise PlaywrightError("Execution context was destroyed")
        rows = self._rows()
        if script is catalog_scraper.FIRST_KEY_JS:
            return rows[0]["key"] if rows else None
        if script is catalog_scraper.ROWS_JS:
            return rows
        raise AssertionError("unexpected script")

    def find(self, selector):
        assert selector == catalog_scraper.NEXT_LINK
        _, has_next = self.pages[self.current]
        return FakeElement(on_click=self._next) if has_next else None

    def _next(self):
        self.next_clicks += 1
        if not self.stuck:
            self.current += 1

    def sleep(self, ms):
        pass

    def wait_for_predicate(self, script, arg, timeout_ms):
        assert script is catalog_scraper.PAGE_CHANGED_JS
        if self.broken_wait:
            raise PlaywrightError("Frame was detached")
        _, previous = arg
        rows = self._rows()
        return (rows[0]["key"] if rows else None) != previous


def names(entries):
    return [e.display_name for e in entries]


def test_dedup_across_pages_and_stop_without_next_link():
    session = CatalogSession([("BAC", True), ("CD", False)])
    messages = []

    entries = CatalogScraper(session, messages.append).scrape()

    assert names(entries) == ["Africa", "Bohemian Rhapsody", "Creep", "Dancing Queen"]
    assert [e.key for e in entries] == [SONGS[x][1] for x in "ABCD"]
    assert session.next_clicks == 1
    assert session.visited == [catalog_scraper.CATALOG_URL]
    assert messages[-1] == "Page 2: 4 songs so far"


def test_stops_when_page_adds_no_new_keys():
    # page 2 repeats page 1 and still offers "next"
    session = CatalogSession([("ABC", True), ("ABC", True), ("D", False)])
    session.pages[1] = ("CAB", True)

    entries = scrape_catalog(session)

    assert names(entries) == ["Africa", "Bohemian Rhapsody", "Creep"]
    assert session.next_clicks == 1


def test_single_page():
    session = CatalogSession([("DA", False)])
    assert names(scrape_catalog(session)) == ["Africa", "Dancing Queen"]
    assert session.next_clicks == 0


def test_page_that_never_changes_is_end_of_catalog():
    session = CatalogSession([("AB", True), ("CD", False)], stuck=True)
    entries = scrape_catalog(session)
    assert names(entries) == ["Africa", "Bohemian Rhapsody"]
    assert session.next_clicks == 1


def test_navigation_failure_raises_catalog_unavailable():
    with pytest.raises(CatalogUnavailable):
        scrape_catalog(CatalogSession([("A", False)], fail_navigation=True))


def test_missing_rows_raises_catalog_unavailable():
    with pytest.raises(CatalogUnavailable):
        scrape_catalog(CatalogSession([("A", False)], no_rows=True))


def test_sort_is_case_insensitive():
    entries = [
        CatalogEntry("beat it", "k1"),
        CatalogEntry("Africa", "k2"),
        CatalogEntry("Creep", "k3"),
    ]
    assert names(sort_entries(entries)) == ["Africa", "beat it", "Creep"]


def test_duplicate_names_with_different_keys_are_kept():
    entries = sort_entries([CatalogEntry("Creep", "k2"), CatalogEntry("Creep", "k1")])
    assert [e.key for e in entries] == ["k1", "k2"]


def test_accented_names_sort_with_their_base_letter():
    entries = [CatalogEntry("Zombie", "z"), CatalogEntry("Éclair", "e"), CatalogEntry("eagle", "a")]
    assert names(sort_entries(entries)) == ["eagle", "Éclair", "Zombie"]


def test_closed_browser_raises_catalog_unavailable():
    with pytest.raises(CatalogUnavailable, match="has been closed"):
        scrape_catalog(CatalogSession([("A", False)], browser_closed=True))


def test_unreadable_first_page_raises_catalog_unavailable():
    with pytest.raises(CatalogUnavailable, match="Execution context was destroyed"):
        scrape_catalog(CatalogSession([("A", True), ("B", False)], broken_page=0))


def test_unreadable_later_page_keeps_songs_so_far():
    session = CatalogSession([("AB", True), ("CD", False)], broken_page=1)
    assert names(scrape_catalog(session)) == ["Africa", "Bohemian Rhapsody"]
    assert session.next_clicks == 1


def test_failed_page_change_wait_ends_paging():
    session = CatalogSession([("AB", True), ("CD", False)], broken_wait=True)
    assert names(scrape_catalog(session)) == ["Africa", "Bohemian Rhapsody"]
    assert session.next_clicks == 1
