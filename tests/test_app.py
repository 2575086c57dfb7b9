"""Tests for the interactive menu loop."""

import pytest
from playwright.sync_api import Error as PlaywrightError

import app as app_module
from app import TrackFetcherApp
from automation.catalog_scraper import CatalogEntry
from automation.errors import BrowserError, CatalogUnavailable, LoginFailed, MixerNotFound
from automation.mix_processor import MixResult
from automation.track_downloader import TrackOutcome, TrackStatus
from config_store import AppConfig
from console_ui import EXIT, MANUAL, REFRESH

SONG = CatalogEntry("Africa", "https://www.karaoke-version.com/custombackingtrack/toto/africa.html")


class ScriptedUI:
    """Replays a list of menu answers and records every message."""

    def __init__(self, actions=(), url="", click_track=True):
        self.actions = list(actions)
        self.url = url
        self.click_track = click_track
        self.infos = []
        self.errors = []
        self.menus = []
        self.finished = 0

    def choose_action(self, entries):
        self.menus.append(list(entries))
        return self.actions.pop(0)

    def ask_url(self, default=""):
        return self.url

    def ask_click_track(self, default):
        return self.click_track

    def ask_retry_or_skip(self, track_name):
        raise AssertionError("not expected")

    def info(self, message):
        self.infos.append(message)

    def error(self, message):
        self.errors.append(message)

    def step(self, message):
        pass

    def start_mix(self, title, total):
        pass

    def track_done(self, outcome):
        pass

    def finish_mix(self):
        self.finished += 1


class RecordingStore:
    def __init__(self):
        self.saved = []
        self.forgotten = []

    def save(self, config):
        self.saved.append((config.last_url, config.enable_click_track))

    def forget_password(self, email):
        self.forgotten.append(email)


@pytest.fixture
def wired(monkeypatch):
    """Patch login, catalog scraping and mix processing with recorders."""
    calls = {"login": [], "mixes": [], "scrapes": 0}
    state = {"catalog": [SONG], "result": None, "login_error": None}

    def fake_login(session, email, password):
        calls["login"].append(email)
        if state["login_error"]:
            raise state["login_error"]

    class FakeScraper:
        def __init__(self, session, progress_fn=None):
            pass

        def scrape(self):
            calls["scrapes"] += 1
            if isinstance(state["catalog"], Exception):
                raise state["catalog"]
            return state["catalog"]

    def fake_process(session, url, output_root, **kwargs):
        calls["mixes"].append((url, kwargs["enable_click_track"]))
        return state["result"] or MixResult(url=url, title="Africa", success=True)

    monkeypatch.setattr(app_module, "login", fake_login)
    monkeypatch.setattr(app_module, "CatalogScraper", FakeScraper)
    monkeypatch.setattr(app_module, "process_mix", fake_process)
    return calls, state


def make_app(ui, store=None):
    return TrackFetcherApp(object(), store or RecordingStore(),
                           AppConfig(email="me@example.com", password="pw"), ui)


def test_choose_song_then_exit(wired):
    calls, _ = wired
    ui = ScriptedUI([SONG.key, EXIT], click_track=False)
    store = RecordingStore()

    assert make_app(ui, store).run() == 0

    assert calls["mixes"] == [(SONG.key, False)]
    # saved after login and again after the selection
    assert store.saved[-1] == (SONG.key, False)
    assert ui.menus[0] == [SONG]
    assert ui.finished == 1
    assert any("Successfully downloaded" in m for m in ui.infos)


def test_refresh_rescrapes(wired):
    calls, _ = wired
    make_app(ScriptedUI([REFRESH, EXIT])).run()
    assert calls["scrapes"] == 2


def test_manual_url(wired):
    calls, _ = wired
    url = "https://www.karaoke-version.com/custombackingtrack/queen/bohemian-rhapsody.html"
    make_app(ScriptedUI([MANUAL, EXIT], url=url)).run()
    assert [u for u, _ in calls["mixes"]] == [url]


def test_empty_manual_url_returns_to_menu(wired):
    calls, _ = wired
    ui = ScriptedUI([MANUAL, EXIT], url="")
    make_app(ui).run()
    assert calls["mixes"] == []
    assert "No URL provided. Please try again." in ui.infos


def test_login_failure_exits_and_forgets_password(wired):
    calls, state = wired
    state["login_error"] = LoginFailed("Still on the login page")
    ui = ScriptedUI()
    store = RecordingStore()

    assert make_app(ui, store).run() == 1

    assert store.forgotten == ["me@example.com"]
    assert store.saved == []
    assert ui.errors == [LoginFailed("x").user_message]
    assert calls["scrapes"] == 0


def test_catalog_failure_keeps_menu_running(wired):
    calls, state = wired
    state["catalog"] = CatalogUnavailable("down")
    ui = ScriptedUI([EXIT])
    assert make_app(ui).run() == 0
    assert ui.menus == [[]]
    assert ui.errors


def test_failed_mix_reports_error_and_continues(wired):
    calls, state = wired
    state["result"] = MixResult(url=SONG.key, title="Africa",
                                error=MixerNotFound("Could not locate mixer root"))
    ui = ScriptedUI([SONG.key, SONG.key, EXIT])
    make_app(ui).run()
    assert len(calls["mixes"]) == 2
    assert ui.errors[0].startswith("Africa: ")


def test_skipped_tracks_are_listed(wired):
    calls, state = wired
    state["result"] = MixResult(url=SONG.key, title="Africa", tracks=[
        TrackOutcome(0, "Drums", "01 - Drums.mp3", TrackStatus.FAILED, attempts=1),
        TrackOutcome(1, "Bass", "02 - Bass.mp3", TrackStatus.COMPLETED, attempts=1),
    ])
    ui = ScriptedUI([SONG.key, EXIT])
    make_app(ui).run()
    assert ui.errors == ['Finished "Africa" with skipped tracks: Drums']


def test_direct_url_skips_menu(wired):
    calls, state = wired
    ui = ScriptedUI()
    assert make_app(ui).run(url=SONG.key) == 0
    assert calls["scrapes"] == 0
    assert ui.menus == []

    state["result"] = MixResult(url=SONG.key, error=MixerNotFound("x"))
    assert make_app(ScriptedUI()).run(url=SONG.key) == 1


def test_browser_error_on_refresh_keeps_previous_list(wired):
    calls, state = wired

    class BreaksOnRefresh(ScriptedUI):
        def choose_action(self, entries):
            state["catalog"] = PlaywrightError("Target page, context or browser has been closed")
            return super().choose_action(entries)

    ui = BreaksOnRefresh([REFRESH, EXIT])
    assert make_app(ui).run() == 0

    assert calls["scrapes"] == 2
    assert ui.menus == [[SONG], [SONG]]
    assert ui.errors == [BrowserError("x").user_message]


def test_browser_error_during_login_exits(wired):
    calls, state = wired
    state["login_error"] = PlaywrightError("Element is not attached to the DOM")
    ui = ScriptedUI()
    store = RecordingStore()

    assert make_app(ui, store).run() == 1

    assert ui.errors == [BrowserError("x").user_message]
    assert store.forgotten == []
    assert calls["scrapes"] == 0
