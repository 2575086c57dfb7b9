"""
Track Fetcher Test Fixtures

Shared pytest fixtures: a fake mixer/session pair and an isolated home
directory so nothing touches the real ~/.trackfetcher.
"""

import functools
import os
import sys
import pytest

# Ensure the trackfetcher modules are importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "trackfetcher"))


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Point every on-disk state location at a temp directory."""
    state = tmp_path / "state"
    monkeypatch.setattr("automation.selector_registry.DEFAULT_REGISTRY_PATH",
                        state / "selector_registry.json")
    monkeypatch.setattr("automation.diagnostics.DIAGNOSTICS_DIR", state / "diagnostics")
    monkeypatch.setattr("automation.browser_profiles.PROFILES_DIR", str(state / "profiles"))
    yield state


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "downloads" / "Power of Love"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def fast_detector():
    """The real completion detector with test-sized intervals."""
    from automation.completion_detector import await_new_file

    return functools.partial(await_new_file, poll_interval=0.01, grace=0)


@pytest.fixture
def fake_session():
    from fakes import FakeSession

    return FakeSession()
