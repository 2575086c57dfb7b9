"""Tests for secure credential storage."""

import keyring
import pytest
from keyring.errors import KeyringError, PasswordDeleteError

import secure_config
from secure_config import SERVICE_NAME, delete_secret, get_secret, set_secret


@pytest.fixture
def memory_keyring(monkeypatch):
    """Replace the keyring calls with an in-memory store."""
    store = {}

    def delete(service, key):
        if (service, key) not in store:
            raise PasswordDeleteError("not found")
        del store[(service, key)]

    monkeypatch.setattr(keyring, "get_password", lambda service, key: store.get((service, key)))
    monkeypatch.setattr(keyring, "set_password",
                        lambda service, key, value: store.__setitem__((service, key), value))
    monkeypatch.setattr(keyring, "delete_password", delete)
    return store


@pytest.fixture
def broken_keyring(monkeypatch):
    def fail(*args):
        raise KeyringError("no backend")

    for name in ("get_password", "set_password", "delete_password"):
        monkeypatch.setattr(keyring, name, fail)


def test_set_and_get(memory_keyring):
    assert set_secret("password:me@example.com", "hunter2") is True
    assert get_secret("password:me@example.com") == "hunter2"
    assert memory_keyring == {(SERVICE_NAME, "password:me@example.com"): "hunter2"}


def test_missing_secret_is_none(memory_keyring):
    assert get_secret("password:nobody@example.com") is None


def test_delete_secret(memory_keyring):
    set_secret("password:me@example.com", "to-delete")
    delete_secret("password:me@example.com")
    assert get_secret("password:me@example.com") is None


def test_delete_missing_secret_is_quiet(memory_keyring):
    delete_secret("password:nobody@example.com")


def test_no_backend(broken_keyring):
    assert set_secret("password:me@example.com", "x") is False
    assert get_secret("password:me@example.com") is None
    delete_secret("password:me@example.com")


def test_service_name():
    assert secure_config.SERVICE_NAME == "TrackFetcher"
