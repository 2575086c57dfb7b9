"""Tests for the persisted selector ordering."""

import json

from automation.selector_registry import SelectorRegistry

OPENERS = ["button#open-mixer", "a.button--customize", 'button:has-text("Launch")']


def test_register_and_get(tmp_path):
    reg = SelectorRegistry(tmp_path / "reg.json")
    reg.register_group("mixer_opener", OPENERS)
    assert reg.get_selectors("mixer_opener") == OPENERS
    assert reg.get_selectors("unknown") == []


def test_promote_persists_across_instances(tmp_path):
    path = tmp_path / "reg.json"
    reg = SelectorRegistry(path)
    reg.register_group("mixer_opener", OPENERS)
    reg.promote("mixer_opener", 'button:has-text("Launch")')

    again = SelectorRegistry(path)
    again.register_group("mixer_opener", OPENERS)
    assert again.get_selectors("mixer_opener")[0] == 'button:has-text("Launch")'


def test_register_merges_new_and_removed_selectors(tmp_path):
    path = tmp_path / "reg.json"
    path.write_text(json.dumps({"login_user": ["input#old", "#frm_login"]}))

    reg = SelectorRegistry(path)
    reg.register_group("login_user", ["#frm_login", 'input[name="login"]'])

    assert reg.get_selectors("login_user") == ["#frm_login", 'input[name="login"]']
    assert json.loads(path.read_text())["login_user"] == ["#frm_login", 'input[name="login"]']


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "reg.json"
    path.write_text("{not json")
    reg = SelectorRegistry(path)
    reg.register_group("mixer_opener", OPENERS)
    assert reg.get_selectors("mixer_opener") == OPENERS


def test_default_path_is_used(isolated_state):
    reg = SelectorRegistry()
    reg.register_group("download_control", ["a.download"])
    assert (isolated_state / "selector_registry.json").exists()
