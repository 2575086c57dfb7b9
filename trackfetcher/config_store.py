"""
Track Fetcher - Persisted Settings

The settings record (email, last song URL, intro-click preference, output
folder, timeout overrides) lives in ``~/.trackfetcher/config.json``.  It is
read once at startup and rewritten after every song selection.  The
password is kept in the system keyring via secure_config, never in the file.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields

import secure_config
from automation.atomic_io import atomic_write_text

logger = logging.getLogger("trackfetcher.config")

CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".trackfetcher", "config.json")
DEFAULT_OUTPUT_DIR = os.path.join(os.path.expanduser("~"), "Music", "TrackFetcher")


@dataclass
class AppConfig:
    """Settings for one run.  ``password`` is never written to disk."""
    email: str = ""
    password: str = ""
    last_url: str = ""
    enable_click_track: bool = True
    output_dir: str = DEFAULT_OUTPUT_DIR
    headless: bool = True
    timeouts: dict = field(default_factory=dict)


def _password_key(email: str) -> str:
    return f"password:{email}"


class ConfigStore:
    """Loads and saves AppConfig.

    Args:
        path: Config file location (defaults to CONFIG_PATH).
        secrets: Module/object with get_secret/set_secret, for the password.
    """

    def __init__(self, path: str | None = None, secrets=secure_config):
        self.path = path or CONFIG_PATH
        self._secrets = secrets

    def load(self) -> AppConfig:
        """Read the config file; any problem yields defaults."""
        config = AppConfig()
        if os.path.exists(self.path):
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level value is not an object")
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read or parse {self.path}, starting fresh: {e}")
                data = {}
            known = {f.name for f in fields(AppConfig)} - {"password"}
            for key, value in data.items():
                if key in known:
                    setattr(config, key, value)
                else:
                    logger.debug(f"Ignoring unknown config key {key!r}")

        if config.email:
            config.password = self._secrets.get_secret(_password_key(config.email)) or ""
        return config

    def save(self, config: AppConfig) -> None:
        """Write *config* back; the password goes to the keyring."""
        data = asdict(config)
        password = data.pop("password")
        try:
            atomic_write_text(self.path, json.dumps(data, indent=2))
        except OSError as e:
            logger.error(f"Could not save {self.path}: {e}")
            return
        if config.email and password:
            self._secrets.set_secret(_password_key(config.email), password)

    def forget_password(self, email: str) -> None:
        """Drop the remembered password for *email* (e.g. after a rejected login)."""
        if email:
            self._secrets.delete_secret(_password_key(email))
