"""
Track Fetcher - Secure Credential Storage

Stores the account password in the system keyring.  The JSON config file
only ever holds the email address; when no keyring backend is usable the
password is simply not remembered between runs.
"""

import logging

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger("trackfetcher.security")

SERVICE_NAME = "TrackFetcher"


def get_secret(key: str) -> str | None:
    """Retrieve a secret from the keyring.

    Returns:
        The stored value, or None if missing or the keyring is unusable.
    """
    try:
        return keyring.get_password(SERVICE_NAME, key) or None
    except KeyringError as e:
        logger.debug("Keyring read failed for %s: %s", key, e)
        return None


def set_secret(key: str, value: str) -> bool:
    """Store a secret in the keyring.

    Returns:
        True if stored, False if no keyring backend is available.
    """
    try:
        keyring.set_password(SERVICE_NAME, key, value)
        logger.info("Stored %s in system keyring", key)
        return True
    except KeyringError as e:
        logger.warning("Keyring write failed for %s: %s; password will not be remembered", key, e)
        return False


def delete_secret(key: str) -> None:
    """Remove a secret from the keyring, if present."""
    try:
        keyring.delete_password(SERVICE_NAME, key)
    except KeyringError as e:
        logger.debug("Keyring delete failed for %s: %s", key, e)
