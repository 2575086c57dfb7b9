"""Persistent browser profile management for Track Fetcher.

The browser session keeps its cookies in a persistent Chromium profile so
a login survives between runs.  All code that needs the profile directory
goes through get_profile_path().
"""

import logging
import os
import shutil

logger = logging.getLogger("trackfetcher.automation.browser_profiles")

PROFILES_DIR = os.path.join(os.path.expanduser("~"), ".trackfetcher", "profiles")


def get_profile_path(service: str) -> str:
    """Return the profile directory for *service*, creating it if needed.

    Args:
        service: Service identifier (e.g. "karaoke-version").

    Returns:
        Absolute path to the profile directory.
    """
    path = os.path.join(PROFILES_DIR, service)
    os.makedirs(path, exist_ok=True)
    return path


def clear_profile(service: str) -> bool:
    """Delete the entire profile for *service* (forces a fresh login).

    Returns:
        True if the profile directory was found and removed.
    """
    path = os.path.join(PROFILES_DIR, service)
    if os.path.isdir(path):
        try:
            shutil.rmtree(path)
            logger.info("Cleared profile: %s", path)
            return True
        except OSError as e:
            logger.warning("Failed to clear profile %s: %s", path, e)
    return False
