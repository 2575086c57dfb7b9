"""
Track Fetcher - Configuration-Driven Timeouts

Centralized timeout defaults with config-file override support.
Usage: ``get_timeout(config, "download_s")`` returns the configured or default value.
"""


# Default timeouts; keys name the operation and unit
TIMEOUTS = {
    "page_load_ms": 30000,        # Page navigation timeout
    "mixer_locate_ms": 90000,     # Search for the mixer in page and frames
    "download_s": 180,            # Wait for one track's file to arrive
    "settle_ms": 1000,            # Pause after soloing a track
}


def get_timeout(config, key: str) -> int | float:
    """Get a timeout value, checking the config's overrides first.

    Args:
        config: AppConfig instance (or None for defaults only).
        key: Timeout key from TIMEOUTS dict.

    Returns:
        The configured timeout value, or the default from TIMEOUTS.

    Raises:
        KeyError: If key is not in TIMEOUTS.
    """
    if key not in TIMEOUTS:
        raise KeyError(f"Unknown timeout key: {key!r}")
    if config is not None:
        override = (config.timeouts or {}).get(key)
        if override is not None:
            try:
                return type(TIMEOUTS[key])(override)
            except (ValueError, TypeError):
                pass
    return TIMEOUTS[key]
