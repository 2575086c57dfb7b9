"""File and folder naming for downloaded tracks.

Names are a pure function of the track position and caption, so a re-run
finds the files written by an earlier, interrupted run and skips them.
"""

import re

_UNSAFE = re.compile(r"[^A-Za-z0-9\s-]")
_SPACES = re.compile(r"\s+")

TRACK_EXTENSION = ".mp3"


def sanitize(text: str) -> str:
    """Replace unsafe characters with ``_`` and collapse whitespace.

    Example: "Lead Vocal (Take 2)" -> "Lead Vocal _Take 2_"
    """
    return _SPACES.sub(" ", _UNSAFE.sub("_", text))


def target_file_name(track_index: int, display_name: str) -> str:
    """Return the canonical file name for a track.

    Args:
        track_index: 0-based position of the track in the mixer.
        display_name: Track caption as shown in the mixer.

    Example: (2, "Lead Vocal (Take 2)") -> "03 - Lead Vocal _Take 2_.mp3"
    """
    return f"{track_index + 1:02d} - {sanitize(display_name)}{TRACK_EXTENSION}"


def mix_folder_name(page_title: str) -> str:
    """Folder name for a mix, from a page title like "Song | Site name"."""
    title = page_title.split("|")[0].strip()
    return sanitize(title).strip() or "downloads"
