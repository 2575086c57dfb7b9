"""Self-healing CSS selector registry for Track Fetcher browser automation.

Persists selector priority order to disk so that selectors which work
get tried first next time.  Used for the controls that have several known variants across page
templates (mixer opener, login fields, download button).
"""

import json
import logging
from pathlib import Path

from automation.atomic_io import atomic_write_text

logger = logging.getLogger("trackfetcher.automation")

DEFAULT_REGISTRY_PATH = Path.home() / ".trackfetcher" / "selector_registry.json"


class SelectorRegistry:
    """Manages ordered selector groups, learning which variant works.

    Each selector group (e.g. "mixer_opener") stores a list of CSS
    selectors in priority order.  When a selector succeeds, it gets
    promoted to the front.
    """

    def __init__(self, path: Path | str | None = None):
        self._path = Path(path) if path else DEFAULT_REGISTRY_PATH
        self._groups: dict[str, list[str]] = {}
        self._load()

    def register_group(self, name: str, selectors: list[str]) -> None:
        """Register a selector group with default ordering.

        Learned ordering on disk is kept, but selectors added to the code
        since the last run are appended, and ones removed are dropped.
        """
        known = self._groups.get(name)
        if known is None:
            self._groups[name] = list(selectors)
            self._save()
            return
        merged = [s for s in known if s in selectors]
        merged += [s for s in selectors if s not in merged]
        if merged != known:
            self._groups[name] = merged
            self._save()

    def get_selectors(self, name: str) -> list[str]:
        """Return selectors for a group in current priority order."""
        return list(self._groups.get(name, []))

    def promote(self, name: str, selector: str) -> None:
        """Move a selector to the front of its group (it worked)."""
        group = self._groups.get(name)
        if group and selector in group and group[0] != selector:
            group.remove(selector)
            group.insert(0, selector)
            self._save()

    def _load(self) -> None:
        if not self._path.exists():
            self._groups = {}
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load selector registry: {e}")
            data = {}
        self._groups = data if isinstance(data, dict) else {}
        logger.debug(f"Selector registry loaded: {len(self._groups)} groups")

    def _save(self) -> None:
        try:
            atomic_write_text(str(self._path), json.dumps(self._groups, indent=2))
        except OSError as e:
            logger.warning(f"Failed to save selector registry: {e}")
