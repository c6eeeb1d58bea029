"""Snipe list: the optional allow-list of base mints worth acting on."""

from pathlib import Path

import structlog

from poolwatch.core.exceptions import AllowListLoadError

log = structlog.get_logger(__name__)


class AllowList:
    """Allow-list of token mints, loaded from a newline-delimited file.

    When disabled, every mint passes and load() does nothing. When enabled,
    only mints present in the most recent load pass.

    The list is replaced wholesale on every load (never merged): readers
    see either the previous list or the new one.
    """

    def __init__(self, path: Path | str, enabled: bool) -> None:
        self.path = Path(path)
        self.enabled = enabled
        self._entries: tuple[str, ...] = ()
        self._members: frozenset[str] = frozenset()

    @property
    def entries(self) -> tuple[str, ...]:
        """Current entries in file order."""
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> None:
        """Reload the list from disk if allow-list mode is enabled.

        Raises:
            AllowListLoadError: If the file cannot be read. The previous
                list stays in place.
        """
        if not self.enabled:
            return

        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AllowListLoadError(str(self.path), str(e)) from e

        entries = tuple(line.strip() for line in text.splitlines() if line.strip())
        # Single assignment each; the pair is swapped without an await between
        self._entries, self._members = entries, frozenset(entries)

        log.info("snipe_list_loaded", count=len(entries), path=str(self.path))

    def should_process(self, key: str) -> bool:
        """Membership predicate: True for every key when disabled."""
        if not self.enabled:
            return True
        return key.strip() in self._members
