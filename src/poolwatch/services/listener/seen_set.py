"""In-memory de-duplication of already processed accounts."""

import structlog

log = structlog.get_logger(__name__)


class SeenSet:
    """Process-lifetime set of account ids already handed to a handler.

    One instance per event source, so pools and markets never share keys.
    Entries are never removed.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._keys: set[str] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def add_if_absent(self, key: str) -> bool:
        """Record `key` and return True if it had not been seen before.

        Check and insert run without yielding to the event loop, so two
        deliveries of the same key can never both get True.
        """
        if key in self._keys:
            log.debug("duplicate_account_skipped", source=self.name, account_id=key)
            return False
        self._keys.add(key)
        return True
