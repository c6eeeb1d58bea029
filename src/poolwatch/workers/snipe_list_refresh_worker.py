"""Background worker that reloads the snipe list on a fixed interval.

The worker:
- Is started by ListenerService only when USE_SNIPE_LIST is enabled
- Calls AllowList.load() every SNIPE_LIST_REFRESH_INTERVAL milliseconds
- Keeps the previous list when a reload fails, and keeps running
- Runs for the rest of the process lifetime unless stop() is called

Example:
    worker = SnipeListRefreshWorker(allow_list, interval_seconds=30.0)
    task = asyncio.create_task(worker.run())
    ...
    await worker.stop()
    task.cancel()
"""

import asyncio
from datetime import UTC, datetime

import structlog

from poolwatch.core.exceptions import AllowListLoadError
from poolwatch.services.listener.allow_list import AllowList

log = structlog.get_logger(__name__)


class SnipeListRefreshWorker:
    """Periodic snipe list reloader.

    Attributes:
        running: Worker running state (True = active).
        interval_seconds: Seconds between reloads.
        allow_list: The list to reload.
    """

    def __init__(self, allow_list: AllowList, interval_seconds: float) -> None:
        self.allow_list = allow_list
        self.interval_seconds = interval_seconds
        self.running = False

        self._last_run: datetime | None = None
        self._reloads: int = 0
        self._errors: int = 0
        self._current_state: str = "idle"  # idle | reloading | stopped

    def get_status(self) -> dict:
        """Get worker status for monitoring."""
        return {
            "running": self.running,
            "last_run": self._last_run,
            "reload_count": self._reloads,
            "error_count": self._errors,
            "entries": len(self.allow_list),
            "current_state": self._current_state,
        }

    async def run(self) -> None:
        """Reload loop. Sleeps first: the initial load is done at startup."""
        log.info("snipe_list_refresh_worker_starting", interval_seconds=self.interval_seconds)
        self.running = True

        while self.running:
            await asyncio.sleep(self.interval_seconds)
            if not self.running:
                break
            self.reload_once()

        log.info("snipe_list_refresh_worker_stopped")

    def reload_once(self) -> bool:
        """Reload the list once. Returns True on success."""
        self._current_state = "reloading"
        try:
            self.allow_list.load()
            self._reloads += 1
            return True
        except AllowListLoadError as e:
            self._errors += 1
            log.error("snipe_list_reload_failed", path=e.path, error=str(e))
            return False
        finally:
            self._last_run = datetime.now(UTC)
            self._current_state = "idle" if self.running else "stopped"

    async def stop(self) -> None:
        """Stop the worker gracefully."""
        log.info("snipe_list_refresh_worker_stopping")
        self.running = False
        self._current_state = "stopped"
