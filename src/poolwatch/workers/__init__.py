"""Background workers that run alongside the listener.

Workers:
    - SnipeListRefreshWorker: Reloads the snipe list on a timer
"""

from poolwatch.workers.snipe_list_refresh_worker import SnipeListRefreshWorker

__all__ = ["SnipeListRefreshWorker"]
