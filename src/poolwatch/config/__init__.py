"""Configuration module for PoolWatch.

Usage:
    from poolwatch.config import get_settings

    settings = get_settings()  # Cached singleton
    print(settings.rpc_endpoint)

Note:
    There is no module-level `settings` instance because RPC_ENDPOINT and
    RPC_WEBSOCKET_ENDPOINT are required; importing would fail without them.
"""

from poolwatch.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
