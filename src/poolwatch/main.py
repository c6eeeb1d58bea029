"""PoolWatch - main application entry point."""

import asyncio
import sys

import structlog
from dotenv import load_dotenv
from pydantic import ValidationError

from poolwatch.config import Settings, get_settings
from poolwatch.config.logging import configure_logging
from poolwatch.core.exceptions import ConfigurationError, SubscriptionError
from poolwatch.services.listener.service import ListenerService
from poolwatch.services.listener.sink import LoggingSink
from poolwatch.services.solana.rpc_client import SolanaRPCClient

log = structlog.get_logger()


def load_settings() -> Settings:
    """Read settings from the environment.

    Raises:
        ConfigurationError: If a required variable is missing or invalid.
    """
    try:
        return get_settings()
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid configuration: {fields}") from e


async def run() -> None:
    """Build the listener and run it until cancelled or a subscription fails."""
    settings = get_settings()
    rpc_client = SolanaRPCClient(settings)
    service = ListenerService(settings, rpc_client, LoggingSink())

    try:
        await service.run()
    finally:
        await rpc_client.close()


def main() -> int:
    """Console script entry point."""
    load_dotenv()

    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"poolwatch: {e}", file=sys.stderr)
        return 2

    configure_logging(settings)
    log.info("poolwatch_starting", app_name=settings.app_name)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        log.info("poolwatch_shutdown")
    except SubscriptionError as e:
        log.error("poolwatch_subscription_lost", program_id=e.program_id, error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
