"""Solana RPC client for point account lookups.

The client extends BaseRPCClient to inherit:
- Lazy httpx client creation and cleanup
- Circuit breaker pattern for failure protection
"""

import base64

import structlog

from poolwatch.config.settings import Settings, get_settings
from poolwatch.core.exceptions import ExternalServiceError
from poolwatch.services.base import BaseRPCClient

log = structlog.get_logger(__name__)


class SolanaRPCClient(BaseRPCClient):
    """Client for Solana JSON-RPC account fetches.

    Example:
        client = SolanaRPCClient()
        data = await client.get_account_info("mint_address")
        await client.close()
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        super().__init__(
            endpoint=settings.rpc_endpoint,
            timeout=5.0,
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_cooldown=settings.circuit_breaker_cooldown,
        )
        self.commitment = settings.commitment_level
        log.debug("solana_rpc_client_initialized", endpoint=settings.rpc_endpoint)

    async def get_account_info(
        self, address: str, commitment: str | None = None
    ) -> bytes | None:
        """Fetch an account's raw data via getAccountInfo.

        Args:
            address: Account public key (base58).
            commitment: Commitment override; defaults to the configured level.

        Returns:
            Raw account data, or None if the account does not exist.

        Raises:
            ExternalServiceError: If the RPC call fails or the payload is malformed.
            CircuitBreakerOpenError: If the circuit breaker is open.
        """
        result = await self.call(
            "getAccountInfo",
            [
                address,
                {"encoding": "base64", "commitment": commitment or self.commitment},
            ],
        )

        if result is not None and not isinstance(result, dict):
            raise ExternalServiceError(
                service=self.endpoint,
                message=f"Malformed getAccountInfo payload for {address}: {result!r}",
            )

        value = (result or {}).get("value")
        if value is None:
            log.debug("solana_account_not_found", address=address[:8] + "...")
            return None

        try:
            encoded, encoding = value["data"]
            if encoding != "base64":
                raise ValueError(f"unexpected encoding {encoding!r}")
            return base64.b64decode(encoded)
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError(
                service=self.endpoint,
                message=f"Malformed getAccountInfo payload for {address}: {e}",
            ) from e
