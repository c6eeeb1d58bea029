"""Base JSON-RPC client with circuit breaker protection.

This module provides:
- CircuitState enum for circuit breaker states
- CircuitBreaker dataclass for tracking circuit breaker state
- BaseRPCClient class for making single-shot JSON-RPC calls over HTTP
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from itertools import count
from typing import Any

import httpx
import structlog

from poolwatch.core.exceptions import CircuitBreakerOpenError, ExternalServiceError

log = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests allowed
    OPEN = "open"  # Circuit tripped, requests blocked
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreaker:
    """Circuit breaker for protecting the RPC endpoint from a failure storm.

    Tracks consecutive failures and opens the circuit when threshold is reached.
    After cooldown period, allows a single test request (half-open state).

    Attributes:
        failure_threshold: Number of consecutive failures before opening circuit.
        cooldown_seconds: Seconds to wait before half-open test.
        failure_count: Current consecutive failure count.
        last_failure_time: Timestamp of most recent failure.
        state: Current circuit state (CLOSED, OPEN, HALF_OPEN).
    """

    failure_threshold: int = 5
    cooldown_seconds: int = 30
    failure_count: int = field(default=0, init=False)
    last_failure_time: datetime | None = field(default=None, init=False)
    state: CircuitState = field(default=CircuitState.CLOSED, init=False)

    def record_success(self) -> None:
        """Reset failure count and close the circuit."""
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record a failed request.

        In HALF_OPEN state, a single failure reopens the circuit.
        """
        self.failure_count += 1
        self.last_failure_time = datetime.now(UTC)

        if self.state == CircuitState.HALF_OPEN:
            self.state = CircuitState.OPEN
            log.warning(
                "circuit_breaker_reopened",
                failure_count=self.failure_count,
                state="open",
            )
        elif self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            log.warning(
                "circuit_breaker_opened",
                failure_count=self.failure_count,
                threshold=self.failure_threshold,
                state="open",
            )

    def can_execute(self) -> bool:
        """Check if a request can be executed.

        State transitions:
            - CLOSED: Always returns True
            - OPEN: Returns False unless cooldown elapsed, then transitions to HALF_OPEN
            - HALF_OPEN: Returns True (allows test request)
        """
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if self.last_failure_time is None:
                return False

            elapsed = datetime.now(UTC) - self.last_failure_time
            if elapsed > timedelta(seconds=self.cooldown_seconds):
                self.state = CircuitState.HALF_OPEN
                log.info(
                    "circuit_breaker_half_open",
                    cooldown_elapsed=elapsed.total_seconds(),
                    state="half_open",
                )
                return True
            return False

        return True

    def raise_if_open(self) -> None:
        """Raise CircuitBreakerOpenError if requests are currently blocked."""
        if not self.can_execute():
            raise CircuitBreakerOpenError(
                f"Circuit breaker is open. Next attempt allowed in "
                f"{self._time_until_half_open():.1f} seconds."
            )

    def _time_until_half_open(self) -> float:
        if self.last_failure_time is None:
            return 0.0

        elapsed = datetime.now(UTC) - self.last_failure_time
        remaining = self.cooldown_seconds - elapsed.total_seconds()
        return max(0.0, remaining)


class BaseRPCClient:
    """JSON-RPC 2.0 client over HTTP with circuit breaker support.

    Every call is attempted exactly once. Failures are reported to the
    circuit breaker and raised as ExternalServiceError; callers decide
    what a failure means for them.

    Attributes:
        endpoint: JSON-RPC endpoint URL.
        timeout: Request timeout in seconds.

    Example:
        client = BaseRPCClient("https://api.mainnet-beta.solana.com")
        result = await client.call("getSlot", [])
        await client.close()
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._ids = count(1)
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=circuit_breaker_threshold,
            cooldown_seconds=circuit_breaker_cooldown,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            log.debug("httpx_client_created", endpoint=self.endpoint)
        return self._client

    async def close(self) -> None:
        """Close the httpx client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.debug("httpx_client_closed", endpoint=self.endpoint)

    async def call(self, method: str, params: list[Any]) -> Any:
        """Invoke a JSON-RPC method and return its `result` member.

        Args:
            method: JSON-RPC method name (e.g. "getAccountInfo").
            params: Positional parameters.

        Returns:
            The decoded `result` value (may be None).

        Raises:
            CircuitBreakerOpenError: If circuit breaker is open.
            ExternalServiceError: On HTTP, transport or JSON-RPC errors.
        """
        self._circuit_breaker.raise_if_open()

        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = await client.post(self.endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            self._circuit_breaker.record_failure()
            log.warning(
                "rpc_http_error",
                method=method,
                status_code=e.response.status_code,
            )
            raise ExternalServiceError(
                service=self.endpoint,
                message=str(e),
                status_code=e.response.status_code,
            ) from e
        except (httpx.TimeoutException, httpx.RequestError) as e:
            self._circuit_breaker.record_failure()
            log.warning("rpc_connection_error", method=method, error=str(e))
            raise ExternalServiceError(service=self.endpoint, message=str(e)) from e
        except ValueError as e:
            self._circuit_breaker.record_failure()
            raise ExternalServiceError(
                service=self.endpoint, message=f"Invalid JSON response: {e}"
            ) from e

        error = body.get("error")
        if error is not None:
            # The endpoint answered; the request itself was bad
            self._circuit_breaker.record_success()
            raise ExternalServiceError(
                service=self.endpoint,
                message=f"{method} failed ({error.get('code')}): {error.get('message')}",
            )

        self._circuit_breaker.record_success()
        return body.get("result")
