"""Program-account subscriptions over the Solana websocket API.

A ProgramSubscription registers `programSubscribe` with server-side filters
and yields one KeyedAccountInfo per `programNotification`, in delivery order.

Example:
    subscription = ProgramSubscription(
        endpoint="wss://api.mainnet-beta.solana.com",
        program_id=RAYDIUM_LIQUIDITY_PROGRAM_ID_V4,
        commitment="confirmed",
        filters=liquidity_pool_filters(WSOL_MINT),
        name="raydium",
    )
    async for account in subscription.notifications():
        ...
"""

import base64
import json
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

import structlog
import websockets

from poolwatch.core.exceptions import SubscriptionError
from poolwatch.services.solana.filters import AccountFilter
from poolwatch.services.solana.models import KeyedAccountInfo

log = structlog.get_logger(__name__)

PING_INTERVAL = 20
PING_TIMEOUT = 20


class ProgramSubscription:
    """One long-lived programSubscribe registration.

    Attributes:
        endpoint: Websocket endpoint URL.
        program_id: Program whose accounts are watched.
        commitment: Commitment level requested from the node.
        filters: Server-side filter predicates.
        name: Short label used in logs.
        subscription_id: Id assigned by the node once acknowledged.
    """

    def __init__(
        self,
        endpoint: str,
        program_id: str,
        commitment: str,
        filters: Sequence[AccountFilter],
        name: str,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        self.endpoint = endpoint
        self.program_id = program_id
        self.commitment = commitment
        self.filters = list(filters)
        self.name = name
        self.subscription_id: int | None = None
        self._connect = connect

    def subscribe_request(self, request_id: int = 1) -> dict[str, Any]:
        """Build the programSubscribe JSON-RPC request."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "programSubscribe",
            "params": [
                self.program_id,
                {
                    "encoding": "base64",
                    "commitment": self.commitment,
                    "filters": [f.to_rpc() for f in self.filters],
                },
            ],
        }

    async def notifications(self) -> AsyncIterator[KeyedAccountInfo]:
        """Connect, subscribe and yield notifications until the connection ends.

        Raises:
            SubscriptionError: If the node rejects the subscription or the
                connection closes. There is no reconnect.
        """
        request = self.subscribe_request()

        try:
            async with self._connect(
                self.endpoint, ping_interval=PING_INTERVAL, ping_timeout=PING_TIMEOUT
            ) as ws:
                await ws.send(json.dumps(request))
                self.subscription_id = await self._await_ack(ws, request["id"])
                log.info(
                    f"listening_for_{self.name}_changes",
                    program_id=self.program_id,
                    subscription_id=self.subscription_id,
                )

                async for raw in ws:
                    account = self._parse_notification(raw)
                    if account is not None:
                        yield account
        except websockets.ConnectionClosed as e:
            raise SubscriptionError(self.program_id, f"connection closed: {e}") from e
        except websockets.WebSocketException as e:
            # Rejected handshake (HTTP 401/429, bad URI, ...)
            raise SubscriptionError(self.program_id, f"handshake failed: {e}") from e
        except OSError as e:
            raise SubscriptionError(self.program_id, f"connection failed: {e}") from e

        raise SubscriptionError(self.program_id, "connection closed by server")

    async def _await_ack(self, ws: Any, request_id: int) -> int:
        while True:
            try:
                message = json.loads(await ws.recv())
            except ValueError as e:
                raise SubscriptionError(
                    self.program_id, f"malformed programSubscribe ack: {e}"
                ) from e
            if not isinstance(message, dict) or message.get("id") != request_id:
                continue
            if "error" in message:
                error = message["error"]
                raise SubscriptionError(
                    self.program_id,
                    f"programSubscribe rejected ({error.get('code')}): {error.get('message')}",
                )
            try:
                return int(message["result"])
            except (KeyError, TypeError, ValueError) as e:
                raise SubscriptionError(
                    self.program_id, f"malformed programSubscribe ack: {message!r}"
                ) from e

    def _parse_notification(self, raw: str | bytes) -> KeyedAccountInfo | None:
        try:
            message = json.loads(raw)
            if message.get("method") != "programNotification":
                return None

            result = message["params"]["result"]
            value = result["value"]
            account = value["account"]
            encoded, _encoding = account["data"]
            return KeyedAccountInfo(
                account_id=value["pubkey"],
                data=base64.b64decode(encoded),
                owner=account.get("owner", ""),
                lamports=account.get("lamports", 0),
                slot=result.get("context", {}).get("slot", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            log.warning(
                "program_notification_malformed",
                source=self.name,
                error=str(e),
            )
            return None
