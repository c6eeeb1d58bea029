"""Listener service: subscriptions, de-duplication and dispatch.

Data flow per source:

    ProgramSubscription ──► asyncio.Queue ──► consumer ──► handler ──► sink
        (server-side filters)                 (decode, gate, de-dup)

Each source has its own queue and a single consumer, so notifications of
one source are handled to completion one at a time, in delivery order.
All mutable state (snipe list, seen-sets, known markets) lives on the
service instance.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

from poolwatch.config.settings import Settings
from poolwatch.core.exceptions import AccountDecodeError, AllowListLoadError
from poolwatch.services.listener.allow_list import AllowList
from poolwatch.services.listener.handlers import MarketEventHandler, PoolEventHandler
from poolwatch.services.listener.seen_set import SeenSet
from poolwatch.services.listener.sink import DownstreamSink
from poolwatch.services.solana.constants import (
    OPENBOOK_PROGRAM_ID,
    QUOTE_MINTS,
    RAYDIUM_LIQUIDITY_PROGRAM_ID_V4,
)
from poolwatch.services.solana.filters import liquidity_pool_filters, openbook_market_filters
from poolwatch.services.solana.layouts import decode_liquidity_state, decode_market_state
from poolwatch.services.solana.models import KeyedAccountInfo
from poolwatch.services.solana.rpc_client import SolanaRPCClient
from poolwatch.services.solana.ws_client import ProgramSubscription
from poolwatch.workers.snipe_list_refresh_worker import SnipeListRefreshWorker

log = structlog.get_logger(__name__)

NotificationProcessor = Callable[[KeyedAccountInfo], Awaitable[bool]]


class ListenerService:
    """Watches Raydium pools and OpenBook markets for one quote token.

    Attributes:
        allow_list: Snipe list consulted for pool base mints.
        seen_pools: Pool accounts already dispatched.
        seen_markets: Market accounts already dispatched.
        pool_handler: Classifier for pools.
        market_handler: Classifier for markets (owns the known-markets registry).
        refresh_worker: Snipe list reloader, only when USE_SNIPE_LIST is on.

    Example:
        service = ListenerService(settings, SolanaRPCClient(settings), LoggingSink())
        await service.run()
    """

    def __init__(
        self,
        settings: Settings,
        rpc_client: SolanaRPCClient,
        sink: DownstreamSink,
        subscription_factory: Callable[..., ProgramSubscription] = ProgramSubscription,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.quote_mint = QUOTE_MINTS[settings.quote_mint]
        self._subscription_factory = subscription_factory
        self._clock = clock

        self.allow_list = AllowList(settings.snipe_list_path, enabled=settings.use_snipe_list)
        self.seen_pools = SeenSet("raydium")
        self.seen_markets = SeenSet("openbook")

        self.pool_handler = PoolEventHandler(
            allow_list=self.allow_list,
            rpc_client=rpc_client,
            sink=sink,
            check_mint_renounced=settings.check_if_mint_is_renounced,
        )
        self.market_handler = MarketEventHandler(sink=sink)

        self.refresh_worker: SnipeListRefreshWorker | None = None
        if settings.use_snipe_list:
            self.refresh_worker = SnipeListRefreshWorker(
                self.allow_list, interval_seconds=settings.snipe_list_refresh_seconds
            )

    def build_subscriptions(self) -> tuple[ProgramSubscription, ProgramSubscription]:
        """Create the Raydium pool and OpenBook market subscriptions."""
        endpoint = self.settings.rpc_websocket_endpoint
        commitment = self.settings.commitment_level

        raydium = self._subscription_factory(
            endpoint=endpoint,
            program_id=RAYDIUM_LIQUIDITY_PROGRAM_ID_V4,
            commitment=commitment,
            filters=liquidity_pool_filters(self.quote_mint),
            name="raydium",
        )
        openbook = self._subscription_factory(
            endpoint=endpoint,
            program_id=OPENBOOK_PROGRAM_ID,
            commitment=commitment,
            filters=openbook_market_filters(self.quote_mint),
            name="openbook",
        )
        return raydium, openbook

    def load_snipe_list(self) -> None:
        """Initial snipe list load. A failure is logged, not raised."""
        try:
            self.allow_list.load()
        except AllowListLoadError as e:
            log.error("snipe_list_load_failed", path=e.path, error=str(e))

    async def process_pool_notification(self, account: KeyedAccountInfo) -> bool:
        """Decode, gate on open time, de-duplicate, then classify a pool.

        Returns:
            True if the pool was handed downstream.
        """
        try:
            pool_state = decode_liquidity_state(account.data)
        except AccountDecodeError as e:
            log.error("pool_decode_failed", pool_id=account.account_id, error=str(e))
            return False

        # Only pools that have not opened yet; already-open ones are old news
        if pool_state.pool_open_time <= self._clock():
            return False

        if not self.seen_pools.add_if_absent(account.account_id):
            return False

        return await self.pool_handler.handle(account.account_id, pool_state)

    async def process_market_notification(self, account: KeyedAccountInfo) -> bool:
        """De-duplicate, decode, then classify a market.

        Returns:
            True if the market was handed downstream.
        """
        if not self.seen_markets.add_if_absent(account.account_id):
            return False

        try:
            market_state = decode_market_state(account.data)
        except AccountDecodeError as e:
            log.error("market_decode_failed", market_id=account.account_id, error=str(e))
            return False

        return await self.market_handler.handle(account.account_id, market_state)

    async def _produce(
        self, subscription: ProgramSubscription, queue: asyncio.Queue[KeyedAccountInfo]
    ) -> None:
        async for account in subscription.notifications():
            await queue.put(account)

    async def _consume(
        self,
        name: str,
        queue: asyncio.Queue[KeyedAccountInfo],
        process: NotificationProcessor,
    ) -> None:
        while True:
            account = await queue.get()
            try:
                await process(account)
            except Exception as e:
                # One bad notification never stops the consumer
                log.error(
                    "notification_processing_failed",
                    source=name,
                    account_id=account.account_id,
                    error=str(e),
                )
            finally:
                queue.task_done()

    async def run(self) -> None:
        """Run until cancelled or until a subscription fails.

        Raises:
            SubscriptionError: When either subscription is rejected or drops.
        """
        self.load_snipe_list()

        raydium, openbook = self.build_subscriptions()
        pool_queue: asyncio.Queue[KeyedAccountInfo] = asyncio.Queue()
        market_queue: asyncio.Queue[KeyedAccountInfo] = asyncio.Queue()

        tasks = [
            asyncio.create_task(self._produce(raydium, pool_queue), name="raydium-subscription"),
            asyncio.create_task(
                self._produce(openbook, market_queue), name="openbook-subscription"
            ),
            asyncio.create_task(
                self._consume("raydium", pool_queue, self.process_pool_notification),
                name="raydium-consumer",
            ),
            asyncio.create_task(
                self._consume("openbook", market_queue, self.process_market_notification),
                name="openbook-consumer",
            ),
        ]
        if self.refresh_worker is not None:
            tasks.append(
                asyncio.create_task(self.refresh_worker.run(), name="snipe-list-refresh")
            )

        log.info(
            "listener_started",
            quote_mint=self.settings.quote_mint,
            commitment=self.settings.commitment_level,
            use_snipe_list=self.settings.use_snipe_list,
            check_if_mint_is_renounced=self.settings.check_if_mint_is_renounced,
        )

        try:
            done, _pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                error = None if task.cancelled() else task.exception()
                if error is not None:
                    log.error("listener_task_failed", task=task.get_name(), error=str(error))
                    raise error
        finally:
            if self.refresh_worker is not None:
                await self.refresh_worker.stop()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
