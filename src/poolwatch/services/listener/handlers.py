"""Client-side classification of pool and market notifications.

Both handlers run after the dispatcher has decoded the record and
de-duplicated it. They never raise: every failure is logged and the
notification is dropped.
"""

import structlog

from poolwatch.core.exceptions import PoolWatchError
from poolwatch.services.listener.allow_list import AllowList
from poolwatch.services.listener.sink import DownstreamSink
from poolwatch.services.solana.layouts import decode_mint
from poolwatch.services.solana.models import LiquidityStateV4, MarketStateV3, MinimalMarket
from poolwatch.services.solana.rpc_client import SolanaRPCClient

log = structlog.get_logger(__name__)


class PoolEventHandler:
    """Decides whether a new Raydium pool is handed downstream.

    Steps:
        1. The base mint must pass the snipe list predicate.
        2. If `check_mint_renounced` is on, the base mint's authority must
           be renounced. Fetch or decode failures count as "not renounced".
        3. Hand off to the sink.
    """

    def __init__(
        self,
        allow_list: AllowList,
        rpc_client: SolanaRPCClient,
        sink: DownstreamSink,
        check_mint_renounced: bool,
    ) -> None:
        self.allow_list = allow_list
        self.rpc_client = rpc_client
        self.sink = sink
        self.check_mint_renounced = check_mint_renounced

    async def handle(self, account_id: str, pool_state: LiquidityStateV4) -> bool:
        """Classify one pool. Returns True if it was handed downstream."""
        if not self.allow_list.should_process(pool_state.base_mint):
            log.debug("pool_not_in_snipe_list", pool_id=account_id, mint=pool_state.base_mint)
            return False

        if self.check_mint_renounced:
            renounced = await self.is_mint_renounced(pool_state.base_mint)
            if renounced is not True:
                log.warning(
                    "skipping_pool_owner_can_mint",
                    pool_id=account_id,
                    mint=pool_state.base_mint,
                )
                return False

        try:
            await self.sink.on_pool(account_id, pool_state)
        except Exception as e:
            log.error("pool_handoff_failed", pool_id=account_id, error=str(e))
            return False
        return True

    async def is_mint_renounced(self, mint: str) -> bool | None:
        """Check whether `mint` can no longer be minted.

        Returns:
            True if the mint authority option is 0, False if an authority is
            set, None if the account is missing or could not be read.
        """
        try:
            data = await self.rpc_client.get_account_info(mint)
            if data is None:
                log.debug("mint_account_not_found", mint=mint)
                return None
            return decode_mint(data).is_renounced
        except PoolWatchError as e:
            log.debug("mint_check_error", mint=mint, error=str(e))
            log.error("mint_renounce_check_failed", mint=mint)
            return None


class MarketEventHandler:
    """Records new OpenBook markets per base mint and hands them downstream.

    `known_markets` is the "known token accounts" registry: a base mint
    present there has already been handled and is skipped.
    """

    def __init__(self, sink: DownstreamSink) -> None:
        self.sink = sink
        self.known_markets: dict[str, MinimalMarket] = {}

    def is_known(self, base_mint: str) -> bool:
        return base_mint in self.known_markets

    async def handle(self, account_id: str, market_state: MarketStateV3) -> bool:
        """Classify one market. Returns True if it was handed downstream."""
        base_mint = market_state.base_mint
        try:
            if self.is_known(base_mint):
                log.debug("market_base_mint_known", market_id=account_id, mint=base_mint)
                return False

            self.known_markets[base_mint] = MinimalMarket.from_market_state(
                account_id, market_state
            )
            await self.sink.on_market(account_id, market_state)
            return True
        except Exception as e:
            log.debug("market_process_error", market_id=account_id, error=str(e))
            log.error("market_process_failed", mint=base_mint)
            return False
