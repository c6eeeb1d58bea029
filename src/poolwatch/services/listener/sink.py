"""Downstream hand-off for records that survive filtering."""

from typing import Protocol

import structlog

from poolwatch.services.solana.models import LiquidityStateV4, MarketStateV3

log = structlog.get_logger(__name__)


class DownstreamSink(Protocol):
    """Receives pools and markets that passed every filter."""

    async def on_pool(self, account_id: str, pool_state: LiquidityStateV4) -> None: ...

    async def on_market(self, account_id: str, market_state: MarketStateV3) -> None: ...


class LoggingSink:
    """Sink that only logs what it is handed."""

    async def on_pool(self, account_id: str, pool_state: LiquidityStateV4) -> None:
        log.info(
            "pool_candidate",
            pool_id=account_id,
            base_mint=pool_state.base_mint,
            quote_mint=pool_state.quote_mint,
            market_id=pool_state.market_id,
            pool_open_time=pool_state.pool_open_time,
        )

    async def on_market(self, account_id: str, market_state: MarketStateV3) -> None:
        log.info(
            "market_candidate",
            market_id=account_id,
            base_mint=market_state.base_mint,
            quote_mint=market_state.quote_mint,
        )
