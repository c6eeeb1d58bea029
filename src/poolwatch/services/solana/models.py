"""Pydantic models for decoded Solana accounts and notifications.

Models:
    KeyedAccountInfo: One program-account notification (pubkey + raw data)
    LiquidityStateV4: Raydium AMM v4 pool state (fields the listener reads)
    MarketStateV3: OpenBook market state
    MintState: SPL token mint
    MinimalMarket: Market accounts kept for tokens already seen on OpenBook

All decoded records are frozen: handlers only read them.
"""

from pydantic import BaseModel, ConfigDict, Field


class KeyedAccountInfo(BaseModel):
    """A program account as delivered by a programSubscribe notification."""

    model_config = ConfigDict(frozen=True)

    account_id: str = Field(..., description="Account public key (base58)")
    data: bytes = Field(..., description="Raw account data")
    owner: str = Field(default="", description="Owning program (base58)")
    lamports: int = Field(default=0, ge=0)
    slot: int = Field(default=0, ge=0, description="Slot of the notification context")


class LiquidityStateV4(BaseModel):
    """Raydium AMM v4 liquidity pool state.

    Only the subset of the 752-byte record that the listener or a
    downstream sink needs is kept. Pubkeys are base58 strings.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    base_decimal: int
    quote_decimal: int
    pool_open_time: int = Field(..., description="Unix seconds when swaps open")
    base_vault: str
    quote_vault: str
    base_mint: str
    quote_mint: str
    lp_mint: str
    open_orders: str
    market_id: str
    market_program_id: str
    target_orders: str
    owner: str
    lp_reserve: int


class MarketStateV3(BaseModel):
    """OpenBook (Serum v3) market state."""

    model_config = ConfigDict(frozen=True)

    own_address: str
    vault_signer_nonce: int
    base_mint: str
    quote_mint: str
    base_vault: str
    quote_vault: str
    request_queue: str
    event_queue: str
    bids: str
    asks: str
    base_lot_size: int
    quote_lot_size: int
    fee_rate_bps: int


class MintState(BaseModel):
    """SPL token mint."""

    model_config = ConfigDict(frozen=True)

    mint_authority_option: int
    mint_authority: str | None
    supply: int
    decimals: int
    is_initialized: bool
    freeze_authority_option: int
    freeze_authority: str | None

    @property
    def is_renounced(self) -> bool:
        """True when nobody can mint more of this token."""
        return self.mint_authority_option == 0


class MinimalMarket(BaseModel):
    """Market accounts a swap needs, recorded per base mint."""

    model_config = ConfigDict(frozen=True)

    market_id: str
    event_queue: str
    bids: str
    asks: str

    @classmethod
    def from_market_state(cls, market_id: str, state: MarketStateV3) -> "MinimalMarket":
        return cls(
            market_id=market_id,
            event_queue=state.event_queue,
            bids=state.bids,
            asks=state.asks,
        )
