"""Fixed binary layouts for the accounts PoolWatch reads.

Layouts are little-endian `construct` Structs matching the on-chain
records byte for byte:

- LIQUIDITY_STATE_LAYOUT_V4: Raydium AMM v4 pool state (752 bytes)
- MARKET_STATE_LAYOUT_V3: OpenBook / Serum v3 market state (388 bytes)
- MINT_LAYOUT: SPL token mint (82 bytes)

`offset_of()` gives the byte offset of a named field, which is what the
server-side memcmp filters need.
"""

from typing import Any

from construct import (
    Array,
    Bytes,
    BytesInteger,
    ConstructError,
    Flag,
    Int8ul,
    Int32ul,
    Int64ul,
    Padding,
    Struct,
)
from solders.pubkey import Pubkey

from poolwatch.core.exceptions import AccountDecodeError
from poolwatch.services.solana.models import LiquidityStateV4, MarketStateV3, MintState

PublicKey = Bytes(32)
Int128ul = BytesInteger(16, swapped=True)

LIQUIDITY_STATE_LAYOUT_V4 = Struct(
    "status" / Int64ul,
    "nonce" / Int64ul,
    "max_order" / Int64ul,
    "depth" / Int64ul,
    "base_decimal" / Int64ul,
    "quote_decimal" / Int64ul,
    "state" / Int64ul,
    "reset_flag" / Int64ul,
    "min_size" / Int64ul,
    "vol_max_cut_ratio" / Int64ul,
    "amount_wave_ratio" / Int64ul,
    "base_lot_size" / Int64ul,
    "quote_lot_size" / Int64ul,
    "min_price_multiplier" / Int64ul,
    "max_price_multiplier" / Int64ul,
    "system_decimal_value" / Int64ul,
    "min_separate_numerator" / Int64ul,
    "min_separate_denominator" / Int64ul,
    "trade_fee_numerator" / Int64ul,
    "trade_fee_denominator" / Int64ul,
    "pnl_numerator" / Int64ul,
    "pnl_denominator" / Int64ul,
    "swap_fee_numerator" / Int64ul,
    "swap_fee_denominator" / Int64ul,
    "base_need_take_pnl" / Int64ul,
    "quote_need_take_pnl" / Int64ul,
    "quote_total_pnl" / Int64ul,
    "base_total_pnl" / Int64ul,
    "pool_open_time" / Int64ul,
    "punish_pc_amount" / Int64ul,
    "punish_coin_amount" / Int64ul,
    "orderbook_to_init_time" / Int64ul,
    "swap_base_in_amount" / Int128ul,
    "swap_quote_out_amount" / Int128ul,
    "swap_base2quote_fee" / Int64ul,
    "swap_quote_in_amount" / Int128ul,
    "swap_base_out_amount" / Int128ul,
    "swap_quote2base_fee" / Int64ul,
    "base_vault" / PublicKey,
    "quote_vault" / PublicKey,
    "base_mint" / PublicKey,
    "quote_mint" / PublicKey,
    "lp_mint" / PublicKey,
    "open_orders" / PublicKey,
    "market_id" / PublicKey,
    "market_program_id" / PublicKey,
    "target_orders" / PublicKey,
    "withdraw_queue" / PublicKey,
    "lp_vault" / PublicKey,
    "owner" / PublicKey,
    "lp_reserve" / Int64ul,
    "padding" / Array(3, Int64ul),
)

MARKET_STATE_LAYOUT_V3 = Struct(
    Padding(5),  # "serum" head
    "account_flags" / Int64ul,
    "own_address" / PublicKey,
    "vault_signer_nonce" / Int64ul,
    "base_mint" / PublicKey,
    "quote_mint" / PublicKey,
    "base_vault" / PublicKey,
    "base_deposits_total" / Int64ul,
    "base_fees_accrued" / Int64ul,
    "quote_vault" / PublicKey,
    "quote_deposits_total" / Int64ul,
    "quote_fees_accrued" / Int64ul,
    "quote_dust_threshold" / Int64ul,
    "request_queue" / PublicKey,
    "event_queue" / PublicKey,
    "bids" / PublicKey,
    "asks" / PublicKey,
    "base_lot_size" / Int64ul,
    "quote_lot_size" / Int64ul,
    "fee_rate_bps" / Int64ul,
    "referrer_rebates_accrued" / Int64ul,
    Padding(7),  # "padding" tail
)

MINT_LAYOUT = Struct(
    "mint_authority_option" / Int32ul,
    "mint_authority" / PublicKey,
    "supply" / Int64ul,
    "decimals" / Int8ul,
    "is_initialized" / Flag,
    "freeze_authority_option" / Int32ul,
    "freeze_authority" / PublicKey,
)


def offset_of(layout: Struct, field_name: str) -> int:
    """Byte offset of `field_name` inside a fixed-size layout.

    Raises:
        KeyError: If the layout has no such field.
    """
    offset = 0
    for subcon in layout.subcons:
        if subcon.name == field_name:
            return offset
        offset += subcon.sizeof()
    raise KeyError(field_name)


def _parse(layout: Struct, name: str, data: bytes) -> Any:
    span = layout.sizeof()
    if len(data) < span:
        raise AccountDecodeError(name, f"expected {span} bytes, got {len(data)}")
    try:
        return layout.parse(data[:span])
    except ConstructError as e:
        raise AccountDecodeError(name, str(e)) from e


def _pubkey(raw: bytes) -> str:
    return str(Pubkey.from_bytes(raw))


def decode_liquidity_state(data: bytes) -> LiquidityStateV4:
    """Decode a Raydium AMM v4 pool account.

    Raises:
        AccountDecodeError: If the data does not fit the layout.
    """
    parsed = _parse(LIQUIDITY_STATE_LAYOUT_V4, "LiquidityStateV4", data)
    return LiquidityStateV4(
        status=parsed.status,
        base_decimal=parsed.base_decimal,
        quote_decimal=parsed.quote_decimal,
        pool_open_time=parsed.pool_open_time,
        base_vault=_pubkey(parsed.base_vault),
        quote_vault=_pubkey(parsed.quote_vault),
        base_mint=_pubkey(parsed.base_mint),
        quote_mint=_pubkey(parsed.quote_mint),
        lp_mint=_pubkey(parsed.lp_mint),
        open_orders=_pubkey(parsed.open_orders),
        market_id=_pubkey(parsed.market_id),
        market_program_id=_pubkey(parsed.market_program_id),
        target_orders=_pubkey(parsed.target_orders),
        owner=_pubkey(parsed.owner),
        lp_reserve=parsed.lp_reserve,
    )


def decode_market_state(data: bytes) -> MarketStateV3:
    """Decode an OpenBook market account.

    Raises:
        AccountDecodeError: If the data does not fit the layout.
    """
    parsed = _parse(MARKET_STATE_LAYOUT_V3, "MarketStateV3", data)
    return MarketStateV3(
        own_address=_pubkey(parsed.own_address),
        vault_signer_nonce=parsed.vault_signer_nonce,
        base_mint=_pubkey(parsed.base_mint),
        quote_mint=_pubkey(parsed.quote_mint),
        base_vault=_pubkey(parsed.base_vault),
        quote_vault=_pubkey(parsed.quote_vault),
        request_queue=_pubkey(parsed.request_queue),
        event_queue=_pubkey(parsed.event_queue),
        bids=_pubkey(parsed.bids),
        asks=_pubkey(parsed.asks),
        base_lot_size=parsed.base_lot_size,
        quote_lot_size=parsed.quote_lot_size,
        fee_rate_bps=parsed.fee_rate_bps,
    )


def decode_mint(data: bytes) -> MintState:
    """Decode an SPL token mint account.

    Authority pubkeys are reported only when their option flag is set.

    Raises:
        AccountDecodeError: If the data does not fit the layout.
    """
    parsed = _parse(MINT_LAYOUT, "Mint", data)
    return MintState(
        mint_authority_option=parsed.mint_authority_option,
        mint_authority=_pubkey(parsed.mint_authority) if parsed.mint_authority_option else None,
        supply=parsed.supply,
        decimals=parsed.decimals,
        is_initialized=parsed.is_initialized,
        freeze_authority_option=parsed.freeze_authority_option,
        freeze_authority=(
            _pubkey(parsed.freeze_authority) if parsed.freeze_authority_option else None
        ),
    )
