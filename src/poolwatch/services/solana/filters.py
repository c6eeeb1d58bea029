"""Server-side filter predicates for programSubscribe.

The streaming endpoint evaluates these before delivering a notification.
`matches()` mirrors the server's evaluation locally.
"""

from dataclasses import dataclass
from typing import Any

import base58
from solders.pubkey import Pubkey

from poolwatch.services.solana.constants import (
    OPENBOOK_PROGRAM_ID,
    POOL_STATUS_SWAP_ENABLED,
)
from poolwatch.services.solana.layouts import (
    LIQUIDITY_STATE_LAYOUT_V4,
    MARKET_STATE_LAYOUT_V3,
    offset_of,
)


@dataclass(frozen=True)
class DataSizeFilter:
    """Account data length must equal `size`."""

    size: int

    def to_rpc(self) -> dict[str, Any]:
        return {"dataSize": self.size}

    def matches(self, data: bytes) -> bool:
        return len(data) == self.size


@dataclass(frozen=True)
class MemcmpFilter:
    """Account data at `offset` must start with `value`."""

    offset: int
    value: bytes

    @classmethod
    def for_pubkey(cls, offset: int, pubkey: str) -> "MemcmpFilter":
        return cls(offset=offset, value=bytes(Pubkey.from_string(pubkey)))

    def to_rpc(self) -> dict[str, Any]:
        return {
            "memcmp": {
                "offset": self.offset,
                "bytes": base58.b58encode(self.value).decode("ascii"),
            }
        }

    def matches(self, data: bytes) -> bool:
        return data[self.offset : self.offset + len(self.value)] == self.value


AccountFilter = DataSizeFilter | MemcmpFilter


def liquidity_pool_filters(quote_mint: str) -> list[AccountFilter]:
    """Filters selecting swap-enabled Raydium v4 pools quoted in `quote_mint`
    whose market lives on OpenBook."""
    layout = LIQUIDITY_STATE_LAYOUT_V4
    return [
        DataSizeFilter(layout.sizeof()),
        MemcmpFilter.for_pubkey(offset_of(layout, "quote_mint"), quote_mint),
        MemcmpFilter.for_pubkey(offset_of(layout, "market_program_id"), OPENBOOK_PROGRAM_ID),
        MemcmpFilter(
            offset=offset_of(layout, "status"),
            value=POOL_STATUS_SWAP_ENABLED.to_bytes(8, "little"),
        ),
    ]


def openbook_market_filters(quote_mint: str) -> list[AccountFilter]:
    """Filters selecting OpenBook markets quoted in `quote_mint`."""
    layout = MARKET_STATE_LAYOUT_V3
    return [
        DataSizeFilter(layout.sizeof()),
        MemcmpFilter.for_pubkey(offset_of(layout, "quote_mint"), quote_mint),
    ]
