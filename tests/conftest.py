"""Shared pytest fixtures for PoolWatch tests.

This module provides:
- Test environment variables (endpoints are required settings)
- A Settings factory that ignores any local .env file
- Builders for raw pool, market and mint account bytes
"""

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest
from solders.pubkey import Pubkey

from poolwatch.config.settings import Settings, get_settings
from poolwatch.services.solana.constants import OPENBOOK_PROGRAM_ID, WSOL_MINT
from poolwatch.services.solana.layouts import (
    LIQUIDITY_STATE_LAYOUT_V4,
    MARKET_STATE_LAYOUT_V3,
    MINT_LAYOUT,
    PublicKey,
)

# Deterministic test addresses
RAY_MINT = str(Pubkey.from_bytes(bytes([1]) * 32))
BONK_MINT = str(Pubkey.from_bytes(bytes([2]) * 32))
POOL_ID = str(Pubkey.from_bytes(bytes([3]) * 32))
MARKET_ID = str(Pubkey.from_bytes(bytes([4]) * 32))
EVENT_QUEUE = str(Pubkey.from_bytes(bytes([5]) * 32))
BIDS = str(Pubkey.from_bytes(bytes([6]) * 32))
ASKS = str(Pubkey.from_bytes(bytes([7]) * 32))


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """Set required environment variables for the whole session."""
    original_env = os.environ.copy()

    os.environ.setdefault("RPC_ENDPOINT", "https://rpc.test.invalid")
    os.environ.setdefault("RPC_WEBSOCKET_ENDPOINT", "wss://rpc.test.invalid")

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Each test sees settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with test endpoints, ignoring any .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "rpc_endpoint": "https://rpc.test.invalid",
            "rpc_websocket_endpoint": "wss://rpc.test.invalid",
            "check_if_mint_is_renounced": False,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)  # type: ignore[call-arg]

    return _make


def _build(layout: Any, overrides: dict[str, Any]) -> bytes:
    values: dict[str, Any] = {}
    for subcon in layout.subcons:
        if subcon.name is None:
            continue
        if getattr(subcon, "subcon", None) is PublicKey:
            values[subcon.name] = bytes(32)
        elif subcon.name == "padding":
            values[subcon.name] = [0, 0, 0]
        else:
            values[subcon.name] = 0

    for name, value in overrides.items():
        if isinstance(value, str):
            value = bytes(Pubkey.from_string(value))
        values[name] = value
    return layout.build(values)


@pytest.fixture
def build_pool_data() -> Callable[..., bytes]:
    """Raw Raydium v4 pool bytes; keyword args override fields."""

    def _make(**overrides: Any) -> bytes:
        fields: dict[str, Any] = {
            "status": 6,
            "base_decimal": 9,
            "quote_decimal": 9,
            "base_mint": RAY_MINT,
            "quote_mint": WSOL_MINT,
            "market_id": MARKET_ID,
            "market_program_id": OPENBOOK_PROGRAM_ID,
        }
        fields.update(overrides)
        return _build(LIQUIDITY_STATE_LAYOUT_V4, fields)

    return _make


@pytest.fixture
def build_market_data() -> Callable[..., bytes]:
    """Raw OpenBook market bytes; keyword args override fields."""

    def _make(**overrides: Any) -> bytes:
        fields: dict[str, Any] = {
            "own_address": MARKET_ID,
            "base_mint": RAY_MINT,
            "quote_mint": WSOL_MINT,
            "event_queue": EVENT_QUEUE,
            "bids": BIDS,
            "asks": ASKS,
        }
        fields.update(overrides)
        return _build(MARKET_STATE_LAYOUT_V3, fields)

    return _make


@pytest.fixture
def build_mint_data() -> Callable[..., bytes]:
    """Raw SPL mint bytes; keyword args override fields."""

    def _make(**overrides: Any) -> bytes:
        fields: dict[str, Any] = {"decimals": 9, "is_initialized": True, "supply": 10**15}
        fields.update(overrides)
        return _build(MINT_LAYOUT, fields)

    return _make
