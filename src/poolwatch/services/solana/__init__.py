"""Solana account layouts, RPC client and program subscriptions."""

from poolwatch.services.solana.rpc_client import SolanaRPCClient
from poolwatch.services.solana.ws_client import ProgramSubscription

__all__ = ["ProgramSubscription", "SolanaRPCClient"]
