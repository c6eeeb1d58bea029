"""PoolWatch: Raydium pool and OpenBook market listener."""

__version__ = "0.1.0"
