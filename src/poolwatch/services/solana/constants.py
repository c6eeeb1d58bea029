"""Well-known Solana program and mint addresses."""

RAYDIUM_LIQUIDITY_PROGRAM_ID_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
OPENBOOK_PROGRAM_ID = "srmqPvymJeFKQ4zGQed1GFppgkRHL9kaELCbyksJtPX"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

QUOTE_MINTS: dict[str, str] = {
    "WSOL": WSOL_MINT,
    "USDC": USDC_MINT,
}

# Raydium v4 pool status once swapping is enabled
POOL_STATUS_SWAP_ENABLED = 6
