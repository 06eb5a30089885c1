"""
Well-known Solana token registry

Maps symbols to mint addresses and mints to decimals so callers can speak in
symbols and display amounts.
"""

from typing import Dict, Optional


SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

# Keys are uppercase for case-insensitive lookup
SOLANA_TOKEN_MINTS: Dict[str, str] = {
    "SOL": SOL_MINT,
    "WSOL": SOL_MINT,
    "USDC": USDC_MINT,
    "USDT": USDT_MINT,
    "BONK": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
    "JUP": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "RAY": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "ORCA": "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
    "MSOL": "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So",
    "JITOSOL": "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn",
    "PYTH": "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3",
    "WIF": "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
}

SOLANA_TOKEN_DECIMALS: Dict[str, int] = {
    SOL_MINT: 9,
    USDC_MINT: 6,
    USDT_MINT: 6,
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263": 5,  # BONK
    "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN": 6,   # JUP
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R": 6,  # RAY
    "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE": 6,   # ORCA
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": 9,   # mSOL
    "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn": 9,  # jitoSOL
    "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3": 6,  # PYTH
    "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm": 6,  # WIF
}

_MINT_TO_SYMBOL: Dict[str, str] = {}
for _symbol, _mint in SOLANA_TOKEN_MINTS.items():
    _MINT_TO_SYMBOL.setdefault(_mint, _symbol)


def resolve_token_mint(token: str) -> str:
    """
    Resolve token symbol or mint address to mint address

    Unknown symbols are returned as-is.
    """
    token = token.strip()

    # base58 mint addresses are 32-44 chars
    if len(token) > 30:
        return token

    return SOLANA_TOKEN_MINTS.get(token.upper(), token)


def is_known_token(symbol: str) -> bool:
    return symbol.strip().upper() in SOLANA_TOKEN_MINTS


def get_token_decimals(mint: str) -> Optional[int]:
    """Decimals for a known mint, None otherwise"""
    return SOLANA_TOKEN_DECIMALS.get(mint)


def get_token_symbol(mint: str) -> Optional[str]:
    return _MINT_TO_SYMBOL.get(mint)
