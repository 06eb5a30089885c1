"""
Wallet Module

Provides balance queries and address validation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..client import JupiterClient

from ..types import SOLANA_TOKEN_DECIMALS, SOL_MINT, resolve_token_mint
from ..infra import RpcClient
from ..protocols.jupiter.quote_math import format_raw_amount

logger = logging.getLogger(__name__)

LAMPORTS_DECIMALS = SOLANA_TOKEN_DECIMALS[SOL_MINT]


class WalletModule:
    """
    Wallet operations module

    Provides:
    - SOL balance queries
    - Token balance queries
    - Address validation

    Usage:
        client = JupiterClient(rpc_url, keypair=keypair)

        # Get SOL balance ("1.5")
        sol = await client.wallet.sol_balance()

        # Get token balance (by symbol or mint address)
        usdc = await client.wallet.balance("USDC")
    """

    def __init__(self, client: "JupiterClient"):
        self._client = client
        self._rpc: RpcClient = client.rpc

    @property
    def address(self) -> str:
        """Wallet address (requires a signer)"""
        return self._client.pubkey

    def _owner(self, owner: Optional[str]) -> str:
        return owner or self.address

    async def sol_balance_lamports(self, owner: Optional[str] = None) -> int:
        """Native SOL balance in lamports"""
        return await self._rpc.get_balance(self._owner(owner))

    async def sol_balance(self, owner: Optional[str] = None) -> str:
        """
        Native SOL balance for display

        Returns:
            SOL balance as a decimal string (e.g. "1.5")
        """
        lamports = await self.sol_balance_lamports(owner)
        return format_raw_amount(lamports, LAMPORTS_DECIMALS)

    async def token_balance(self, token: str, owner: Optional[str] = None) -> Dict[str, Any]:
        """
        SPL token balance by symbol or mint address

        Returns:
            {"mint", "amount" (raw int), "decimals", "ui_amount"}; zero when
            the owner holds no account for the mint
        """
        mint = resolve_token_mint(token)
        return await self._rpc.get_token_balance(self._owner(owner), mint)

    async def balance(self, token: str = "SOL", owner: Optional[str] = None) -> str:
        """
        Balance for display, by symbol or mint address

        "SOL" returns the native balance; "WSOL" returns the wrapped SOL
        token account balance.
        """
        if token.strip().upper() == "SOL":
            return await self.sol_balance(owner)

        balance = await self.token_balance(token, owner)
        return balance["ui_amount"]

    @staticmethod
    def validate_address(address: str) -> bool:
        """Check that a string is a valid base58 public key"""
        return RpcClient.is_valid_address(address)
