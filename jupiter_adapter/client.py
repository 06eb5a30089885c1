"""
JupiterClient - Unified entry point for swap operations

Wires the RPC client, signer, transaction manager and Jupiter API together
and exposes them through functional modules (wallet, swap).
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from solders.keypair import Keypair
    from .modules.swap import SwapModule
    from .modules.wallet import WalletModule

from .infra import (
    RpcClient,
    RpcClientConfig,
    Signer,
    TransactionManager,
    TxManagerConfig,
    create_signer,
)
from .protocols.jupiter import JupiterAPI
from .errors import SigningUnavailable

logger = logging.getLogger(__name__)


class JupiterClient:
    """
    Unified Jupiter adapter client

    Provides access to operations through functional modules:
    - wallet: Balance queries, address validation
    - swap: Token swaps via Jupiter

    Without any signer configuration the client is read-only: quotes and
    balance queries work, executing a swap raises SigningUnavailable.

    Usage:
        from solders.keypair import Keypair

        async with JupiterClient(
            rpc_url="https://api.mainnet-beta.solana.com",
            keypair=Keypair(),
        ) as client:
            quote = await client.swap.quote("SOL", "USDC", "0.1")
            balance = await client.wallet.balance("USDC")

        # Or with keypair file path
        client = JupiterClient(keypair_path="/path/to/keypair.json")
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        keypair: Optional["Keypair"] = None,
        keypair_path: Optional[str] = None,
        private_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_config: Optional[TxManagerConfig] = None,
        api: Optional[JupiterAPI] = None,
    ):
        """
        Initialize JupiterClient

        Args:
            rpc_url: RPC endpoint URL (defaults to SOLANA_RPC_URL)
            keypair: Optional Keypair for local signing
            keypair_path: Optional path to keypair file
            private_key: Optional base58 or JSON byte array private key
            signer: Optional pre-built signer (takes precedence)
            rpc_config: Optional RPC configuration
            tx_config: Optional transaction configuration
            api: Optional Jupiter API client (default from config)
        """
        self._rpc = RpcClient(rpc_url, config=rpc_config)

        if signer is None:
            try:
                signer = create_signer(
                    keypair=keypair,
                    keypair_path=keypair_path,
                    private_key=private_key,
                )
            except SigningUnavailable:
                logger.info("No signer configured, client is read-only")
        self._signer = signer

        self._tx_manager = TransactionManager(self._rpc, self._signer, config=tx_config)
        self._api = api or JupiterAPI(retry_policy=self._rpc.retry_policy)

        # Lazy-loaded modules
        self._wallet: Optional["WalletModule"] = None
        self._swap: Optional["SwapModule"] = None

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Optional[Signer]:
        """Access to signer (None when read-only)"""
        return self._signer

    @property
    def tx_manager(self) -> TransactionManager:
        """Access to transaction manager"""
        return self._tx_manager

    @property
    def api(self) -> JupiterAPI:
        """Access to Jupiter API client"""
        return self._api

    @property
    def pubkey(self) -> str:
        """Owner's public key"""
        return self._tx_manager.pubkey

    @property
    def wallet(self) -> "WalletModule":
        """
        Wallet module for balance queries

        Provides:
        - balance(token): Display balance
        - token_balance(token): Raw balance record
        - sol_balance(): SOL balance
        - validate_address(address)
        """
        if self._wallet is None:
            from .modules.wallet import WalletModule
            self._wallet = WalletModule(self)
        return self._wallet

    @property
    def swap(self) -> "SwapModule":
        """
        Swap module for token exchanges

        Provides:
        - quote(from_token, to_token, amount): Get swap quote
        - execute(quote): Execute swap
        - swap(from_token, to_token, amount): Quote and execute
        """
        if self._swap is None:
            from .modules.swap import SwapModule
            self._swap = SwapModule(self)
        return self._swap

    async def close(self):
        """Close client connections and release resources"""
        await self._api.close()
        await self._rpc.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        owner = f"{self._signer.pubkey[:8]}..." if self._signer else None
        return f"JupiterClient(endpoint={self._rpc.endpoint}, pubkey={owner})"
