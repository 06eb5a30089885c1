"""
Async RPC Client for Solana

Provides the ledger access used by the transaction manager and wallet module:
- JSON-RPC calls over a pooled httpx.AsyncClient
- HTTP 429 handling through the shared RetryPolicy
- Request timeout management
- Boundary validation of the result shapes the adapter depends on
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import httpx
from solders.pubkey import Pubkey

from ..errors import RpcError, ConfigurationError
from ..config import config as global_config
from ..types import BlockhashInfo, TransactionStatus
from .retry import RetryPolicy, send_with_rate_limit

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global config
    (jupiter_adapter.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, commitment="finalized")
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    commitment: str = None
    retry_policy: RetryPolicy = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment
        if self.retry_policy is None:
            self.retry_policy = RetryPolicy()


class RpcClient:
    """
    Async Solana RPC client

    The underlying connection pool is safe for concurrent use; the client
    keeps no per-request state.

    Usage:
        async with RpcClient("https://api.mainnet-beta.solana.com") as rpc:
            slot = await rpc.get_slot()
            info = await rpc.get_latest_blockhash()
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        config: Optional[RpcClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL (defaults to SOLANA_RPC_URL)
            config: RPC configuration options
            http_client: Pre-built httpx client (not closed by this client)
        """
        self._endpoint = endpoint or global_config.rpc.url
        if not self._endpoint:
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self._request_id = 0

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    @property
    def retry_policy(self) -> RetryPolicy:
        """HTTP 429 policy, shareable with the quote API client"""
        return self._config.retry_policy

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            RateLimited: If 429 persists past the retry policy
            RpcError: On any other transport or RPC failure
        """
        client = self._get_client()
        self._request_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds

        try:
            response = await send_with_rate_limit(
                lambda: client.post(self.endpoint, json=body, timeout=timeout_val),
                self._config.retry_policy,
                self.endpoint,
                f"rpc.{method}",
            )
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException:
            logger.warning(f"RPC timeout on {method}: {self.endpoint}")
            raise RpcError.timeout(self.endpoint, timeout_val)
        except httpx.HTTPStatusError as e:
            logger.warning(f"RPC HTTP error on {method}: {e}")
            raise RpcError(
                f"HTTP error {e.response.status_code}",
                endpoint=self.endpoint,
                original_error=e,
            )
        except httpx.RequestError as e:
            logger.warning(f"RPC connection error on {method}: {e}")
            raise RpcError.connection_failed(self.endpoint, e)
        except ValueError as e:
            raise RpcError.invalid_response(f"{method} body is not JSON: {e}", self.endpoint)

        if not isinstance(result, dict):
            raise RpcError.invalid_response(f"{method} body is not an object", self.endpoint)

        if "error" in result:
            error = result["error"] or {}
            error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            rpc_error = RpcError(f"RPC error: {error_msg}", endpoint=self.endpoint)
            # Preserve RPC error code in details for debugging
            if isinstance(error, dict):
                rpc_error.details["rpc_error_code"] = error.get("code")
                rpc_error.details["rpc_error_data"] = error.get("data")
            raise rpc_error

        return result.get("result")

    @staticmethod
    def _value(result: Any, method: str) -> Any:
        """Unwrap the {context, value} envelope"""
        if not isinstance(result, dict) or "value" not in result:
            raise RpcError.invalid_response(f"{method} result has no value")
        return result["value"]

    # ---------------------------------------------------------------
    # Transaction lifecycle
    # ---------------------------------------------------------------

    async def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> BlockhashInfo:
        """Get latest blockhash and the last block height it is valid for"""
        params = [{"commitment": commitment or self.commitment}]
        result = await self.call("getLatestBlockhash", params)
        value = self._value(result, "getLatestBlockhash")
        try:
            return BlockhashInfo(
                blockhash=str(value["blockhash"]),
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError.invalid_response(f"getLatestBlockhash: {e}", self.endpoint)

    async def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Send signed transaction

        Args:
            transaction: Signed transaction bytes (legacy or versioned)
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level
            max_retries: Node-side rebroadcast attempts

        Returns:
            Transaction signature (base58)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "skipPreflight": skip_preflight,
                "preflightCommitment": preflight_commitment or self.commitment,
                "encoding": "base64",
            },
        ]
        if max_retries is not None:
            params[1]["maxRetries"] = max_retries

        signature = await self.call("sendTransaction", params)
        if not isinstance(signature, str) or not signature:
            raise RpcError.invalid_response("sendTransaction returned no signature", self.endpoint)
        return signature

    async def simulate_transaction(
        self,
        transaction: bytes,
        commitment: Optional[str] = None,
        sig_verify: bool = False,
    ) -> Dict[str, Any]:
        """
        Simulate transaction execution

        Args:
            transaction: Transaction bytes (can be unsigned)
            commitment: Commitment level

        Returns:
            Simulation value (err, logs, unitsConsumed)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "commitment": commitment or self.commitment,
                "encoding": "base64",
                "sigVerify": sig_verify,
                # Both flags together are rejected by the node
                "replaceRecentBlockhash": not sig_verify,
            },
        ]
        result = await self.call("simulateTransaction", params)
        value = self._value(result, "simulateTransaction")
        if not isinstance(value, dict):
            raise RpcError.invalid_response("simulateTransaction value is not an object", self.endpoint)
        return value

    async def get_signature_statuses(
        self,
        signatures: List[str],
        search_history: bool = False,
    ) -> List[Optional[Dict[str, Any]]]:
        """Status entries in request order; None for unknown signatures"""
        params: List[Any] = [signatures]
        if search_history:
            params.append({"searchTransactionHistory": True})
        result = await self.call("getSignatureStatuses", params)
        value = self._value(result, "getSignatureStatuses")
        if not isinstance(value, list):
            raise RpcError.invalid_response("getSignatureStatuses value is not a list", self.endpoint)
        return value

    async def get_signature_status(self, signature: str) -> TransactionStatus:
        """Status of a single signature"""
        statuses = await self.get_signature_statuses([signature])
        status = statuses[0] if statuses else None
        if not status:
            return TransactionStatus(signature=signature, confirmed=False, finalized=False)

        conf = status.get("confirmationStatus")
        err = status.get("err")
        return TransactionStatus(
            signature=signature,
            confirmed=err is None and conf in ("confirmed", "finalized"),
            finalized=err is None and conf == "finalized",
            slot=status.get("slot"),
            error=str(err) if err is not None else None,
            confirmation_status=conf,
        )

    async def get_transaction(
        self,
        signature: str,
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Confirmed transaction details or None if not found"""
        params = [
            signature,
            {
                "commitment": commitment or self.commitment,
                "encoding": "json",
                "maxSupportedTransactionVersion": 0,
            },
        ]
        return await self.call("getTransaction", params)

    async def get_fee_for_message(
        self,
        message: bytes,
        commitment: Optional[str] = None,
    ) -> Optional[int]:
        """
        Fee in lamports for a serialized message

        Returns:
            Fee, or None when the node cannot price the message
            (e.g. its blockhash expired)
        """
        params = [
            base64.b64encode(message).decode("ascii"),
            {"commitment": commitment or self.commitment},
        ]
        result = await self.call("getFeeForMessage", params)
        value = self._value(result, "getFeeForMessage")
        return int(value) if value is not None else None

    async def get_recent_prioritization_fees(
        self,
        addresses: Optional[List[str]] = None,
    ) -> Dict[str, int]:
        """
        Recent priority fees (micro-lamports per CU) as min/median/max

        Returns zeros when the node reports no samples.
        """
        params = [addresses] if addresses else []
        result = await self.call("getRecentPrioritizationFees", params)
        if not isinstance(result, list):
            raise RpcError.invalid_response("getRecentPrioritizationFees result is not a list", self.endpoint)

        fees = sorted(int(entry.get("prioritizationFee", 0)) for entry in result)
        if not fees:
            return {"min": 0, "median": 0, "max": 0}
        return {
            "min": fees[0],
            "median": fees[len(fees) // 2],
            "max": fees[-1],
        }

    # ---------------------------------------------------------------
    # Accounts
    # ---------------------------------------------------------------

    @staticmethod
    def is_valid_address(address: str) -> bool:
        """Check that a string decodes to a 32-byte public key"""
        try:
            Pubkey.from_string(address)
            return True
        except ValueError:
            return False

    async def get_balance(
        self,
        address: str,
        commitment: Optional[str] = None,
    ) -> int:
        """Get SOL balance in lamports"""
        params = [address, {"commitment": commitment or self.commitment}]
        result = await self.call("getBalance", params)
        return int(self._value(result, "getBalance") or 0)

    async def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Account info or None if not found"""
        params = [
            address,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getAccountInfo", params)
        return result.get("value") if result else None

    async def get_token_accounts_by_owner(
        self,
        owner: str,
        mint: Optional[str] = None,
        program_id: Optional[str] = None,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Token accounts owned by address, filtered by mint or program"""
        filter_param = {}
        if mint:
            filter_param["mint"] = mint
        else:
            filter_param["programId"] = program_id or TOKEN_PROGRAM_ID

        params = [
            owner,
            filter_param,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    async def get_token_balance(self, owner: str, mint: str) -> Dict[str, Any]:
        """
        Summed SPL token balance of ``owner`` for ``mint``

        Returns:
            {"mint", "amount" (raw int), "decimals", "ui_amount" (decimal str)}.
            Zero balance when the owner holds no account for the mint.
        """
        accounts = await self.get_token_accounts_by_owner(owner, mint=mint)

        amount = 0
        decimals = 0
        for account in accounts:
            try:
                token_amount = account["account"]["data"]["parsed"]["info"]["tokenAmount"]
                amount += int(token_amount["amount"])
                decimals = int(token_amount["decimals"])
            except (KeyError, TypeError, ValueError) as e:
                raise RpcError.invalid_response(f"token account layout: {e}", self.endpoint)

        # protocols.jupiter imports infra
        from ..protocols.jupiter.quote_math import format_raw_amount

        return {
            "mint": mint,
            "amount": amount,
            "decimals": decimals,
            "ui_amount": format_raw_amount(amount, decimals),
        }

    # ---------------------------------------------------------------
    # Cluster
    # ---------------------------------------------------------------

    async def get_slot(self, commitment: Optional[str] = None) -> int:
        """Get current slot"""
        params = [{"commitment": commitment or self.commitment}]
        return await self.call("getSlot", params)

    async def get_version(self) -> Dict[str, Any]:
        return await self.call("getVersion", [])

    async def health_check(self) -> Dict[str, Any]:
        """
        Probe the endpoint with getSlot and getVersion in parallel

        Never raises; failures are reported as ``healthy: False``.
        """
        start = time.monotonic()
        try:
            slot, version = await asyncio.gather(self.get_slot(), self.get_version())
        except RpcError as e:
            logger.warning(f"RPC health check failed for {self.endpoint}: {e}")
            return {"healthy": False, "error": e.message}

        return {
            "healthy": True,
            "slot": slot,
            "version": (version or {}).get("solana-core"),
            "latency_ms": int((time.monotonic() - start) * 1000),
        }

    async def close(self):
        """Close HTTP client"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
