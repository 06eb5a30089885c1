"""
Jupiter API Client

Async REST client for the Jupiter swap aggregator (the quote source).
"""

import base64
import json
import logging
from typing import Any, Dict, Optional, Union

import httpx

from ...types import Quote, QuoteRequest, SwapTransaction
from ...config import config as global_config
from ...errors import InvalidRequest, RateLimited, TransportFailure
from ...infra.retry import RetryPolicy, send_with_rate_limit
from .quote_math import build_quote_params, validate_quote_request

logger = logging.getLogger(__name__)


class JupiterAPI:
    """
    Jupiter REST API client

    Provides:
    - Swap quotes
    - Swap transaction building
    - Program id to DEX label mapping

    HTTP 429 answers are retried through the shared RetryPolicy; every other
    failure is mapped onto the adapter's error taxonomy.

    Usage:
        async with JupiterAPI() as api:
            quote = await api.get_quote(QuoteRequest(SOL_MINT, USDC_MINT, "1000000000"))
            swap_tx = await api.get_swap_transaction(quote, user_pubkey)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Jupiter API client

        Args:
            base_url: API base URL (default from config)
            api_key: Bearer token sent with every request, if any
            timeout: Request timeout in seconds (default from config)
            retry_policy: 429 handling policy (default from config)
            http_client: Pre-built httpx client (not closed by this client)
        """
        base_url = base_url if base_url is not None else global_config.jupiter.api_url
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key if api_key is not None else global_config.jupiter.api_key
        self._timeout = timeout if timeout is not None else global_config.jupiter.timeout
        self._retry_policy = retry_policy or RetryPolicy()
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body"""
        client = self._get_client()
        url = f"{self._base_url}{path}"
        headers = self._headers()

        try:
            response = await send_with_rate_limit(
                lambda: client.request(method, url, params=params, json=body, headers=headers),
                self._retry_policy,
                url,
                f"jupiter.{path.strip('/')}",
            )
        except httpx.TimeoutException:
            logger.warning(f"Jupiter API timeout: {url}")
            raise TransportFailure.timeout(url, self._timeout)
        except httpx.RequestError as e:
            logger.warning(f"Jupiter API connection error: {e}")
            raise TransportFailure.connection_failed(url, e)

        if response.is_error:
            raise self._map_error(response, url)

        try:
            return response.json()
        except ValueError as e:
            raise TransportFailure.invalid_response(f"body is not JSON: {e}", url)

    @staticmethod
    def _map_error(response: httpx.Response, url: str) -> Exception:
        """Translate an error response into an adapter error"""
        try:
            data = response.json()
        except ValueError:
            data = None

        message = data.get("message") if isinstance(data, dict) else None
        status = response.status_code
        logger.warning(f"Jupiter API error {status} from {url}: {message or response.text[:200]}")

        if status == 429:
            return RateLimited(endpoint=url)
        if status == 400:
            detail = message if message else json.dumps(data) if data is not None else response.text
            return InvalidRequest(f"Invalid request: {detail}", errors=[str(detail)])
        if message:
            return TransportFailure(f"Jupiter API Error: {message}", endpoint=url)
        return TransportFailure(
            f"Jupiter API Error: Request failed with status code {status}",
            endpoint=url,
        )

    async def get_quote(self, request: QuoteRequest) -> Quote:
        """
        Get swap quote

        The request is validated before anything is sent; every violated
        rule is reported at once.

        Args:
            request: Quote parameters (raw amounts)

        Returns:
            Parsed Quote

        Raises:
            InvalidRequest: Bad parameters, or the API rejected the request
            RateLimited: 429 persisted past the retry policy
            TransportFailure: Network failure or malformed response
        """
        validate_quote_request(request).raise_for_errors()

        params = build_quote_params(request)
        logger.debug(f"Quote request: {params}")

        data = await self._request("GET", "/quote", params=params)
        quote = Quote.from_api(data)

        logger.info(
            f"Jupiter quote: {quote.input_amount} {quote.input_asset[:8]}... -> "
            f"{quote.output_amount} {quote.output_asset[:8]}... "
            f"(impact: {quote.price_impact_pct}%, hops: {len(quote.route_plan)})"
        )
        return quote

    async def get_swap_transaction(
        self,
        quote: Quote,
        user_pubkey: str,
        wrap_and_unwrap_sol: bool = True,
        prioritization_fee_lamports: Optional[Union[int, str]] = None,
        compute_unit_price_micro_lamports: Optional[int] = None,
        as_legacy_transaction: bool = False,
        dynamic_compute_unit_limit: bool = True,
        skip_user_accounts_rpc_calls: bool = False,
        fee_account: Optional[str] = None,
        tracking_account: Optional[str] = None,
        destination_token_account: Optional[str] = None,
    ) -> SwapTransaction:
        """
        Get the pre-assembled, unsigned swap transaction for a quote

        Args:
            quote: Quote from get_quote()
            user_pubkey: Wallet that signs and pays
            wrap_and_unwrap_sol: Auto wrap/unwrap native SOL
            prioritization_fee_lamports: Fixed fee in lamports, or "auto"
            compute_unit_price_micro_lamports: Explicit compute unit price
            as_legacy_transaction: Ask for a legacy transaction
            dynamic_compute_unit_limit: Let the API size the compute limit
            skip_user_accounts_rpc_calls: Skip the API's account lookups
            fee_account: Platform fee token account
            tracking_account: Account used for volume tracking
            destination_token_account: Custom output token account

        Returns:
            SwapTransaction with the raw unsigned bytes
        """
        body: Dict[str, Any] = {
            "quoteResponse": quote.to_api(),
            "userPublicKey": user_pubkey,
            "wrapAndUnwrapSol": wrap_and_unwrap_sol,
            "asLegacyTransaction": as_legacy_transaction,
            "dynamicComputeUnitLimit": dynamic_compute_unit_limit,
            "skipUserAccountsRpcCalls": skip_user_accounts_rpc_calls,
        }
        if prioritization_fee_lamports is not None:
            body["prioritizationFeeLamports"] = prioritization_fee_lamports
        if compute_unit_price_micro_lamports is not None:
            body["computeUnitPriceMicroLamports"] = compute_unit_price_micro_lamports
        if fee_account:
            body["feeAccount"] = fee_account
        if tracking_account:
            body["trackingAccount"] = tracking_account
        if destination_token_account:
            body["destinationTokenAccount"] = destination_token_account

        data = await self._request("POST", "/swap", body=body)

        if not isinstance(data, dict) or not isinstance(data.get("swapTransaction"), str):
            raise TransportFailure.invalid_response("swap response without swapTransaction")

        try:
            raw = base64.b64decode(data["swapTransaction"], validate=True)
        except ValueError as e:
            raise TransportFailure.invalid_response(f"swapTransaction is not base64: {e}")

        logger.debug(f"Swap transaction received: {len(raw)} bytes")
        return SwapTransaction(
            raw=raw,
            last_valid_block_height=data.get("lastValidBlockHeight"),
            prioritization_fee_lamports=data.get("prioritizationFeeLamports"),
        )

    async def get_program_id_to_label(self) -> Dict[str, str]:
        """Map of DEX program id -> human readable label"""
        data = await self._request("GET", "/program-id-to-label")
        if not isinstance(data, dict):
            raise TransportFailure.invalid_response("program-id-to-label is not an object")
        return data

    async def close(self):
        """Close HTTP client"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
