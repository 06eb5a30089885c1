"""
Swap Module

Display-unit facade over JupiterAdapter: tokens are given by symbol or mint,
amounts in UI units ("1.5" SOL), and results come back the same way.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Optional, Union

if TYPE_CHECKING:
    from ..client import JupiterClient

from ..types import (
    PriorityFeeLevel,
    Quote,
    QuoteRequest,
    SwapMode,
    TransactionResult,
    get_token_decimals,
    get_token_symbol,
    resolve_token_mint,
)
from ..protocols.jupiter import JupiterAdapter, QuoteEvaluation
from ..protocols.jupiter.quote_math import format_raw_amount, parse_display_amount
from ..errors import InvalidRequest, SigningUnavailable
from ..config import config

logger = logging.getLogger(__name__)

Amount = Union[str, int, Decimal]


class SwapModule:
    """
    Token swap module (Solana, via Jupiter)

    Usage:
        quote = await client.swap.quote("SOL", "USDC", "1.0")
        print(await client.swap.describe(quote))
        result = await client.swap.execute(quote)

        # Or in one call
        result = await client.swap.swap("SOL", "USDC", "1.0", slippage_bps=50)
    """

    def __init__(self, client: "JupiterClient", adapter: Optional[JupiterAdapter] = None):
        """
        Initialize swap module

        Args:
            client: JupiterClient instance
            adapter: Pre-built adapter (built from the client if omitted)
        """
        self._client = client
        self._adapter = adapter
        # Decimals learned from chain, on top of the static registry
        self._mint_decimals: Dict[str, int] = {}

    @property
    def adapter(self) -> JupiterAdapter:
        """Get or create Jupiter adapter"""
        if self._adapter is None:
            self._adapter = JupiterAdapter(
                self._client.rpc,
                api=self._client.api,
                tx_manager=self._client.tx_manager,
            )
        return self._adapter

    async def get_decimals(self, token: str) -> int:
        """
        Decimals for a token symbol or mint

        Known mints come from the registry; others are read from the mint
        account on chain and cached.

        Raises:
            InvalidRequest: The address is not an SPL token mint
        """
        mint = resolve_token_mint(token)

        decimals = get_token_decimals(mint)
        if decimals is not None:
            return decimals
        if mint in self._mint_decimals:
            return self._mint_decimals[mint]

        account = await self._client.rpc.get_account_info(mint, encoding="jsonParsed")
        try:
            decimals = int(account["data"]["parsed"]["info"]["decimals"])
        except (KeyError, TypeError, ValueError):
            raise InvalidRequest.from_errors([f"Not a token mint: {token}"])

        logger.debug(f"Decimals for {mint[:8]}... from chain: {decimals}")
        self._mint_decimals[mint] = decimals
        return decimals

    async def quote(
        self,
        from_token: str,
        to_token: str,
        amount: Amount,
        slippage_bps: Optional[int] = None,
        swap_mode: SwapMode = SwapMode.EXACT_IN,
        only_direct_routes: bool = False,
    ) -> Quote:
        """
        Get swap quote

        Args:
            from_token: Input token (symbol or mint)
            to_token: Output token (symbol or mint)
            amount: Amount in UI units; of the input token for ExactIn, of
                the output token for ExactOut
            slippage_bps: Slippage tolerance (default from config)
            swap_mode: ExactIn or ExactOut
            only_direct_routes: Restrict to single-hop routes

        Returns:
            Quote (raw amounts)
        """
        input_mint = resolve_token_mint(from_token)
        output_mint = resolve_token_mint(to_token)

        amount_token = input_mint if swap_mode == SwapMode.EXACT_IN else output_mint
        raw_amount = parse_display_amount(amount, await self.get_decimals(amount_token))

        request = QuoteRequest(
            input_asset=input_mint,
            output_asset=output_mint,
            amount=raw_amount,
            slippage_bps=slippage_bps if slippage_bps is not None else config.trading.default_slippage_bps,
            swap_mode=swap_mode,
            only_direct_routes=only_direct_routes,
        )
        return await self.adapter.quote(request)

    def evaluate(self, quote: Quote) -> QuoteEvaluation:
        return self.adapter.evaluate(quote)

    async def describe(self, quote: Quote) -> Dict[str, str]:
        """Quote amounts in UI units with symbols where known"""
        in_decimals = await self.get_decimals(quote.input_asset)
        out_decimals = await self.get_decimals(quote.output_asset)
        evaluation = self.adapter.evaluate(quote)

        return {
            "input_token": get_token_symbol(quote.input_asset) or quote.input_asset,
            "output_token": get_token_symbol(quote.output_asset) or quote.output_asset,
            "input_amount": format_raw_amount(quote.input_amount, in_decimals),
            "output_amount": format_raw_amount(quote.output_amount, out_decimals),
            "minimum_output": format_raw_amount(evaluation.minimum_output, out_decimals),
            "price_impact_pct": quote.price_impact_pct,
            "severity": evaluation.severity.value,
            "route": evaluation.route_path,
        }

    async def execute(
        self,
        quote: Quote,
        simulate_first: bool = False,
        priority_level: Optional[PriorityFeeLevel] = None,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """Execute a previously fetched quote"""
        return await self.adapter.execute_quote(
            quote,
            simulate_first=simulate_first,
            priority_level=priority_level,
            timeout=timeout,
        )

    async def swap(
        self,
        from_token: str,
        to_token: str,
        amount: Amount,
        slippage_bps: Optional[int] = None,
        simulate_first: bool = False,
        priority_level: Optional[PriorityFeeLevel] = None,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """
        Quote and execute in one call

        Returns:
            TransactionResult (confirmation timeout is reported, not raised)

        Raises:
            SigningUnavailable: Read-only client; nothing is quoted
        """
        if self.adapter.pubkey is None:
            raise SigningUnavailable()

        quote = await self.quote(from_token, to_token, amount, slippage_bps=slippage_bps)
        logger.info(
            f"Swapping {amount} {from_token} -> {to_token} "
            f"(impact {quote.price_impact_pct}%, slippage {quote.slippage_bps} bps)"
        )
        return await self.execute(
            quote,
            simulate_first=simulate_first,
            priority_level=priority_level,
            timeout=timeout,
        )

    async def program_labels(self) -> Dict[str, str]:
        """DEX program id -> label, as reported by Jupiter"""
        return await self.adapter.api.get_program_id_to_label()
