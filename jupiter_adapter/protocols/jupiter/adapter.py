"""
Jupiter Swap Adapter

Orchestrates a swap end to end: quote -> evaluate -> swap transaction ->
sign -> (simulate) -> submit -> confirm.

Jupiter is an aggregator; the swap transaction arrives pre-assembled from
the quote API, so no instruction encoding happens here.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ...types import (
    PriceImpactSeverity,
    PriorityFeeConfig,
    PriorityFeeLevel,
    Quote,
    QuoteRequest,
    RouteEfficiency,
    RouteSummary,
    TransactionResult,
)
from ...infra import RpcClient, Signer, TransactionManager
from ...infra.retry import CorrelationContext, log_with_correlation
from ...errors import SimulationFailure, SigningUnavailable

from .api import JupiterAPI
from .quote_math import (
    classify_price_impact,
    ensure_price_impact_within,
    minimum_output,
    recommended_slippage_bps,
)
from .routes import analyze_efficiency, best_route, format_route_path, summarize_route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuoteEvaluation:
    """Everything the adapter derives from a quote before executing it"""
    quote: Quote
    summary: RouteSummary
    efficiency: RouteEfficiency
    severity: PriceImpactSeverity
    recommended_slippage_bps: int
    minimum_output: str
    route_path: str

    def to_dict(self) -> dict:
        return {
            "quote": self.quote.to_dict(),
            "summary": self.summary.to_dict(),
            "efficiency_score": self.efficiency.efficiency_score,
            "recommendation": self.efficiency.recommendation,
            "severity": self.severity.value,
            "recommended_slippage_bps": self.recommended_slippage_bps,
            "minimum_output": self.minimum_output,
            "route_path": self.route_path,
        }


class JupiterAdapter:
    """
    Jupiter Swap Adapter

    Usage:
        rpc = RpcClient("https://api.mainnet-beta.solana.com")
        signer = LocalSigner(keypair)
        adapter = JupiterAdapter(rpc, signer)

        quote = await adapter.quote(QuoteRequest(SOL_MINT, USDC_MINT, "1000000000"))
        result = await adapter.execute_quote(quote)
    """

    name = "jupiter"

    def __init__(
        self,
        rpc: RpcClient,
        signer: Optional[Signer] = None,
        api: Optional[JupiterAPI] = None,
        tx_manager: Optional[TransactionManager] = None,
    ):
        """
        Initialize Jupiter adapter

        Args:
            rpc: RPC client
            signer: Optional signer for executing swaps
            api: Quote API client (default from config)
            tx_manager: Transaction manager (built from rpc and signer if omitted)
        """
        self._rpc = rpc
        self._api = api or JupiterAPI()
        self._tx_manager = tx_manager or TransactionManager(rpc, signer)

    @property
    def api(self) -> JupiterAPI:
        return self._api

    @property
    def tx_manager(self) -> TransactionManager:
        return self._tx_manager

    @property
    def pubkey(self) -> Optional[str]:
        """Signer public key if available"""
        return self._tx_manager.pubkey if self._tx_manager.has_signer else None

    async def quote(self, request: QuoteRequest) -> Quote:
        """Get a single quote (validated before sending)"""
        return await self._api.get_quote(request)

    async def quote_many(self, requests: Sequence[QuoteRequest]) -> List[Union[Quote, BaseException]]:
        """
        Request several quotes concurrently

        One failure never cancels its siblings; each slot holds either the
        Quote or the exception raised for that request, in input order.
        """
        return await asyncio.gather(
            *(self._api.get_quote(request) for request in requests),
            return_exceptions=True,
        )

    async def best_quote(self, requests: Sequence[QuoteRequest]) -> Quote:
        """
        Best quote among concurrent requests

        Raises:
            The first request's error when no request produced a quote
        """
        results = await self.quote_many(requests)
        quotes = [r for r in results if isinstance(r, Quote)]
        failures = [r for r in results if not isinstance(r, Quote)]

        for error in failures:
            logger.warning(f"Quote request failed: {error}")

        if not quotes:
            if failures:
                raise failures[0]
            raise ValueError("No quote requests given")

        return best_route(quotes, quotes[0].swap_mode)

    def evaluate(self, quote: Quote) -> QuoteEvaluation:
        """Summarize, score and classify a quote"""
        return QuoteEvaluation(
            quote=quote,
            summary=summarize_route(quote),
            efficiency=analyze_efficiency(quote),
            severity=classify_price_impact(quote.price_impact_pct),
            recommended_slippage_bps=recommended_slippage_bps(quote.price_impact_pct),
            minimum_output=minimum_output(quote.output_amount, quote.slippage_bps),
            route_path=format_route_path(quote),
        )

    async def execute_quote(
        self,
        quote: Quote,
        simulate_first: bool = False,
        max_price_impact_pct: Optional[float] = None,
        priority_level: Optional[PriorityFeeLevel] = None,
        wrap_and_unwrap_sol: bool = True,
        as_legacy_transaction: bool = False,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """
        Execute a previously fetched quote

        Args:
            quote: Quote to execute
            simulate_first: Dry-run the signed transaction before sending
            max_price_impact_pct: Price impact ceiling (default from config)
            priority_level: Priority fee level (default from tx config)
            wrap_and_unwrap_sol: Auto wrap/unwrap native SOL
            as_legacy_transaction: Ask the API for a legacy transaction
            timeout: Confirmation timeout in seconds

        Returns:
            TransactionResult; a confirmation timeout is reported here

        Raises:
            SigningUnavailable: No signer configured
            InvalidRequest: Price impact above the ceiling
            SimulationFailure: simulate_first is set and the dry run fails
        """
        with CorrelationContext("swap"):
            return await self._execute(
                quote,
                simulate_first=simulate_first,
                max_price_impact_pct=max_price_impact_pct,
                priority_level=priority_level,
                wrap_and_unwrap_sol=wrap_and_unwrap_sol,
                as_legacy_transaction=as_legacy_transaction,
                timeout=timeout,
            )

    async def _execute(
        self,
        quote: Quote,
        simulate_first: bool,
        max_price_impact_pct: Optional[float],
        priority_level: Optional[PriorityFeeLevel],
        wrap_and_unwrap_sol: bool,
        as_legacy_transaction: bool,
        timeout: Optional[float],
    ) -> TransactionResult:
        if not self._tx_manager.has_signer:
            raise SigningUnavailable()

        ensure_price_impact_within(quote, max_price_impact_pct)

        if priority_level is None:
            priority = self._tx_manager.config.priority
        else:
            priority = PriorityFeeConfig.from_level(priority_level, self._tx_manager.config.compute_units)

        swap_tx = await self._api.get_swap_transaction(
            quote,
            self._tx_manager.pubkey,
            wrap_and_unwrap_sol=wrap_and_unwrap_sol,
            compute_unit_price_micro_lamports=priority.micro_lamports or None,
            as_legacy_transaction=as_legacy_transaction,
        )
        log_with_correlation(
            logging.INFO,
            f"Swap transaction ready ({len(swap_tx.raw)} bytes, "
            f"valid until block {swap_tx.last_valid_block_height})",
            "swap.build",
        )

        signed = self._tx_manager.sign(swap_tx.raw)

        if simulate_first:
            sim = await self._tx_manager.simulate(signed)
            if not sim.success:
                log_with_correlation(logging.ERROR, f"Simulation failed: {sim.error}", "swap.simulate")
                raise SimulationFailure(sim.error or "unknown error", sim.logs)

        result = await self._tx_manager.send_and_confirm(signed, timeout=timeout)

        level = logging.INFO if result.confirmed else logging.ERROR
        log_with_correlation(level, f"Swap finished: {result}", "swap.confirm")
        return result

    async def swap(
        self,
        request: QuoteRequest,
        simulate_first: bool = False,
        max_price_impact_pct: Optional[float] = None,
        priority_level: Optional[PriorityFeeLevel] = None,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """
        Quote, evaluate and execute in one call

        The quote is rejected before any transaction is requested when its
        price impact exceeds the ceiling.
        """
        if not self._tx_manager.has_signer:
            raise SigningUnavailable()

        with CorrelationContext("swap"):
            quote = await self._api.get_quote(request)
            evaluation = self.evaluate(quote)
            log_with_correlation(
                logging.INFO,
                f"Quote {quote.input_amount} -> {quote.output_amount} "
                f"(impact {quote.price_impact_pct}%, {evaluation.severity.value}, "
                f"min out {evaluation.minimum_output}, hops {evaluation.summary.hop_count})",
                "swap.quote",
            )

            return await self._execute(
                quote,
                simulate_first=simulate_first,
                max_price_impact_pct=max_price_impact_pct,
                priority_level=priority_level,
                wrap_and_unwrap_sol=True,
                as_legacy_transaction=request.as_legacy_transaction,
                timeout=timeout,
            )

    async def close(self):
        await self._api.close()
