"""
Jupiter route analysis

Derives display and statistical views from a quote's route plan.

Split routes are detected by steps whose input asset equals the quote's
input asset; each such step starts a parallel branch. Routes that converge
and then diverge again are not recognised as extra branches.
"""

from decimal import Decimal
from functools import cmp_to_key, reduce
from typing import Dict, Iterable, List, Optional, Sequence

from ...types import (
    Quote,
    RouteEfficiency,
    RouteFilter,
    RouteHop,
    RouteStep,
    RouteSummary,
    SwapMode,
)
from ...config import config as global_config
from .quote_math import compare_quotes, parse_price_impact

UNKNOWN_DEX_LABEL = "Unknown DEX"
NO_ROUTE = "No route found"

RECOMMENDATION_EXCELLENT = "Excellent route with minimal price impact"
RECOMMENDATION_GOOD = "Good route, acceptable price impact"
RECOMMENDATION_CAUTION = "Consider using a smaller trade size to reduce price impact"
RECOMMENDATION_HIGH_IMPACT = (
    "High price impact detected. Consider splitting the trade or waiting for better liquidity"
)


def extract_hops(quote: Quote) -> List[RouteHop]:
    """Route steps as display hops; unlabeled steps become "Unknown DEX" """
    return [
        RouteHop(
            market_key=step.market_key,
            label=step.dex_label or UNKNOWN_DEX_LABEL,
            input_asset=step.step_input_asset,
            output_asset=step.step_output_asset,
            input_amount=step.step_input_amount,
            output_amount=step.step_output_amount,
            fee_amount=step.fee_amount,
            fee_asset=step.fee_asset,
            percent=step.allocation_percent,
        )
        for step in quote.route_plan
    ]


def _split_route_count(quote: Quote) -> int:
    return sum(1 for step in quote.route_plan if step.step_input_asset == quote.input_asset)


def summarize_route(quote: Quote) -> RouteSummary:
    """
    Hop count, DEXes, assets, fee totals and split detection

    Only labeled steps contribute to ``dex_set``. ``is_direct`` holds for a
    single hop or a single branch.
    """
    dexes: Dict[str, None] = {}
    assets: Dict[str, None] = {}
    fee_totals: Dict[str, int] = {}

    for step in quote.route_plan:
        if step.dex_label:
            dexes[step.dex_label] = None
        assets[step.step_input_asset] = None
        assets[step.step_output_asset] = None
        fee_totals[step.fee_asset] = fee_totals.get(step.fee_asset, 0) + step.fee_amount

    hop_count = len(quote.route_plan)
    split_count = _split_route_count(quote)

    return RouteSummary(
        hop_count=hop_count,
        dex_set=tuple(dexes),
        asset_set=tuple(assets),
        fee_totals_by_asset=fee_totals,
        split_route_count=split_count,
        is_direct=hop_count == 1 or split_count == 1,
    )


def format_route_path(quote: Quote) -> str:
    """
    Render the route, one line per parallel branch

    Example:
        So111.. --(Orca 60%)--> EPjF..
        So111.. --(Raydium 40%)--> EPjF..
    """
    if not quote.route_plan:
        return NO_ROUTE

    branches: List[List[str]] = []
    current: List[str] = []

    for step in quote.route_plan:
        if step.step_input_asset == quote.input_asset:
            if current:
                branches.append(current)
            current = [step.step_input_asset]

        current.append(f"--({step.dex_label or 'DEX'} {step.allocation_percent}%)-->")
        current.append(step.step_output_asset)

    if current:
        branches.append(current)

    return "\n".join(" ".join(branch) for branch in branches)


def analyze_efficiency(quote: Quote) -> RouteEfficiency:
    """
    Score a route by its price impact

    score = max(0, 100 - |impact| * weight); the recommendation text is
    banded at 90/70/50. Weight and bands come from TradingConfig.
    """
    trading = global_config.trading
    impact = abs(parse_price_impact(quote.price_impact_pct))
    score = max(0.0, 100 - float(impact) * trading.efficiency_impact_weight)

    by_label: Dict[str, int] = {}
    largest: Optional[RouteStep] = None
    for step in quote.route_plan:
        label = step.dex_label or "Unknown"
        by_label[label] = by_label.get(label, 0) + step.allocation_percent
        # Strict comparison keeps the first step on ties
        if largest is None or step.allocation_percent > largest.allocation_percent:
            largest = step

    if score >= trading.efficiency_excellent:
        recommendation = RECOMMENDATION_EXCELLENT
    elif score >= trading.efficiency_good:
        recommendation = RECOMMENDATION_GOOD
    elif score >= trading.efficiency_caution:
        recommendation = RECOMMENDATION_CAUTION
    else:
        recommendation = RECOMMENDATION_HIGH_IMPACT

    return RouteEfficiency(
        efficiency_score=score,
        hops_percentage_by_label=by_label,
        largest_hop_label=(largest.dex_label or "Unknown") if largest else None,
        recommendation=recommendation,
    )


def _labels(quote: Quote) -> List[str]:
    return [step.dex_label for step in quote.route_plan if step.dex_label]


def _passes(quote: Quote, criteria: RouteFilter) -> bool:
    if criteria.max_price_impact is not None:
        if abs(parse_price_impact(quote.price_impact_pct)) > Decimal(str(criteria.max_price_impact)):
            return False

    if criteria.max_hops is not None and len(quote.route_plan) > criteria.max_hops:
        return False

    if criteria.direct_only and len(quote.route_plan) > 1:
        return False

    if criteria.include_dexes:
        if not any(label in criteria.include_dexes for label in _labels(quote)):
            return False

    if criteria.exclude_dexes:
        if any(label in criteria.exclude_dexes for label in _labels(quote)):
            return False

    return True


def filter_routes(quotes: Iterable[Quote], criteria: RouteFilter) -> List[Quote]:
    """Quotes satisfying every criterion that is set, in input order"""
    return [quote for quote in quotes if _passes(quote, criteria)]


def best_route(quotes: Sequence[Quote], swap_mode: SwapMode = SwapMode.EXACT_IN) -> Optional[Quote]:
    """
    Best quote for ``swap_mode``; the earliest wins ties

    Returns:
        Best quote, or None for an empty sequence
    """
    if not quotes:
        return None

    def pick(best: Quote, current: Quote) -> Quote:
        if swap_mode == SwapMode.EXACT_IN:
            return current if current.output_amount > best.output_amount else best
        return current if current.input_amount < best.input_amount else best

    return reduce(pick, quotes)


def rank_quotes(quotes: Sequence[Quote]) -> List[Quote]:
    """Quotes ordered best first by compare_quotes (stable for ties)"""
    return sorted(quotes, key=cmp_to_key(compare_quotes), reverse=True)


def route_fee_total(quote: Quote, fee_decimals: int = 6) -> str:
    """
    Sum of every step fee, rendered with exactly ``fee_decimals`` digits

    Fees are summed regardless of fee asset; ``fee_decimals`` defaults to
    the 6 decimals of USDC.
    """
    total = sum(step.fee_amount for step in quote.route_plan)
    whole, fraction = divmod(total, 10 ** fee_decimals)
    if fee_decimals == 0:
        return str(whole)
    return f"{whole}.{str(fraction).zfill(fee_decimals)}"


def simplify_route_path(route_plan: Sequence[RouteStep]) -> List[str]:
    """Assets in first-seen order across the route plan"""
    path: Dict[str, None] = {}
    for step in route_plan:
        path[step.step_input_asset] = None
        path[step.step_output_asset] = None
    return list(path)
