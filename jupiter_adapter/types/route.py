"""
Route analysis result types
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RouteHop:
    """Display view of a route step; label is never empty"""
    market_key: str
    label: str
    input_asset: str
    output_asset: str
    input_amount: int
    output_amount: int
    fee_amount: int
    fee_asset: str
    percent: int


@dataclass(frozen=True)
class RouteSummary:
    """
    Statistical view of a route plan

    Attributes:
        hop_count: Number of route steps
        dex_set: Distinct DEX labels in route order
        asset_set: Distinct assets touched in route order
        fee_totals_by_asset: Summed fee (raw) per fee asset
        split_route_count: Branches leaving the quote's input asset
        is_direct: Single hop or single branch
    """
    hop_count: int
    dex_set: Tuple[str, ...]
    asset_set: Tuple[str, ...]
    fee_totals_by_asset: Dict[str, int]
    split_route_count: int
    is_direct: bool

    def to_dict(self) -> dict:
        return {
            "hop_count": self.hop_count,
            "dex_set": list(self.dex_set),
            "asset_set": list(self.asset_set),
            "fee_totals_by_asset": {k: str(v) for k, v in self.fee_totals_by_asset.items()},
            "split_route_count": self.split_route_count,
            "is_direct": self.is_direct,
        }


@dataclass(frozen=True)
class RouteEfficiency:
    """Efficiency score (0-100) with per-label allocation"""
    efficiency_score: float
    hops_percentage_by_label: Dict[str, int]
    largest_hop_label: Optional[str]
    recommendation: str


@dataclass
class RouteFilter:
    """
    Route filter criteria; every criterion is optional

    A quote passes only if it satisfies all criteria that are set.
    """
    max_price_impact: Optional[float] = None
    max_hops: Optional[int] = None
    direct_only: bool = False
    include_dexes: List[str] = field(default_factory=list)
    exclude_dexes: List[str] = field(default_factory=list)
