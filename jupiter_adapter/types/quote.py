"""
Quote type definitions

Parsed, validated views of the quote API payloads. Amounts are kept as
Python ints in the smallest token unit and serialized back as decimal
strings, never floats.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import InvalidRequest, TransportFailure

MAX_BPS = 10_000


class PriceImpactSeverity(Enum):
    """Price impact bands: <0.1%, <1%, <5%, >=5%"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class SwapMode(str, Enum):
    """Which side of the swap is fixed"""
    EXACT_IN = "ExactIn"
    EXACT_OUT = "ExactOut"

    @classmethod
    def from_string(cls, value: Union[str, "SwapMode"]) -> "SwapMode":
        if isinstance(value, SwapMode):
            return value
        for mode in cls:
            if mode.value.lower() == str(value).lower():
                return mode
        raise InvalidRequest.from_errors([f"Unknown swap mode: {value}"])


def _to_int(value: Any, name: str) -> int:
    """Parse an amount field that the API sends as a decimal string"""
    if isinstance(value, bool) or value is None:
        raise TransportFailure.invalid_response(f"'{name}' is missing or not an integer")
    try:
        return int(str(value))
    except ValueError:
        raise TransportFailure.invalid_response(f"'{name}' is not an integer: {value!r}")


@dataclass(frozen=True)
class RouteStep:
    """
    One hop of a route plan

    Steps whose input asset equals the quote's input asset start a parallel
    branch; ``allocation_percent`` is that branch's share (0-100).
    """
    market_key: str
    dex_label: Optional[str]
    step_input_asset: str
    step_output_asset: str
    step_input_amount: int
    step_output_amount: int
    fee_amount: int
    fee_asset: str
    allocation_percent: int

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RouteStep":
        if not isinstance(data, dict) or not isinstance(data.get("swapInfo"), dict):
            raise TransportFailure.invalid_response("route plan step without swapInfo")
        info = data["swapInfo"]
        try:
            percent = int(data.get("percent", 100))
            return cls(
                market_key=str(info.get("ammKey", "")),
                dex_label=info.get("label") or None,
                step_input_asset=str(info["inputMint"]),
                step_output_asset=str(info["outputMint"]),
                step_input_amount=_to_int(info.get("inAmount"), "inAmount"),
                step_output_amount=_to_int(info.get("outAmount"), "outAmount"),
                fee_amount=_to_int(info.get("feeAmount", 0), "feeAmount"),
                fee_asset=str(info.get("feeMint", "")),
                allocation_percent=percent,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransportFailure.invalid_response(f"route plan step: {e}")

    def to_api(self) -> Dict[str, Any]:
        info = {
            "ammKey": self.market_key,
            "inputMint": self.step_input_asset,
            "outputMint": self.step_output_asset,
            "inAmount": str(self.step_input_amount),
            "outAmount": str(self.step_output_amount),
            "feeAmount": str(self.fee_amount),
            "feeMint": self.fee_asset,
        }
        if self.dex_label:
            info["label"] = self.dex_label
        return {"swapInfo": info, "percent": self.allocation_percent}


@dataclass(frozen=True)
class PlatformFee:
    """Integrator fee charged on top of the route"""
    amount: int
    fee_bps: int


@dataclass(frozen=True)
class Quote:
    """
    Immutable swap quote

    Attributes:
        input_asset: Input token mint
        output_asset: Output token mint
        input_amount: Input amount (raw)
        output_amount: Output amount (raw)
        other_amount_threshold: Min out (ExactIn) or max in (ExactOut) after slippage
        swap_mode: ExactIn or ExactOut
        slippage_bps: Slippage tolerance in basis points (0-10000)
        price_impact_pct: Price impact percentage as a decimal string
        route_plan: Ordered route steps
        platform_fee: Optional integrator fee
        raw_response: Original API payload, passed back verbatim when
            requesting the swap transaction
    """
    input_asset: str
    output_asset: str
    input_amount: int
    output_amount: int
    other_amount_threshold: int
    swap_mode: SwapMode
    slippage_bps: int
    price_impact_pct: str
    route_plan: Tuple[RouteStep, ...] = ()
    platform_fee: Optional[PlatformFee] = None
    context_slot: Optional[int] = None
    time_taken: Optional[float] = None
    raw_response: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        errors = []
        if self.input_asset == self.output_asset:
            errors.append("Input and output tokens must be different")
        if not 0 <= self.slippage_bps <= MAX_BPS:
            errors.append("Slippage must be between 0 and 10000 basis points")
        if errors:
            raise InvalidRequest.from_errors(errors)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Quote":
        """
        Parse a quote API response

        Raises:
            TransportFailure: If required fields are missing or malformed
            InvalidRequest: If the parsed quote violates quote invariants
        """
        if not isinstance(data, dict):
            raise TransportFailure.invalid_response("quote response is not an object")

        try:
            input_asset = str(data["inputMint"])
            output_asset = str(data["outputMint"])
            slippage_bps = int(data.get("slippageBps", 0))
            price_impact = str(data.get("priceImpactPct", "0"))
        except (KeyError, TypeError, ValueError) as e:
            raise TransportFailure.invalid_response(f"quote: {e}")

        route_plan = data.get("routePlan") or []
        if not isinstance(route_plan, list):
            raise TransportFailure.invalid_response("routePlan is not a list")

        platform_fee = None
        fee_data = data.get("platformFee")
        if isinstance(fee_data, dict):
            platform_fee = PlatformFee(
                amount=_to_int(fee_data.get("amount", 0), "platformFee.amount"),
                fee_bps=_to_int(fee_data.get("feeBps", 0), "platformFee.feeBps"),
            )

        return cls(
            input_asset=input_asset,
            output_asset=output_asset,
            input_amount=_to_int(data.get("inAmount"), "inAmount"),
            output_amount=_to_int(data.get("outAmount"), "outAmount"),
            other_amount_threshold=_to_int(
                data.get("otherAmountThreshold", data.get("outAmount")), "otherAmountThreshold"
            ),
            swap_mode=SwapMode.from_string(data.get("swapMode", SwapMode.EXACT_IN.value)),
            slippage_bps=slippage_bps,
            price_impact_pct=price_impact,
            route_plan=tuple(RouteStep.from_api(step) for step in route_plan),
            platform_fee=platform_fee,
            context_slot=data.get("contextSlot"),
            time_taken=data.get("timeTaken"),
            raw_response=data,
        )

    def to_api(self) -> Dict[str, Any]:
        """Payload for the swap endpoint (the original response when available)"""
        if self.raw_response is not None:
            return self.raw_response
        data: Dict[str, Any] = {
            "inputMint": self.input_asset,
            "outputMint": self.output_asset,
            "inAmount": str(self.input_amount),
            "outAmount": str(self.output_amount),
            "otherAmountThreshold": str(self.other_amount_threshold),
            "swapMode": self.swap_mode.value,
            "slippageBps": self.slippage_bps,
            "priceImpactPct": self.price_impact_pct,
            "routePlan": [step.to_api() for step in self.route_plan],
            "platformFee": None,
        }
        if self.platform_fee is not None:
            data["platformFee"] = {
                "amount": str(self.platform_fee.amount),
                "feeBps": self.platform_fee.fee_bps,
            }
        if self.context_slot is not None:
            data["contextSlot"] = self.context_slot
        return data

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view with snake_case keys"""
        return {
            "input_asset": self.input_asset,
            "output_asset": self.output_asset,
            "input_amount": str(self.input_amount),
            "output_amount": str(self.output_amount),
            "other_amount_threshold": str(self.other_amount_threshold),
            "swap_mode": self.swap_mode.value,
            "slippage_bps": self.slippage_bps,
            "price_impact_pct": self.price_impact_pct,
            "route_plan": [
                {
                    "market_key": step.market_key,
                    "dex_label": step.dex_label,
                    "step_input_asset": step.step_input_asset,
                    "step_output_asset": step.step_output_asset,
                    "step_input_amount": str(step.step_input_amount),
                    "step_output_amount": str(step.step_output_amount),
                    "fee_amount": str(step.fee_amount),
                    "fee_asset": step.fee_asset,
                    "allocation_percent": step.allocation_percent,
                }
                for step in self.route_plan
            ],
            "platform_fee": (
                {"amount": str(self.platform_fee.amount), "fee_bps": self.platform_fee.fee_bps}
                if self.platform_fee else None
            ),
        }

    def __str__(self) -> str:
        return (
            f"Quote({self.input_amount} {self.input_asset[:6]}.. -> "
            f"{self.output_amount} {self.output_asset[:6]}.., impact={self.price_impact_pct}%)"
        )


@dataclass
class QuoteRequest:
    """
    Parameters accepted by the quote source

    Not validated on construction; pass through validate_quote_request().
    """
    input_asset: str
    output_asset: str
    amount: Union[str, int]
    slippage_bps: Optional[int] = None
    swap_mode: Optional[SwapMode] = None
    dexes: List[str] = field(default_factory=list)
    exclude_dexes: List[str] = field(default_factory=list)
    only_direct_routes: bool = False
    as_legacy_transaction: bool = False
    platform_fee_bps: Optional[int] = None
    max_accounts: Optional[int] = None
    auto_slippage: bool = False
    auto_slippage_collision_usd_value: Optional[int] = None
    restrict_intermediate_tokens: bool = False


@dataclass(frozen=True)
class QuoteValidation:
    """Outcome of validate_quote_request(); lists every violated rule"""
    valid: bool
    errors: Tuple[str, ...] = ()

    def raise_for_errors(self):
        if not self.valid:
            raise InvalidRequest.from_errors(list(self.errors))
