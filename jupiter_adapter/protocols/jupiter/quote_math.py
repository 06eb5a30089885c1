"""
Jupiter Quote Math Utilities

Pure functions over quotes: unit conversion, slippage math, minimum output,
price impact classification and quote ranking.

Token amounts are handled as Python ints (arbitrary precision) and decimal
strings; floats are never used for amounts.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Optional, Union

from ...types import (
    MAX_BPS,
    PriceImpactSeverity,
    Quote,
    QuoteRequest,
    QuoteValidation,
    SwapMode,
)
from ...errors import InvalidRequest
from ...config import config as global_config

Number = Union[int, float, str, Decimal]


def _to_decimal(value: Number, name: str) -> Decimal:
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidRequest.from_errors([f"{name} is not a number: {value!r}"])
    if not result.is_finite():
        raise InvalidRequest.from_errors([f"{name} is not a finite number: {value!r}"])
    return result


def parse_price_impact(price_impact_pct: Number) -> Decimal:
    """Price impact percentage as a Decimal (sign kept)"""
    return _to_decimal(price_impact_pct, "Price impact")


def _check_bps(bps: int, name: str = "Slippage"):
    if not 0 <= bps <= MAX_BPS:
        raise InvalidRequest.from_errors([f"{name} must be between 0 and 10000 basis points"])


def percentage_to_bps(percentage: Number) -> int:
    """
    Convert a percentage to basis points (0.5 -> 50)

    Rounds half away from zero; fractional basis points are lost.
    """
    bps = _to_decimal(percentage, "Percentage") * 100
    return int(bps.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def bps_to_percentage(bps: int) -> float:
    """Convert basis points to a percentage (50 -> 0.5)"""
    return bps / 100


def format_raw_amount(raw: Union[int, str], decimals: int) -> str:
    """
    Format a raw amount (smallest unit) for display

    Trailing fractional zeros are dropped, and so is the decimal point
    when nothing remains after it.

    Args:
        raw: Raw amount
        decimals: Token decimals

    Returns:
        Display string, e.g. format_raw_amount(1_500_000, 6) -> "1.5"
    """
    try:
        amount = int(raw)
    except (TypeError, ValueError):
        raise InvalidRequest.from_errors([f"Raw amount is not an integer: {raw!r}"])
    if amount < 0:
        raise InvalidRequest.from_errors(["Raw amount must not be negative"])
    if decimals < 0:
        raise InvalidRequest.from_errors(["Decimals must not be negative"])

    whole, fraction = divmod(amount, 10 ** decimals)
    if fraction == 0:
        return str(whole)

    fraction_str = str(fraction).zfill(decimals).rstrip("0")
    return f"{whole}.{fraction_str}"


def parse_display_amount(display: Union[str, int, float, Decimal], decimals: int) -> str:
    """
    Parse a display amount into a raw amount string

    The fractional part is padded or truncated to exactly ``decimals``
    digits, so precision beyond the token's decimals is dropped.

    Args:
        display: Human readable amount, e.g. "1.5"
        decimals: Token decimals

    Returns:
        Raw amount string, e.g. parse_display_amount("1.5", 6) -> "1500000"
    """
    if decimals < 0:
        raise InvalidRequest.from_errors(["Decimals must not be negative"])

    if isinstance(display, (float, Decimal)):
        text = format(Decimal(str(display)), "f")
    else:
        text = str(display).strip()

    whole, _, fraction = text.partition(".")
    if not (whole + fraction).isdecimal():
        raise InvalidRequest.from_errors([f"Amount is not a non-negative decimal: {display!r}"])

    padded_fraction = fraction.ljust(decimals, "0")[:decimals]
    raw = (whole + padded_fraction).lstrip("0")
    return raw or "0"


def classify_price_impact(price_impact_pct: Number) -> PriceImpactSeverity:
    """
    Band a price impact percentage

    <0.1 low, <1 medium, <5 high, otherwise very high. The sign is ignored,
    and each lower bound belongs to its band (0.1 is medium).
    """
    impact = abs(parse_price_impact(price_impact_pct))

    if impact < Decimal("0.1"):
        return PriceImpactSeverity.LOW
    if impact < 1:
        return PriceImpactSeverity.MEDIUM
    if impact < 5:
        return PriceImpactSeverity.HIGH
    return PriceImpactSeverity.VERY_HIGH


def _amount_is_positive(amount) -> bool:
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and value > 0


def validate_quote_request(request: QuoteRequest) -> QuoteValidation:
    """
    Check a quote request, collecting every violated rule

    Returns:
        QuoteValidation(valid, errors) - errors lists all problems found
    """
    errors = []

    if not request.input_asset:
        errors.append("Input mint address is required")

    if not request.output_asset:
        errors.append("Output mint address is required")

    if request.amount is None or str(request.amount).strip() == "":
        errors.append("Amount is required")
    elif not _amount_is_positive(request.amount):
        errors.append("Amount must be a positive number")

    if request.input_asset and request.output_asset and request.input_asset == request.output_asset:
        errors.append("Input and output tokens must be different")

    for name, bps in (("Slippage", request.slippage_bps), ("Platform fee", request.platform_fee_bps)):
        if bps is None:
            continue
        if isinstance(bps, bool) or not isinstance(bps, int):
            errors.append(f"{name} must be a whole number of basis points")
        elif not 0 <= bps <= MAX_BPS:
            errors.append(f"{name} must be between 0 and 10000 basis points")

    return QuoteValidation(valid=not errors, errors=tuple(errors))


def minimum_output(output_amount: Union[int, str], slippage_bps: int) -> str:
    """
    Least output guaranteed after slippage

    Floor division, so the result never exceeds what
    ``slippage_bps`` allows.

    Returns:
        Raw amount string
    """
    _check_bps(slippage_bps)
    amount = int(output_amount)
    return str(amount * (MAX_BPS - slippage_bps) // MAX_BPS)


def recommended_slippage_bps(
    price_impact_pct: Number,
    low_bps: Optional[int] = None,
    medium_bps: Optional[int] = None,
    high_bps: Optional[int] = None,
    very_high_bps: Optional[int] = None,
) -> int:
    """
    Slippage suggestion by price impact tier

    <0.1% -> low, <0.5% -> medium, <2% -> high, else very high. Tier values
    default to TradingConfig (10/50/100/500 bps); they are tuning
    constants, not a market model.
    """
    trading = global_config.trading
    impact = abs(parse_price_impact(price_impact_pct))

    if impact < Decimal("0.1"):
        return low_bps if low_bps is not None else trading.slippage_low_bps
    if impact < Decimal("0.5"):
        return medium_bps if medium_bps is not None else trading.slippage_medium_bps
    if impact < 2:
        return high_bps if high_bps is not None else trading.slippage_high_bps
    return very_high_bps if very_high_bps is not None else trading.slippage_very_high_bps


def compare_quotes(quote_a: Quote, quote_b: Quote) -> int:
    """
    Rank two quotes by the first quote's swap mode

    ExactIn prefers more output, ExactOut prefers less input.

    Returns:
        1 if A is better, -1 if B is better, 0 if equal
    """
    if quote_a.swap_mode == SwapMode.EXACT_IN:
        a, b = quote_a.output_amount, quote_b.output_amount
        return (a > b) - (a < b)

    a, b = quote_a.input_amount, quote_b.input_amount
    return (a < b) - (a > b)


def effective_price(quote: Quote, input_decimals: int, output_decimals: int) -> Decimal:
    """
    Price of one input token in output tokens

    Raises:
        InvalidRequest: If the quote's input amount is zero
    """
    if quote.input_amount == 0:
        raise InvalidRequest.from_errors(["Quote input amount is zero"])
    in_amount = Decimal(quote.input_amount).scaleb(-input_decimals)
    out_amount = Decimal(quote.output_amount).scaleb(-output_decimals)
    return out_amount / in_amount


def ensure_price_impact_within(quote: Quote, max_price_impact_pct: Optional[float] = None):
    """
    Reject a quote whose absolute price impact exceeds the ceiling

    Raises:
        InvalidRequest: PRICE_IMPACT_TOO_HIGH
    """
    limit = (
        max_price_impact_pct if max_price_impact_pct is not None
        else global_config.trading.max_price_impact_pct
    )
    impact = abs(parse_price_impact(quote.price_impact_pct))
    if impact > _to_decimal(limit, "Price impact limit"):
        raise InvalidRequest.price_impact_too_high(quote.price_impact_pct, limit)


def build_quote_params(request: QuoteRequest) -> Dict[str, str]:
    """
    Query parameters for the quote endpoint

    Only set options are included; lists are comma-joined and flags are
    sent as "true".
    """
    params = {
        "inputMint": request.input_asset,
        "outputMint": request.output_asset,
        "amount": str(request.amount),
    }

    if request.slippage_bps is not None:
        params["slippageBps"] = str(request.slippage_bps)
    if request.swap_mode:
        params["swapMode"] = SwapMode.from_string(request.swap_mode).value
    if request.dexes:
        params["dexes"] = ",".join(request.dexes)
    if request.exclude_dexes:
        params["excludeDexes"] = ",".join(request.exclude_dexes)
    if request.only_direct_routes:
        params["onlyDirectRoutes"] = "true"
    if request.as_legacy_transaction:
        params["asLegacyTransaction"] = "true"
    if request.platform_fee_bps is not None:
        params["platformFeeBps"] = str(request.platform_fee_bps)
    if request.max_accounts is not None:
        params["maxAccounts"] = str(request.max_accounts)
    if request.auto_slippage:
        params["autoSlippage"] = "true"
    if request.auto_slippage_collision_usd_value is not None:
        params["autoSlippageCollisionUsdValue"] = str(request.auto_slippage_collision_usd_value)
    if request.restrict_intermediate_tokens:
        params["restrictIntermediateTokens"] = "true"

    return params
