"""
Shared builders for unit tests
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import httpx

from jupiter_adapter.types import Quote, RouteStep, SwapMode, SOL_MINT, USDC_MINT

SOL = SOL_MINT
USDC = USDC_MINT
MSOL = "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So"

RPC_URL = "https://rpc.test"
API_URL = "https://quote.test/v6"


def make_step(
    input_asset=SOL,
    output_asset=USDC,
    label="Orca",
    in_amount=1_000_000_000,
    out_amount=150_000_000,
    fee=0,
    fee_asset=None,
    percent=100,
    market_key="AMM111",
):
    return RouteStep(
        market_key=market_key,
        dex_label=label,
        step_input_asset=input_asset,
        step_output_asset=output_asset,
        step_input_amount=in_amount,
        step_output_amount=out_amount,
        fee_amount=fee,
        fee_asset=fee_asset or input_asset,
        allocation_percent=percent,
    )


def make_quote(
    input_asset=SOL,
    output_asset=USDC,
    input_amount=1_000_000_000,
    output_amount=150_000_000,
    slippage_bps=50,
    price_impact_pct="0.01",
    swap_mode=SwapMode.EXACT_IN,
    route_plan=None,
):
    if route_plan is None:
        route_plan = (make_step(input_asset, output_asset, in_amount=input_amount, out_amount=output_amount),)
    return Quote(
        input_asset=input_asset,
        output_asset=output_asset,
        input_amount=input_amount,
        output_amount=output_amount,
        other_amount_threshold=output_amount * (10_000 - slippage_bps) // 10_000,
        swap_mode=swap_mode,
        slippage_bps=slippage_bps,
        price_impact_pct=price_impact_pct,
        route_plan=tuple(route_plan),
    )


def quote_payload(
    input_mint=SOL,
    output_mint=USDC,
    in_amount="1000000000",
    out_amount="150000000",
    price_impact="0.0123",
    slippage_bps=50,
    labels=("Orca",),
):
    """Quote API response body"""
    return {
        "inputMint": input_mint,
        "inAmount": in_amount,
        "outputMint": output_mint,
        "outAmount": out_amount,
        "otherAmountThreshold": str(int(out_amount) * (10_000 - slippage_bps) // 10_000),
        "swapMode": "ExactIn",
        "slippageBps": slippage_bps,
        "platformFee": None,
        "priceImpactPct": price_impact,
        "routePlan": [
            {
                "swapInfo": {
                    "ammKey": f"AMM{i}",
                    "label": label,
                    "inputMint": input_mint,
                    "outputMint": output_mint,
                    "inAmount": in_amount,
                    "outAmount": out_amount,
                    "feeAmount": "5000",
                    "feeMint": input_mint,
                },
                "percent": 100 // len(labels),
            }
            for i, label in enumerate(labels)
        ],
        "contextSlot": 250000000,
        "timeTaken": 0.01,
    }


def rpc_response(result, request_id=1):
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(message, code=-32002, data=None):
    return {"jsonrpc": "2.0", "id": 1, "error": {"code": code, "message": message, "data": data}}


def mock_http_client(handler):
    """httpx.AsyncClient whose requests go to ``handler(request) -> Response``"""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeClock:
    """Monotonic clock advanced by patched sleeps"""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds
