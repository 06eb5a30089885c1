"""
Type definitions for Jupiter Adapter
"""

from .quote import (
    MAX_BPS,
    PriceImpactSeverity,
    SwapMode,
    RouteStep,
    PlatformFee,
    Quote,
    QuoteRequest,
    QuoteValidation,
)
from .route import RouteHop, RouteSummary, RouteEfficiency, RouteFilter
from .priority import (
    PriorityFeeLevel,
    PriorityFeeConfig,
    PRIORITY_FEES,
    DEFAULT_COMPUTE_UNIT_LIMIT,
)
from .result import (
    CONFIRMATION_TIMEOUT_MESSAGE,
    TxState,
    TransactionEncoding,
    BlockhashInfo,
    UnsignedTransaction,
    SignedTransaction,
    TransactionResult,
    TransactionStatus,
    SimulationResult,
    SwapTransaction,
)
from .solana_tokens import (
    SOL_MINT,
    USDC_MINT,
    USDT_MINT,
    SOLANA_TOKEN_MINTS,
    SOLANA_TOKEN_DECIMALS,
    resolve_token_mint,
    is_known_token,
    get_token_decimals,
    get_token_symbol,
)

__all__ = [
    # Quote
    "MAX_BPS",
    "PriceImpactSeverity",
    "SwapMode",
    "RouteStep",
    "PlatformFee",
    "Quote",
    "QuoteRequest",
    "QuoteValidation",
    # Route
    "RouteHop",
    "RouteSummary",
    "RouteEfficiency",
    "RouteFilter",
    # Priority
    "PriorityFeeLevel",
    "PriorityFeeConfig",
    "PRIORITY_FEES",
    "DEFAULT_COMPUTE_UNIT_LIMIT",
    # Results
    "CONFIRMATION_TIMEOUT_MESSAGE",
    "TxState",
    "TransactionEncoding",
    "BlockhashInfo",
    "UnsignedTransaction",
    "SignedTransaction",
    "TransactionResult",
    "TransactionStatus",
    "SimulationResult",
    "SwapTransaction",
    # Tokens
    "SOL_MINT",
    "USDC_MINT",
    "USDT_MINT",
    "SOLANA_TOKEN_MINTS",
    "SOLANA_TOKEN_DECIMALS",
    "resolve_token_mint",
    "is_known_token",
    "get_token_decimals",
    "get_token_symbol",
]
