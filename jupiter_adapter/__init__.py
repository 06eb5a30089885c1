"""
Jupiter Adapter - Swap orchestration for the Jupiter aggregator on Solana

Provides:
- Quote math and validation (raw/display amounts, slippage, price impact)
- Route analysis (hops, splits, efficiency, filtering)
- Transaction lifecycle (build, sign, simulate, submit, confirm)
- End-to-end swaps through JupiterClient
"""

from .client import JupiterClient
from .types import (
    Quote,
    QuoteRequest,
    RouteStep,
    SwapMode,
    PriceImpactSeverity,
    PriorityFeeLevel,
    PriorityFeeConfig,
    TransactionResult,
    SimulationResult,
)
from .errors import (
    JupiterAdapterError,
    InvalidRequest,
    TransportFailure,
    RpcError,
    RateLimited,
    TransactionError,
    SimulationFailure,
    SignerError,
    SigningUnavailable,
    ConfigurationError,
    ErrorCode,
)
from .protocols.jupiter import JupiterAdapter, JupiterAPI, QuoteEvaluation
from .infra import RpcClient, TransactionManager, LocalSigner, RetryPolicy
from .config import setup_logging, show_license_notice

__all__ = [
    # Client
    "JupiterClient",
    # Types
    "Quote",
    "QuoteRequest",
    "RouteStep",
    "SwapMode",
    "PriceImpactSeverity",
    "PriorityFeeLevel",
    "PriorityFeeConfig",
    "TransactionResult",
    "SimulationResult",
    # Errors
    "JupiterAdapterError",
    "InvalidRequest",
    "TransportFailure",
    "RpcError",
    "RateLimited",
    "TransactionError",
    "SimulationFailure",
    "SignerError",
    "SigningUnavailable",
    "ConfigurationError",
    "ErrorCode",
    # Protocol
    "JupiterAdapter",
    "JupiterAPI",
    "QuoteEvaluation",
    # Infrastructure
    "RpcClient",
    "TransactionManager",
    "LocalSigner",
    "RetryPolicy",
    "setup_logging",
    "show_license_notice",
]

__version__ = "1.0.0"
