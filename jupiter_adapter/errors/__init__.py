"""
Error definitions for Jupiter Adapter
"""

from .exceptions import (
    ErrorCode,
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
)

__all__ = [
    "ErrorCode",
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
]
