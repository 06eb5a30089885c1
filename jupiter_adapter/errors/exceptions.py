"""
Exception definitions for Jupiter Adapter
"""

from enum import Enum
from typing import List, Optional


class ErrorCode(Enum):
    """
    Unified error codes for swap operations

    1xxx - Request validation errors
    2xxx - Transport errors (quote API / RPC)
    3xxx - Transaction errors
    4xxx - Signer errors
    9xxx - Configuration errors
    """
    # Request errors
    INVALID_REQUEST = "1001"
    PRICE_IMPACT_TOO_HIGH = "1002"

    # Transport errors (recoverable)
    TRANSPORT_CONNECTION_FAILED = "2001"
    TRANSPORT_TIMEOUT = "2002"
    RATE_LIMITED = "2003"
    INVALID_RESPONSE = "2004"

    # Transaction errors
    SIMULATION_FAILED = "3001"
    SEND_FAILED = "3002"
    CONFIRMATION_TIMEOUT = "3003"
    TRANSACTION_FAILED = "3004"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "4001"
    SIGNER_FAILED = "4002"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class JupiterAdapterError(Exception):
    """
    Base exception for all adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the operation should be retried"""
        return self.recoverable


class InvalidRequest(JupiterAdapterError):
    """
    Request validation failure - not recoverable

    Always carries every violated rule in ``errors``, not just the first one.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        code: ErrorCode = ErrorCode.INVALID_REQUEST,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"errors": list(errors or [])},
        )
        self.errors = list(errors or [])

    @classmethod
    def from_errors(cls, errors: List[str]) -> "InvalidRequest":
        return cls(f"Invalid quote parameters: {', '.join(errors)}", errors=errors)

    @classmethod
    def price_impact_too_high(cls, impact_pct: str, limit_pct: float) -> "InvalidRequest":
        message = f"Price impact {impact_pct}% exceeds limit of {limit_pct}%"
        return cls(message, errors=[message], code=ErrorCode.PRICE_IMPACT_TOO_HIGH)


class TransportFailure(JupiterAdapterError):
    """
    Network / RPC errors - surfaced to the caller

    Raised when:
    - Connection to the quote API or RPC endpoint fails
    - Request times out
    - The remote side answers with an error or a malformed body
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRANSPORT_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "TransportFailure":
        return cls(
            f"Failed to connect to endpoint: {endpoint}",
            ErrorCode.TRANSPORT_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "TransportFailure":
        return cls(
            f"Request timed out after {timeout_seconds}s",
            ErrorCode.TRANSPORT_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, reason: str, endpoint: Optional[str] = None) -> "TransportFailure":
        return cls(
            f"Malformed response: {reason}",
            ErrorCode.INVALID_RESPONSE,
            endpoint=endpoint,
        )


# The ledger side of the transport is JSON-RPC; keep the familiar name around
RpcError = TransportFailure


class RateLimited(TransportFailure):
    """HTTP 429 that outlived the shared retry policy"""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        endpoint: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, ErrorCode.RATE_LIMITED, endpoint=endpoint)
        self.retry_after = retry_after
        self.details["retry_after"] = retry_after


class TransactionError(JupiterAdapterError):
    """
    Transaction execution errors

    Raised when:
    - A recent blockhash cannot be obtained
    - Transaction send fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SEND_FAILED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def send_failed(cls, error: str) -> "TransactionError":
        recoverable = "timeout" in error.lower() or "connection" in error.lower()
        return cls(
            f"Failed to send transaction: {error}",
            ErrorCode.SEND_FAILED,
            recoverable=recoverable,
        )


class SimulationFailure(TransactionError):
    """Program-level failure during a dry run (normally reported as data)"""

    def __init__(self, error: str, logs: Optional[list] = None):
        super().__init__(
            f"Transaction simulation failed: {error}",
            ErrorCode.SIMULATION_FAILED,
            logs=logs,
        )


class SignerError(JupiterAdapterError):
    """
    Signing-related errors

    Raised when:
    - Signing operation fails
    - Wallet is not a required signer of the transaction
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class SigningUnavailable(SignerError):
    """No signing capability configured - fatal, never retried"""

    def __init__(self, message: str = "No signer configured. Provide a keypair, private key or keypair path."):
        super().__init__(message, ErrorCode.SIGNER_NOT_CONFIGURED)


class ConfigurationError(JupiterAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
