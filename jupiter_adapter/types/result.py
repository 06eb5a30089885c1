"""
Result type definitions for transactions
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import ErrorCode

CONFIRMATION_TIMEOUT_MESSAGE = "Transaction confirmation timeout"


class TxState(Enum):
    """Lifecycle state of one submission attempt"""
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class TransactionEncoding(Enum):
    """Wire format of a serialized transaction"""
    LEGACY = "legacy"
    VERSIONED = "versioned"


@dataclass(frozen=True)
class BlockhashInfo:
    """Recent blockhash and the last block height it stays valid for"""
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class UnsignedTransaction:
    """Output of the build step"""
    raw: bytes
    encoding: TransactionEncoding
    blockhash: Optional[str] = None
    last_valid_block_height: Optional[int] = None

    @property
    def state(self) -> TxState:
        return TxState.BUILT


@dataclass(frozen=True)
class SignedTransaction:
    """Output of the sign step"""
    raw: bytes
    signature: str
    encoding: TransactionEncoding

    @property
    def state(self) -> TxState:
        return TxState.SIGNED


@dataclass(frozen=True)
class TransactionResult:
    """
    Outcome of broadcasting a signed transaction

    Attributes:
        signature: Transaction signature (base58)
        confirmed: Reached confirmed/finalized without an on-chain error
        slot: Slot the transaction landed in
        block_time: Block timestamp (unix seconds)
        error: Error message if not confirmed
        error_code: Error code for programmatic handling
        state: Terminal lifecycle state
    """
    signature: str
    confirmed: bool
    slot: Optional[int] = None
    block_time: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    state: TxState = TxState.SUBMITTED

    @property
    def is_timeout(self) -> bool:
        return self.state == TxState.TIMED_OUT

    @classmethod
    def success(cls, signature: str, slot: Optional[int] = None, block_time: Optional[int] = None) -> "TransactionResult":
        return cls(
            signature=signature,
            confirmed=True,
            slot=slot,
            block_time=block_time,
            state=TxState.CONFIRMED,
        )

    @classmethod
    def failed(cls, signature: str, error: str, slot: Optional[int] = None, block_time: Optional[int] = None) -> "TransactionResult":
        return cls(
            signature=signature,
            confirmed=False,
            slot=slot,
            block_time=block_time,
            error=error,
            error_code=ErrorCode.TRANSACTION_FAILED,
            state=TxState.FAILED,
        )

    @classmethod
    def timeout(cls, signature: str) -> "TransactionResult":
        return cls(
            signature=signature,
            confirmed=False,
            error=CONFIRMATION_TIMEOUT_MESSAGE,
            error_code=ErrorCode.CONFIRMATION_TIMEOUT,
            state=TxState.TIMED_OUT,
        )

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "confirmed": self.confirmed,
            "slot": self.slot,
            "block_time": self.block_time,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
            "state": self.state.value,
        }

    def __str__(self) -> str:
        if self.confirmed:
            return f"TransactionResult(CONFIRMED, {self.signature[:16]}...)"
        return f"TransactionResult({self.state.value}, error={self.error})"


@dataclass(frozen=True)
class TransactionStatus:
    """Single signature status lookup"""
    signature: str
    confirmed: bool
    finalized: bool
    slot: Optional[int] = None
    error: Optional[str] = None
    confirmation_status: Optional[str] = None


@dataclass(frozen=True)
class SimulationResult:
    """
    Dry-run outcome

    Program errors are reported here, not raised.
    """
    success: bool
    logs: List[str] = field(default_factory=list)
    units_consumed: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "logs": list(self.logs),
            "units_consumed": self.units_consumed,
            "error": self.error,
        }


@dataclass(frozen=True)
class SwapTransaction:
    """
    Pre-assembled swap transaction from the quote source

    Attributes:
        raw: Unsigned transaction bytes (base64-decoded)
        last_valid_block_height: Block height after which it expires
        prioritization_fee_lamports: Priority fee the quote source applied
    """
    raw: bytes
    last_valid_block_height: Optional[int] = None
    prioritization_fee_lamports: Optional[int] = None
