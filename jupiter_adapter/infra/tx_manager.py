"""
Transaction lifecycle manager

Provides utilities for:
- Building legacy and versioned transactions behind priority fee instructions
- Fetching a recent blockhash with linear retry
- Signing, submitting and simulating transactions
- Estimating fees
- Polling for confirmation with a timeout

Lifecycle per submission: built -> signed -> submitted -> confirmed | failed | timed_out
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction, AccountMeta
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from .rpc import RpcClient
from .retry import RetryPolicy, execute_with_retry, log_with_correlation
from .solana_signer import Signer, VERSIONED_MESSAGE_PREFIX, is_versioned_transaction
from ..types import (
    BlockhashInfo,
    PriorityFeeConfig,
    PriorityFeeLevel,
    SignedTransaction,
    SimulationResult,
    TransactionEncoding,
    TransactionResult,
    TransactionStatus,
    UnsignedTransaction,
)
from ..errors import (
    ErrorCode,
    RateLimited,
    RpcError,
    SigningUnavailable,
    SimulationFailure,
    TransactionError,
)
from ..config import config as global_config

logger = logging.getLogger(__name__)

RawTransaction = Union[UnsignedTransaction, SignedTransaction, bytes]


@dataclass
class TxManagerConfig:
    """
    Transaction manager runtime configuration

    Allows per-manager overrides while pulling defaults from the global
    config (jupiter_adapter.config.TxConfig).

    Usage:
        # Use all defaults from environment
        manager = TransactionManager(rpc, signer)

        # Override specific settings
        config = TxManagerConfig(confirmation_timeout=30, skip_preflight=True)
        manager = TransactionManager(rpc, signer, config=config)
    """
    compute_units: int = None
    priority_level: PriorityFeeLevel = None
    skip_preflight: bool = None
    preflight_commitment: str = None
    max_retries: int = None
    confirmation_timeout: float = None
    poll_interval: float = None
    default_fee_lamports: int = None
    blockhash_policy: RetryPolicy = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.compute_units is None:
            self.compute_units = global_config.tx.compute_units
        if self.priority_level is None:
            self.priority_level = global_config.tx.priority_level
        self.priority_level = PriorityFeeLevel.from_string(self.priority_level)
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.rpc.commitment
        if self.max_retries is None:
            self.max_retries = global_config.tx.max_retries
        if self.confirmation_timeout is None:
            self.confirmation_timeout = global_config.tx.confirmation_timeout
        if self.poll_interval is None:
            self.poll_interval = global_config.tx.poll_interval
        if self.default_fee_lamports is None:
            self.default_fee_lamports = global_config.tx.default_fee_lamports
        if self.blockhash_policy is None:
            self.blockhash_policy = RetryPolicy.for_blockhash()

    @property
    def priority(self) -> PriorityFeeConfig:
        return PriorityFeeConfig(level=self.priority_level, compute_unit_limit=self.compute_units)


def create_priority_fee_instructions(
    priority: Optional[PriorityFeeConfig] = None,
) -> List[Instruction]:
    """
    Compute budget instructions that go ahead of the swap instructions

    setComputeUnitLimit is always present; setComputeUnitPrice only when the
    level's micro-lamport price is nonzero.
    """
    priority = priority or PriorityFeeConfig()
    instructions = [set_compute_unit_limit(priority.compute_unit_limit)]
    if priority.micro_lamports > 0:
        instructions.append(set_compute_unit_price(priority.micro_lamports))
    return instructions


def _raw_bytes(tx: RawTransaction) -> bytes:
    if isinstance(tx, (UnsignedTransaction, SignedTransaction)):
        return tx.raw
    return bytes(tx)


def _message_bytes(raw_tx: bytes) -> bytes:
    """Serialized message of a transaction, version prefix included"""
    message = VersionedTransaction.from_bytes(raw_tx).message
    message_bytes = bytes(message)
    if isinstance(message, MessageV0):
        message_bytes = bytes([VERSIONED_MESSAGE_PREFIX]) + message_bytes
    return message_bytes


class TransactionManager:
    """
    Transaction lifecycle manager

    Handles:
    - Building transactions with compute budget instructions
    - Signing via an externally supplied signer
    - Submitting, simulating and fee estimation
    - Confirmation polling (observational only; never re-sends)

    Usage:
        manager = TransactionManager(rpc, signer)

        # Step by step
        unsigned = await manager.build(instructions)
        signed = manager.sign(unsigned)
        signature = await manager.submit(signed)
        result = await manager.confirm(signature)

        # Or in one call
        result = await manager.build_and_send(instructions)
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Optional[Signer] = None,
        config: Optional[TxManagerConfig] = None,
    ):
        """
        Initialize transaction manager

        Args:
            rpc: RPC client
            signer: Transaction signer (sign() raises SigningUnavailable without one)
            config: Transaction configuration
        """
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxManagerConfig()

    @property
    def config(self) -> TxManagerConfig:
        return self._config

    @property
    def has_signer(self) -> bool:
        return self._signer is not None

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        if self._signer is None:
            raise SigningUnavailable()
        return self._signer.pubkey

    # ---------------------------------------------------------------
    # Build
    # ---------------------------------------------------------------

    async def get_recent_blockhash(self) -> BlockhashInfo:
        """
        Fetch a recent blockhash, retrying transport failures

        Waits base * attempt between attempts (1s, 2s with the defaults).

        Raises:
            RpcError: The last transport error once every attempt failed
        """
        policy = self._config.blockhash_policy
        try:
            return await execute_with_retry(
                self._rpc.get_latest_blockhash,
                "get_recent_blockhash",
                policy,
                retry_on=(RpcError,),
            )
        except RateLimited:
            raise
        except RpcError as e:
            logger.error(f"No recent blockhash after {max(1, policy.max_retries)} attempts: {e.message}")
            raise

    async def build(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str] = None,
        priority: Optional[PriorityFeeConfig] = None,
        encoding: TransactionEncoding = TransactionEncoding.VERSIONED,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        blockhash: Optional[BlockhashInfo] = None,
    ) -> UnsignedTransaction:
        """
        Build an unsigned transaction

        Args:
            instructions: Swap instructions (already encoded)
            payer: Fee payer pubkey (defaults to signer)
            priority: Priority fee config (defaults to configured level/limit)
            encoding: LEGACY or VERSIONED
            lookup_tables: Address lookup tables (versioned only)
            blockhash: Recent blockhash (fetched with retry if not provided)

        Returns:
            UnsignedTransaction with placeholder signatures
        """
        all_instructions = create_priority_fee_instructions(priority or self._config.priority)
        all_instructions.extend(instructions)

        if blockhash is None:
            blockhash = await self.get_recent_blockhash()

        payer_pubkey = Pubkey.from_string(payer or self.pubkey)
        recent_blockhash = Hash.from_string(blockhash.blockhash)

        if encoding == TransactionEncoding.LEGACY:
            if lookup_tables:
                raise TransactionError(
                    "Address lookup tables require a versioned transaction",
                    ErrorCode.SEND_FAILED,
                )
            message = Message.new_with_blockhash(all_instructions, payer_pubkey, recent_blockhash)
            raw = bytes(Transaction.new_unsigned(message))
        else:
            message = MessageV0.try_compile(
                payer_pubkey,
                all_instructions,
                list(lookup_tables or []),
                recent_blockhash,
            )
            # Signatures array must match num_required_signatures
            num_signers = message.header.num_required_signatures
            raw = bytes(VersionedTransaction.populate(message, [Signature.default()] * num_signers))

        logger.debug(
            f"Built {encoding.value} transaction: {len(all_instructions)} instructions, "
            f"{len(raw)} bytes"
        )
        return UnsignedTransaction(
            raw=raw,
            encoding=encoding,
            blockhash=blockhash.blockhash,
            last_valid_block_height=blockhash.last_valid_block_height,
        )

    # ---------------------------------------------------------------
    # Sign / submit
    # ---------------------------------------------------------------

    def sign(self, unsigned_tx: Union[UnsignedTransaction, bytes]) -> SignedTransaction:
        """
        Sign a legacy or versioned transaction

        Raises:
            SigningUnavailable: If no signer is configured
        """
        if self._signer is None:
            raise SigningUnavailable()

        signed_bytes, signature = self._signer.sign_transaction(_raw_bytes(unsigned_tx))
        encoding = (
            TransactionEncoding.VERSIONED
            if is_versioned_transaction(signed_bytes)
            else TransactionEncoding.LEGACY
        )
        return SignedTransaction(raw=signed_bytes, signature=signature, encoding=encoding)

    async def submit(
        self,
        signed_tx: Union[SignedTransaction, bytes],
        skip_preflight: Optional[bool] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Broadcast a signed transaction

        Args:
            signed_tx: Signed transaction
            skip_preflight: Skip simulation (default from config)
            max_retries: Node-side rebroadcast attempts (default from config)

        Returns:
            Transaction signature (base58)

        Raises:
            TransactionError: If the node rejects the transaction
            RpcError: On connection failures
        """
        skip = skip_preflight if skip_preflight is not None else self._config.skip_preflight
        retries = max_retries if max_retries is not None else self._config.max_retries

        try:
            signature = await self._rpc.send_transaction(
                _raw_bytes(signed_tx),
                skip_preflight=skip,
                preflight_commitment=self._config.preflight_commitment,
                max_retries=retries,
            )
        except RpcError as e:
            if "rpc_error_code" not in e.details:
                raise
            # Node answered with a JSON-RPC error (e.g. preflight failure)
            data = e.details.get("rpc_error_data") or {}
            logs = data.get("logs") if isinstance(data, dict) else None
            log_with_correlation(logging.ERROR, f"Send failed: {e.message}", "submit")
            raise TransactionError(
                f"Failed to send transaction: {e.message}",
                ErrorCode.SEND_FAILED,
                logs=logs,
                original_error=e,
            ) from e

        log_with_correlation(logging.INFO, f"Transaction sent: {signature}", "submit")
        return signature

    # ---------------------------------------------------------------
    # Confirm
    # ---------------------------------------------------------------

    async def get_status(self, signature: str) -> TransactionStatus:
        return await self._rpc.get_signature_status(signature)

    async def _fetch_block_info(
        self,
        signature: str,
        slot: Optional[int],
    ) -> Tuple[Optional[int], Optional[int]]:
        """Slot and block time from getTransaction, falling back to the status slot"""
        try:
            tx = await self._rpc.get_transaction(signature)
        except RpcError as e:
            logger.warning(f"Could not fetch block time for {signature}: {e}")
            return slot, None
        if not tx:
            return slot, None
        return tx.get("slot", slot), tx.get("blockTime")

    async def confirm(
        self,
        signature: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> TransactionResult:
        """
        Poll the signature status until confirmed or the timeout elapses

        Args:
            signature: Transaction signature
            timeout: Max wait in seconds (default 60)
            poll_interval: Seconds between polls (default 1)

        Returns:
            TransactionResult: confirmed (with slot and block time), failed
            (on-chain error) or timed out. A timeout is a result, not an
            exception, and nothing is re-sent.
        """
        timeout = timeout if timeout is not None else self._config.confirmation_timeout
        poll_interval = poll_interval if poll_interval is not None else self._config.poll_interval

        start = time.monotonic()
        last_status: Optional[str] = None
        polls = 0

        while time.monotonic() - start < timeout:
            statuses = await self._rpc.get_signature_statuses([signature])
            polls += 1
            status = statuses[0] if statuses else None

            if status:
                last_status = status.get("confirmationStatus")
                err = status.get("err")
                if err is not None:
                    error = json.dumps(err) if not isinstance(err, str) else err
                    log_with_correlation(
                        logging.WARNING,
                        f"Transaction {signature} failed on-chain: {error}",
                        "confirm",
                    )
                    return TransactionResult.failed(signature, error, slot=status.get("slot"))

                if last_status in ("confirmed", "finalized"):
                    slot, block_time = await self._fetch_block_info(signature, status.get("slot"))
                    log_with_correlation(
                        logging.INFO,
                        f"Transaction {signature} {last_status} at slot {slot}",
                        "confirm",
                    )
                    return TransactionResult.success(signature, slot=slot, block_time=block_time)

            await asyncio.sleep(poll_interval)

        if last_status is None:
            log_with_correlation(
                logging.WARNING,
                f"Transaction {signature} was never seen on chain after {polls} polls",
                "confirm",
            )
        else:
            log_with_correlation(
                logging.WARNING,
                f"Transaction {signature} timeout. Last status: {last_status}",
                "confirm",
            )
        return TransactionResult.timeout(signature)

    async def send_and_confirm(
        self,
        signed_tx: Union[SignedTransaction, bytes],
        skip_preflight: Optional[bool] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> TransactionResult:
        """Submit then confirm in one call"""
        signature = await self.submit(signed_tx, skip_preflight=skip_preflight, max_retries=max_retries)
        return await self.confirm(signature, timeout=timeout)

    # ---------------------------------------------------------------
    # Simulate / fees
    # ---------------------------------------------------------------

    async def simulate(self, tx: RawTransaction) -> SimulationResult:
        """
        Dry-run a transaction without submitting it

        Program errors and transport failures are both reported in the
        result; this never raises for either.
        """
        try:
            value = await self._rpc.simulate_transaction(_raw_bytes(tx))
        except RpcError as e:
            logger.warning(f"Simulation request failed: {e}")
            return SimulationResult(success=False, error=e.message)

        err = value.get("err")
        error = None
        if err is not None:
            error = json.dumps(err) if not isinstance(err, str) else err
        return SimulationResult(
            success=err is None,
            logs=list(value.get("logs") or []),
            units_consumed=value.get("unitsConsumed"),
            error=error,
        )

    async def estimate_fee(self, tx: RawTransaction) -> int:
        """
        Fee in lamports for a transaction's message

        Falls back to the configured default (5000) when the node cannot
        price the message.
        """
        fee = await self._rpc.get_fee_for_message(_message_bytes(_raw_bytes(tx)))
        if not fee:
            logger.debug(f"No fee quote available, using default {self._config.default_fee_lamports}")
            return self._config.default_fee_lamports
        return fee

    async def build_and_send(
        self,
        instructions: Sequence[Instruction],
        priority: Optional[PriorityFeeConfig] = None,
        encoding: TransactionEncoding = TransactionEncoding.VERSIONED,
        lookup_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
        skip_preflight: Optional[bool] = None,
        simulate_first: bool = False,
    ) -> TransactionResult:
        """
        Build, sign, send and confirm in one call

        Raises:
            SimulationFailure: If simulate_first is set and the dry run fails
        """
        unsigned = await self.build(
            instructions,
            priority=priority,
            encoding=encoding,
            lookup_tables=lookup_tables,
        )

        if simulate_first:
            sim = await self.simulate(unsigned)
            if not sim.success:
                raise SimulationFailure(sim.error or "unknown error", sim.logs)

        signed = self.sign(unsigned)
        return await self.send_and_confirm(signed, skip_preflight=skip_preflight)


def create_instruction(
    program_id: str,
    accounts: List[dict],
    data: bytes,
) -> Instruction:
    """
    Helper to create instruction from simple types

    Args:
        program_id: Program ID (base58)
        accounts: List of account dicts with keys:
            - pubkey: Account pubkey (base58)
            - is_signer: Whether account is signer
            - is_writable: Whether account is writable
        data: Instruction data bytes

    Returns:
        solders Instruction
    """
    account_metas = [
        AccountMeta(
            pubkey=Pubkey.from_string(acc["pubkey"]),
            is_signer=acc.get("is_signer", False),
            is_writable=acc.get("is_writable", False),
        )
        for acc in accounts
    ]

    return Instruction(
        program_id=Pubkey.from_string(program_id),
        accounts=account_metas,
        data=data,
    )
