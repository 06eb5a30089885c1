"""
Transaction signing abstractions

Provides unified signing interface for local signing with keypair.
Key material stays inside the signer; the transaction manager only sees
serialized bytes going in and out.
"""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import SignerError, SigningUnavailable, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)

VERSIONED_MESSAGE_PREFIX = 0x80


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - pubkey: The signer's public key (base58)
    - sign(): Sign a message
    - sign_transaction(): Sign serialized legacy or versioned transaction bytes
    """

    @property
    def pubkey(self) -> str:
        """Signer's public key (base58)"""
        ...

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes, returning the 64-byte signature"""
        ...

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            unsigned_tx: Unsigned transaction bytes (legacy or versioned)

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        ...


def is_versioned_transaction(raw_tx: bytes) -> bool:
    """True if serialized transaction bytes carry a v0 message"""
    tx = VersionedTransaction.from_bytes(raw_tx)
    return isinstance(tx.message, MessageV0)


class LocalSigner:
    """
    Local signer using Solana keypair

    Usage:
        from solders.keypair import Keypair

        keypair = Keypair()  # or load from file
        signer = LocalSigner(keypair)

        signed_tx, sig = signer.sign_transaction(unsigned_tx_bytes)
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @property
    def pubkey(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign a legacy or versioned transaction

        Signatures already present for other signers are kept.

        Args:
            unsigned_tx: Serialized transaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)

        Raises:
            SignerError: If the bytes do not parse or the wallet is not a
                required signer
        """
        try:
            tx = VersionedTransaction.from_bytes(unsigned_tx)
        except ValueError as e:
            raise SignerError.failed(f"cannot parse transaction: {e}")

        message = tx.message

        # v0 messages are signed with their version prefix:
        # [sig_count][signatures][0x80][message] -> sign [0x80][message]
        message_bytes = bytes(message)
        if isinstance(message, MessageV0):
            message_bytes = bytes([VERSIONED_MESSAGE_PREFIX]) + message_bytes

        signature = self._keypair.sign_message(message_bytes)

        num_required_signatures = message.header.num_required_signatures
        account_keys = message.account_keys
        our_pubkey = self._keypair.pubkey()

        # The first num_required_signatures account keys are the signers
        signer_index = None
        for i in range(num_required_signatures):
            if i < len(account_keys) and account_keys[i] == our_pubkey:
                signer_index = i
                break

        if signer_index is None:
            expected = [str(account_keys[i]) for i in range(min(num_required_signatures, len(account_keys)))]
            raise SignerError(
                f"Wallet {our_pubkey} is not in the required signers list. "
                f"Expected signers: {expected}"
            )

        signatures: List[Signature] = list(tx.signatures)
        if len(signatures) != num_required_signatures:
            signatures = [Signature.default()] * num_required_signatures
        signatures[signer_index] = signature

        signed_tx = VersionedTransaction.populate(message, signatures)
        return bytes(signed_tx), str(signature)

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        return cls(_keypair_from_bytes(secret_key))

    @classmethod
    def from_private_key(cls, private_key: str) -> "LocalSigner":
        """Create signer from a base58 string or a JSON byte array string"""
        return cls(parse_private_key(private_key))

    @classmethod
    def from_file(cls, path: str) -> "LocalSigner":
        """
        Create signer from keypair file

        Supports:
        - JSON array format (Solana CLI): [1,2,3,...]
        - Raw bytes file (64 bytes)
        """
        with open(path, "rb") as f:
            content = f.read()

        try:
            data = json.loads(content.decode("utf-8"))
            if isinstance(data, list):
                return cls.from_bytes(bytes(data))
        except (json.JSONDecodeError, UnicodeDecodeError):
            pass

        if len(content) == 64:
            return cls.from_bytes(content)

        raise ConfigurationError.invalid("keypair_file", f"Cannot parse keypair file: {path}")


def _keypair_from_bytes(secret_key: bytes) -> Keypair:
    if len(secret_key) != 64:
        raise ConfigurationError.invalid(
            "private_key", f"expected 64 bytes, got {len(secret_key)}"
        )
    try:
        return Keypair.from_bytes(secret_key)
    except ValueError as e:
        raise ConfigurationError.invalid("private_key", str(e))


def parse_private_key(private_key: str) -> Keypair:
    """
    Parse a private key given as base58 or as a JSON byte array

    Raises:
        ConfigurationError: If the value is neither
    """
    value = private_key.strip()
    if not value:
        raise ConfigurationError.missing("private_key")

    if value.startswith("["):
        try:
            secret_bytes = bytes(json.loads(value))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise ConfigurationError.invalid("private_key", f"invalid JSON byte array: {e}")
    else:
        try:
            secret_bytes = base58.b58decode(value)
        except ValueError as e:
            raise ConfigurationError.invalid("private_key", f"invalid base58: {e}")

    return _keypair_from_bytes(secret_bytes)


def create_signer(
    keypair: Optional[Keypair] = None,
    keypair_path: Optional[str] = None,
    private_key: Optional[str] = None,
) -> Signer:
    """
    Create signer based on configuration

    Priority:
    1. keypair: Use LocalSigner with provided keypair
    2. private_key: base58 or JSON byte array
    3. keypair_path: Load keypair from file
    4. Environment: SOLANA_PRIVATE_KEY, then SOLANA_KEYPAIR_PATH

    Raises:
        SigningUnavailable: If no signer configuration is found
    """
    if keypair is not None:
        return LocalSigner(keypair)

    if private_key:
        return LocalSigner.from_private_key(private_key)

    if keypair_path is not None:
        return LocalSigner.from_file(keypair_path)

    if global_config.signer.private_key:
        return LocalSigner.from_private_key(global_config.signer.private_key)

    if global_config.signer.keypair_path and os.path.isfile(global_config.signer.keypair_path):
        return LocalSigner.from_file(global_config.signer.keypair_path)

    raise SigningUnavailable()
