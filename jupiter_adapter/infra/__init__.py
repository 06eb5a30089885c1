"""
Infrastructure layer: RPC access, signing, retry policy and the
transaction lifecycle.
"""

from .retry import (
    BackoffMode,
    RetryPolicy,
    CorrelationContext,
    get_correlation_id,
    execute_with_retry,
    send_with_rate_limit,
)
from .rpc import RpcClient, RpcClientConfig
from .solana_signer import (
    Signer,
    LocalSigner,
    create_signer,
    parse_private_key,
    is_versioned_transaction,
)
from .tx_manager import (
    TransactionManager,
    TxManagerConfig,
    create_priority_fee_instructions,
    create_instruction,
)

__all__ = [
    "BackoffMode",
    "RetryPolicy",
    "CorrelationContext",
    "get_correlation_id",
    "execute_with_retry",
    "send_with_rate_limit",
    "RpcClient",
    "RpcClientConfig",
    "Signer",
    "LocalSigner",
    "create_signer",
    "parse_private_key",
    "is_versioned_transaction",
    "TransactionManager",
    "TxManagerConfig",
    "create_priority_fee_instructions",
    "create_instruction",
]
