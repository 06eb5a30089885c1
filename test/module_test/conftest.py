"""
Shared configuration and fixtures for module integration tests.

WARNING: test_swap.py executes real transactions and spends real tokens
when LIVE_SWAP_TESTS=1 is set!

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required)
    SOLANA_PRIVATE_KEY: Base58 or JSON byte array private key (required if no keypair path)
    SOLANA_KEYPAIR_PATH: Path to keypair JSON file (alternative to private key)
    JUPITER_API_URL / JUPITER_API_KEY: Quote API endpoint and key (optional)
    LIVE_SWAP_TESTS: Set to 1 to allow tests that submit transactions
"""

import asyncio
import os
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Importing config loads the project .env file
from jupiter_adapter import JupiterClient
from jupiter_adapter.errors import ConfigurationError, SigningUnavailable
from jupiter_adapter.infra import create_signer


def get_env_or_fail(key: str) -> str:
    """Get required environment variable or raise error"""
    value = os.getenv(key)
    if not value:
        raise EnvironmentError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value


def get_rpc_url() -> str:
    """Get Solana RPC URL from environment"""
    return get_env_or_fail("SOLANA_RPC_URL")


def skip_if_no_config():
    """Check if required config is available, return skip message if not"""
    try:
        get_rpc_url()
        create_signer()
        return None
    except EnvironmentError as e:
        return str(e)
    except (SigningUnavailable, ConfigurationError) as e:
        return e.message


def live_swaps_enabled() -> bool:
    return os.getenv("LIVE_SWAP_TESTS", "").lower() in ("1", "true", "yes")


def run(coro):
    """Run one coroutine to completion on a fresh event loop"""
    return asyncio.run(coro)


def create_client() -> JupiterClient:
    """Create JupiterClient with live RPC and real wallet"""
    return JupiterClient(rpc_url=get_rpc_url())


# Pytest fixtures
@pytest.fixture
def live_config():
    """Skip unless an RPC endpoint and a wallet are configured"""
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)


@pytest.fixture
def live_swaps(live_config):
    """Skip unless transaction-submitting tests are explicitly enabled"""
    if not live_swaps_enabled():
        pytest.skip("Set LIVE_SWAP_TESTS=1 to run tests that spend real tokens")
