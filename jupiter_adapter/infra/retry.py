"""
Retry Policy Module

One retry policy shared by the quote API client and the RPC client, plus
the blockhash retry helper used by the transaction manager.
Includes structured logging with correlation IDs for transaction tracing.
"""

import asyncio
import contextvars
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

import httpx

from ..errors import RateLimited, TransportFailure
from ..config import config as global_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for transaction tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Usage:
        with CorrelationContext("swap") as cid:
            logger.info(f"[{cid}] Starting swap")
            result = await adapter.execute_quote(quote)
    """

    def __init__(self, prefix: Optional[str] = None):
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)


def log_with_correlation(
    level: int,
    message: str,
    operation_name: str,
    attempt: Optional[int] = None,
    max_retries: Optional[int] = None,
    **extra
):
    """
    Log message with correlation ID and structured context.

    Format: "[cid] [operation] [attempt/max] message"
    """
    cid = get_correlation_id()

    parts = []
    if cid:
        parts.append(f"[{cid}]")
    parts.append(f"[{operation_name}]")
    if attempt is not None and max_retries is not None:
        parts.append(f"[{attempt}/{max_retries}]")
    parts.append(message)

    extra_context = {
        "correlation_id": cid,
        "operation": operation_name,
        "attempt": attempt,
        "max_retries": max_retries,
        **extra
    }

    logger.log(level, " ".join(parts), extra=extra_context)


class BackoffMode(Enum):
    """How the wait grows between attempts"""
    LINEAR = "linear"            # base * n: 1s, 2s, 3s...
    EXPONENTIAL = "exponential"  # base * 2**n: 2s, 4s, 8s...


@dataclass
class RetryPolicy:
    """
    Retry policy runtime configuration

    Unset values are pulled from the global config (RetryConfig).

    Usage:
        # HTTP 429 handling shared by JupiterAPI and RpcClient
        policy = RetryPolicy()

        # Blockhash fetch: 3 attempts, 1s, 2s between them
        policy = RetryPolicy.for_blockhash()
    """
    max_retries: int = None
    base_delay: float = None
    backoff: BackoffMode = BackoffMode.EXPONENTIAL
    retry_on_rate_limit: bool = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.max_retries is None:
            self.max_retries = global_config.retry.max_retries
        if self.base_delay is None:
            self.base_delay = global_config.retry.base_delay
        if self.retry_on_rate_limit is None:
            self.retry_on_rate_limit = global_config.retry.retry_on_rate_limit

    def delay_for(self, retry_number: int) -> float:
        """
        Wait before the given retry (1-indexed)

        Args:
            retry_number: 1 for the first retry, 2 for the second...
        """
        if self.backoff == BackoffMode.LINEAR:
            return self.base_delay * retry_number
        return self.base_delay * (2 ** retry_number)

    @classmethod
    def for_blockhash(cls) -> "RetryPolicy":
        return cls(
            max_retries=global_config.tx.blockhash_retries,
            base_delay=global_config.tx.blockhash_retry_delay,
            backoff=BackoffMode.LINEAR,
        )


def parse_retry_after(response: httpx.Response) -> Optional[float]:
    """Seconds from a Retry-After header; HTTP-date values are ignored"""
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


async def send_with_rate_limit(
    send: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    endpoint: str,
    operation_name: str,
) -> httpx.Response:
    """
    Issue an HTTP request, re-sending it while the server answers 429

    Waits the server's Retry-After hint when present, otherwise the policy's
    backoff. At most ``policy.max_retries`` re-sends happen before
    RateLimited is raised. Any non-429 response is returned untouched.

    Raises:
        RateLimited: When 429 persists past the policy
    """
    retry_number = 0
    while True:
        response = await send()
        if response.status_code != 429:
            return response

        retry_after = parse_retry_after(response)
        if not policy.retry_on_rate_limit or retry_number >= policy.max_retries:
            log_with_correlation(
                logging.ERROR,
                f"Rate limited by {endpoint}, giving up after {retry_number} retries",
                operation_name,
            )
            raise RateLimited(endpoint=endpoint, retry_after=retry_after)

        retry_number += 1
        delay = retry_after if retry_after is not None else policy.delay_for(retry_number)
        log_with_correlation(
            logging.WARNING,
            f"Rate limited by {endpoint}, retrying in {delay:.1f}s",
            operation_name,
            retry_number,
            policy.max_retries,
            retry_after=retry_after,
        )
        await asyncio.sleep(delay)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    operation_name: str,
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (TransportFailure,),
) -> T:
    """
    Await an operation up to ``policy.max_retries`` times

    Errors outside ``retry_on`` propagate immediately. There is no wait
    after the final failure; the last error is re-raised.

    Example:
        info = await execute_with_retry(rpc.get_latest_blockhash, "get_blockhash",
                                        RetryPolicy.for_blockhash())
    """
    attempts = max(1, policy.max_retries)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            if attempt > 1:
                log_with_correlation(
                    logging.INFO,
                    f"Succeeded after {attempt} attempts",
                    operation_name,
                    attempt,
                    attempts,
                )
            return result
        except retry_on as e:
            last_error = e
            if attempt < attempts:
                delay = policy.delay_for(attempt)
                log_with_correlation(
                    logging.WARNING,
                    f"Recoverable error: {e}, retrying in {delay:.1f}s",
                    operation_name,
                    attempt,
                    attempts,
                    error=str(e),
                )
                await asyncio.sleep(delay)

    log_with_correlation(
        logging.ERROR,
        f"Failed after {attempts} attempts. Last error: {last_error}",
        operation_name,
        attempts,
        attempts,
    )
    raise last_error
