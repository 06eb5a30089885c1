"""
Configuration management for Jupiter Adapter

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # jupiter_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class RpcConfig:
    """Solana RPC client configuration"""
    url: str = field(default_factory=lambda: _get_env("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com"))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))


@dataclass
class SignerConfig:
    """Signer configuration for local keypair signing"""
    keypair_path: str = field(default_factory=lambda: _get_env("SOLANA_KEYPAIR_PATH", ""))
    private_key: str = field(default_factory=lambda: _get_env("SOLANA_PRIVATE_KEY", ""))


@dataclass
class TxConfig:
    """Transaction lifecycle configuration"""
    compute_units: int = field(default_factory=lambda: _get_env_int("TX_COMPUTE_UNITS", 200_000))
    # One of: none, low, medium, high, very_high
    priority_level: str = field(default_factory=lambda: _get_env("TX_PRIORITY_LEVEL", "medium"))
    skip_preflight: bool = field(default_factory=lambda: _get_env_bool("TX_SKIP_PREFLIGHT", False))
    # Passed to sendTransaction as maxRetries (RPC node side rebroadcast)
    max_retries: int = field(default_factory=lambda: _get_env_int("TX_MAX_RETRIES", 3))
    blockhash_retries: int = field(default_factory=lambda: _get_env_int("TX_BLOCKHASH_RETRIES", 3))
    # Linear backoff base: 1s, 2s, 3s...
    blockhash_retry_delay: float = field(default_factory=lambda: _get_env_float("TX_BLOCKHASH_RETRY_DELAY", 1.0))
    confirmation_timeout: float = field(default_factory=lambda: _get_env_float("TX_CONFIRMATION_TIMEOUT", 60.0))
    poll_interval: float = field(default_factory=lambda: _get_env_float("TX_POLL_INTERVAL", 1.0))
    # Used when the ledger cannot quote a fee for a message
    default_fee_lamports: int = field(default_factory=lambda: _get_env_int("TX_DEFAULT_FEE_LAMPORTS", 5000))


@dataclass
class JupiterConfig:
    """Jupiter quote API configuration"""
    api_url: str = field(default_factory=lambda: _get_env("JUPITER_API_URL", "https://quote-api.jup.ag/v6"))
    api_key: Optional[str] = field(default_factory=lambda: _get_env("JUPITER_API_KEY", None))
    timeout: float = field(default_factory=lambda: _get_env_float("JUPITER_TIMEOUT", 30.0))


@dataclass
class RetryConfig:
    """
    Shared retry policy defaults

    Used by both the quote API and the RPC client for HTTP 429 handling.
    """
    max_retries: int = field(default_factory=lambda: _get_env_int("RETRY_MAX_RETRIES", 3))
    base_delay: float = field(default_factory=lambda: _get_env_float("RETRY_BASE_DELAY", 1.0))
    retry_on_rate_limit: bool = field(default_factory=lambda: _get_env_bool("RETRY_ON_RATE_LIMIT", True))


@dataclass
class TradingConfig:
    """
    Default trading parameters

    The slippage tiers and efficiency constants are tuning values, not derived
    from any market model.
    """
    default_slippage_bps: int = field(default_factory=lambda: _get_env_int("DEFAULT_SLIPPAGE_BPS", 50))
    max_price_impact_pct: float = field(default_factory=lambda: _get_env_float("MAX_PRICE_IMPACT_PCT", 5.0))

    # Recommended slippage by price impact tier
    slippage_low_bps: int = field(default_factory=lambda: _get_env_int("SLIPPAGE_LOW_BPS", 10))
    slippage_medium_bps: int = field(default_factory=lambda: _get_env_int("SLIPPAGE_MEDIUM_BPS", 50))
    slippage_high_bps: int = field(default_factory=lambda: _get_env_int("SLIPPAGE_HIGH_BPS", 100))
    slippage_very_high_bps: int = field(default_factory=lambda: _get_env_int("SLIPPAGE_VERY_HIGH_BPS", 500))

    # Route efficiency: score = 100 - impact * weight
    efficiency_impact_weight: float = field(default_factory=lambda: _get_env_float("EFFICIENCY_IMPACT_WEIGHT", 20.0))
    efficiency_excellent: float = field(default_factory=lambda: _get_env_float("EFFICIENCY_EXCELLENT", 90.0))
    efficiency_good: float = field(default_factory=lambda: _get_env_float("EFFICIENCY_GOOD", 70.0))
    efficiency_caution: float = field(default_factory=lambda: _get_env_float("EFFICIENCY_CAUTION", 50.0))


def _get_default_log_path() -> str:
    """Get default log file path under jupiter_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"jupiter_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with optional file output.

    Environment variables:
        LOG_FILE: Path to log file (empty disables file logging)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Usage:
        from jupiter_adapter.config import config

        print(config.rpc.url)
        print(config.jupiter.api_url)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    jupiter: JupiterConfig = field(default_factory=JupiterConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    trading: TradingConfig = field(default_factory=TradingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "jupiter_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)
    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger


LICENSE_NOTICE = (
    "[Jupiter Adapter Licensing Notice]\n"
    "This adapter is licensed under the Business Source License 1.1 (BSL 1.1).\n"
    "Production use by for-profit organizations requires a commercial license."
)

_notice_shown = False


def show_license_notice(force: bool = False) -> bool:
    """
    Emit the licensing notice once per process.

    Nothing is logged on import; applications call this during startup if
    they want the notice.

    Returns:
        True if the notice was emitted by this call
    """
    global _notice_shown
    if _notice_shown and not force:
        return False
    logging.getLogger("jupiter_adapter").warning(LICENSE_NOTICE)
    _notice_shown = True
    return True
