"""
Test Config Module

Environment-driven defaults and logging setup.
"""

import logging
import os
import tempfile

import helpers  # noqa: F401  (project root on sys.path)

from jupiter_adapter import config as config_module
from jupiter_adapter.config import (
    JupiterConfig,
    LoggingConfig,
    RetryConfig,
    TradingConfig,
    TxConfig,
    setup_logging,
    show_license_notice,
)


def test_trading_defaults(monkeypatch):
    for key in ("DEFAULT_SLIPPAGE_BPS", "MAX_PRICE_IMPACT_PCT", "SLIPPAGE_LOW_BPS", "EFFICIENCY_IMPACT_WEIGHT"):
        monkeypatch.delenv(key, raising=False)

    trading = TradingConfig()

    assert trading.default_slippage_bps == 50
    assert trading.max_price_impact_pct == 5.0
    assert trading.slippage_low_bps == 10
    assert trading.efficiency_impact_weight == 20.0


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("JUPITER_API_URL", "https://quote.test/v6")
    monkeypatch.setenv("JUPITER_API_KEY", "secret")
    monkeypatch.setenv("RETRY_MAX_RETRIES", "5")
    monkeypatch.setenv("RETRY_ON_RATE_LIMIT", "no")
    monkeypatch.setenv("TX_PRIORITY_LEVEL", "high")

    assert JupiterConfig().api_url == "https://quote.test/v6"
    assert JupiterConfig().api_key == "secret"
    assert RetryConfig().max_retries == 5
    assert RetryConfig().retry_on_rate_limit is False
    assert TxConfig().priority_level == "high"


def test_api_key_unset(monkeypatch):
    monkeypatch.delenv("JUPITER_API_KEY", raising=False)
    assert JupiterConfig().api_key is None


def test_invalid_number_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("TX_COMPUTE_UNITS", "lots")
    monkeypatch.setenv("TX_POLL_INTERVAL", "soon")

    with caplog.at_level(logging.WARNING):
        tx = TxConfig()

    assert tx.compute_units == 200_000
    assert tx.poll_interval == 1.0
    assert "TX_COMPUTE_UNITS" in caplog.text


def test_setup_logging_file_and_console():
    with tempfile.TemporaryDirectory() as tmp:
        log_file = os.path.join(tmp, "nested", "adapter.log")
        log_config = LoggingConfig(log_file=log_file, log_level="DEBUG", console_output=False)

        logger = setup_logging(log_config, logger_name="jupiter_adapter.test_config")
        try:
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 1
            assert os.path.exists(log_file)
        finally:
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)


def test_setup_logging_replaces_handlers():
    log_config = LoggingConfig(log_file="", log_level="WARNING", console_output=True)

    setup_logging(log_config, logger_name="jupiter_adapter.test_config2")
    logger = setup_logging(log_config, logger_name="jupiter_adapter.test_config2")

    assert len(logger.handlers) == 1
    assert log_config.level == logging.WARNING
    logger.handlers[0].close()
    logger.removeHandler(logger.handlers[0])


def test_license_notice_once(monkeypatch, caplog):
    monkeypatch.setattr(config_module, "_notice_shown", False)

    with caplog.at_level(logging.WARNING, logger="jupiter_adapter"):
        assert show_license_notice()
        assert not show_license_notice()
        assert show_license_notice(force=True)

    assert caplog.text.count("Licensing Notice") == 2


def test_reload_config_picks_up_env(monkeypatch):
    original = config_module.get_config()
    # restored on teardown
    monkeypatch.setattr(config_module, "config", original)
    monkeypatch.setenv("DEFAULT_SLIPPAGE_BPS", "75")

    reloaded = config_module.reload_config()

    assert reloaded is not original
    assert reloaded.trading.default_slippage_bps == 75
    assert config_module.get_config() is reloaded
