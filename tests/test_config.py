"""
Tests for config.py
"""
import json

import pytest

from arbitrage_bot.config import BotConfig, get_private_key, load_config
from arbitrage_bot.constants import USDC_MINT, WSOL_MINT
from arbitrage_bot.errors import ConfigError


@pytest.fixture
def missing(tmp_path):
    """Path that does not exist (no config.json)."""
    return tmp_path / "config.json"


def test_defaults(missing):
    config = load_config(config_path=missing, environ={})

    assert config.base_mint == WSOL_MINT
    assert config.quote_mint == USDC_MINT
    assert config.trade_amount_lamports == 10_000_000
    assert config.min_profit_lamports == 1_000
    assert config.slippage_bps == 0
    assert config.max_accounts == 20
    assert config.cycle_delay_seconds == pytest.approx(0.2)
    assert config.mode == "scan"


def test_environment_values_are_coerced(missing):
    config = load_config(config_path=missing, environ={
        "TRADE_AMOUNT_LAMPORTS": "20_000_000",
        "CYCLE_DELAY_SECONDS": "0.5",
        "MODE": "LIVE",
        "JUPITER_API_KEY": " key ",
        "RPC_URL": ""
    })

    assert config.trade_amount_lamports == 20_000_000
    assert config.cycle_delay_seconds == pytest.approx(0.5)
    assert config.mode == "live"
    assert config.jupiter_api_key == "key"
    assert config.rpc_url == BotConfig().rpc_url


def test_environment_overrides_config_file(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"min_profit_lamports": 5000, "max_accounts": 30}))

    config = load_config(config_path=config_path, environ={"MIN_PROFIT_LAMPORTS": "7000"})

    assert config.min_profit_lamports == 7_000
    assert config.max_accounts == 30


def test_config_file_must_be_object(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        load_config(config_path=config_path, environ={})


def test_config_file_invalid_json(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(config_path=config_path, environ={})


@pytest.mark.parametrize("env", [
    {"TRADE_AMOUNT_LAMPORTS": "abc"},
    {"TRADE_AMOUNT_LAMPORTS": "0"},
    {"MIN_PROFIT_LAMPORTS": "-1"},
    {"MAX_ACCOUNTS": "0"},
    {"MODE": "paper"},
    {"QUOTE_MINT": WSOL_MINT},
    {"BASE_MINT": "not-a-mint"},
    {"TIP_ACCOUNT": "nope"},
    {"REQUEST_TIMEOUT": "0"},
])
def test_invalid_values(missing, env):
    with pytest.raises(ConfigError):
        load_config(config_path=missing, environ=env)


def test_get_private_key_prefers_wallet_variable():
    assert get_private_key({"WALLET_PRIVATE_KEY": "a", "PRIVATE_KEY": "b"}) == "a"
    assert get_private_key({"PRIVATE_KEY": "b"}) == "b"
    assert get_private_key({}) is None
