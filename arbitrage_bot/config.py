"""
Configuration loading from .env and config.json.

Precedence: environment variables > config.json > defaults.
"""
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import dotenv

from .constants import (
    DEFAULT_JITO_RPC_URL,
    DEFAULT_JUPITER_API_URL,
    DEFAULT_RPC_URL,
    JITO_TIP_ACCOUNT,
    USDC_MINT,
    WSOL_MINT,
)
from .errors import ConfigError, MalformedAddress
from .instruction_converter import parse_pubkey

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
MODES = ("scan", "live")


@dataclass
class BotConfig:
    """Runtime configuration for one bot process."""
    rpc_url: str = DEFAULT_RPC_URL
    jupiter_api_url: str = DEFAULT_JUPITER_API_URL
    jupiter_api_key: Optional[str] = None
    jito_rpc_url: str = DEFAULT_JITO_RPC_URL
    base_mint: str = WSOL_MINT
    quote_mint: str = USDC_MINT
    trade_amount_lamports: int = 10_000_000  # 0.01 WSOL
    min_profit_lamports: int = 1_000
    slippage_bps: int = 0
    max_accounts: int = 20
    compute_unit_price_micro_lamports: int = 1
    tip_account: str = JITO_TIP_ACCOUNT
    cycle_delay_seconds: float = 0.2
    request_timeout: float = 10.0
    mode: str = "scan"

    def validate(self):
        """
        Validate value ranges and addresses.

        Raises:
            ConfigError: On the first invalid value
        """
        if self.mode not in MODES:
            raise ConfigError(f"Unknown mode: {self.mode}. Use: {', '.join(MODES)}")
        if self.trade_amount_lamports <= 0:
            raise ConfigError("TRADE_AMOUNT_LAMPORTS must be positive")
        for name in ("min_profit_lamports", "slippage_bps", "compute_unit_price_micro_lamports"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name.upper()} must not be negative")
        if self.max_accounts <= 0:
            raise ConfigError("MAX_ACCOUNTS must be positive")
        if self.cycle_delay_seconds < 0 or self.request_timeout <= 0:
            raise ConfigError("CYCLE_DELAY_SECONDS must be >= 0 and REQUEST_TIMEOUT > 0")
        if self.base_mint == self.quote_mint:
            raise ConfigError("BASE_MINT and QUOTE_MINT must differ for a round trip")
        for name in ("base_mint", "quote_mint", "tip_account"):
            try:
                parse_pubkey(getattr(self, name), name)
            except MalformedAddress as e:
                raise ConfigError(str(e)) from e


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Convert a raw env/json value to the type of the field default."""
    if default is None or isinstance(default, str):
        return str(raw).strip()
    try:
        if isinstance(default, int):
            return int(str(raw).replace('_', ''))
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name.upper()}: {raw!r}") from e
    return raw


def load_config(
    env_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None
) -> BotConfig:
    """
    Load configuration from .env, config.json and the environment.

    Args:
        env_path: .env location (default: project root)
        config_path: config.json location (default: project root)
        environ: Environment mapping (default: os.environ after loading .env)

    Raises:
        ConfigError: If any value is malformed or out of range
    """
    if environ is None:
        env_path = env_path or PROJECT_ROOT / '.env'
        if env_path.exists():
            dotenv.load_dotenv(env_path)
        else:
            logger.debug(f".env file not found at {env_path}")
        environ = dict(os.environ)

    config_path = config_path or PROJECT_ROOT / 'config.json'
    file_values: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                file_values = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e
        if not isinstance(file_values, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    values: Dict[str, Any] = {}
    for f in fields(BotConfig):
        raw = environ.get(f.name.upper())
        if raw is None or raw == "":
            raw = file_values.get(f.name)
        if raw is None:
            continue
        values[f.name] = _coerce(f.name, raw, f.default)

    config = BotConfig(**values)
    config.mode = config.mode.lower()
    config.validate()
    return config


def get_private_key(environ: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Wallet secret from WALLET_PRIVATE_KEY, falling back to PRIVATE_KEY."""
    environ = os.environ if environ is None else environ
    return environ.get('WALLET_PRIVATE_KEY') or environ.get('PRIVATE_KEY')
