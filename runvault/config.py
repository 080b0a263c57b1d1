"""Configuration loading for RunVault.

Settings live in ``~/.config/runvault/config.toml``. Set ``RUNVAULT_HOME``
to use a different directory.
"""

import os
from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field, model_validator

from runvault.catalog import DEFAULT_PLATFORMS
from runvault.money import to_minor


def get_config_dir() -> Path:
    """Directory holding the config file and database."""
    override = os.environ.get("RUNVAULT_HOME")
    if override:
        return Path(override)
    return Path.home() / ".config" / "runvault"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def get_db_path() -> Path:
    return get_config_dir() / "runvault.db"


class Settings(BaseModel):
    """Validated runtime settings."""

    user_id: str = Field(default="u_1", min_length=1, description="Local account ID")
    currency: str = Field(default="USD", min_length=1, description="Wallet currency")
    min_invest_minor: int = Field(default=10_000, ge=1, description="Minimum run investment")
    platforms: list[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    emit_min_delay: float = Field(default=3.0, gt=0, description="Shortest gap between orders (s)")
    emit_max_delay: float = Field(default=7.0, gt=0, description="Longest gap between orders (s)")
    rollover_period: float = Field(default=60.0, gt=0, description="Day rollover check period (s)")
    display_limit: int = Field(default=100, ge=1, description="Orders kept for display")
    withdrawal_fee_rate: float = Field(default=0.01, ge=0, lt=1)
    service_fee_rate: float = Field(default=0.20, ge=0, lt=1)
    btc_usdt: float = Field(default=60000.0, gt=0, description="Fallback BTC price")
    eth_usdt: float = Field(default=3000.0, gt=0, description="Fallback ETH price")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_delays(self) -> "Settings":
        if self.emit_max_delay < self.emit_min_delay:
            raise ValueError("emit_max_delay must be >= emit_min_delay")
        return self

    def price_for(self, symbol: str) -> float:
        """Fallback USDT price for BTC or ETH."""
        if symbol == "BTC":
            return self.btc_usdt
        if symbol == "ETH":
            return self.eth_usdt
        raise ValueError(f"Unsupported crypto symbol: {symbol}")


def settings_from_dict(config: Optional[dict]) -> Settings:
    """Build settings from a parsed toml document.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    config = config or {}
    account = config.get("account", {})
    run = config.get("run", {})
    fees = config.get("fees", {})
    rates = config.get("rates", {})

    values = {
        "user_id": account.get("user_id"),
        "currency": account.get("currency"),
        "min_invest_minor": to_minor(run["min_invest"]) if "min_invest" in run else None,
        "platforms": run.get("platforms"),
        "emit_min_delay": run.get("emit_min_delay"),
        "emit_max_delay": run.get("emit_max_delay"),
        "rollover_period": run.get("rollover_period"),
        "display_limit": run.get("display_limit"),
        "withdrawal_fee_rate": fees.get("withdrawal_rate"),
        "service_fee_rate": fees.get("service_rate"),
        "btc_usdt": rates.get("btc_usdt"),
        "eth_usdt": rates.get("eth_usdt"),
    }
    return Settings(**{k: v for k, v in values.items() if v is not None})


def load_config(config_path: Optional[Path] = None) -> Optional[dict]:
    """Load the raw toml config.

    Returns:
        Parsed config, or None if the file does not exist.

    Raises:
        toml.TomlDecodeError: If the file is not valid toml.
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return None
    return toml.load(config_path)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings, falling back to defaults when no config file exists."""
    return settings_from_dict(load_config(config_path))


def write_template_config(config_path: Optional[Path] = None) -> Path:
    """Write a template configuration file.

    Returns:
        Path of the written file.
    """
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "account": {
            "user_id": "u_1",
            "currency": "USD",
        },
        "run": {
            "min_invest": 100.0,
            "platforms": list(DEFAULT_PLATFORMS),
            "emit_min_delay": 3.0,
            "emit_max_delay": 7.0,
            "rollover_period": 60.0,
            "display_limit": 100,
        },
        "fees": {
            "withdrawal_rate": 0.01,
            "service_rate": 0.20,
        },
        "rates": {
            "btc_usdt": 60000.0,
            "eth_usdt": 3000.0,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path
