"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .fixed_point import BPS_DENOMINATOR
from .models import Market

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    receipt_poll_interval: float = 1.0
    receipt_timeout: float = 120.0


@dataclass(frozen=True)
class AccountConfig:
    manager: str = ""
    caller: str = ""


@dataclass(frozen=True)
class MarketConfig:
    name: str = ""
    underlying: str = ""
    share_market: str = ""
    underlying_decimals: int = 18
    share_decimals: int = 8

    def to_market(self) -> Market:
        return Market(
            name=self.name,
            underlying=self.underlying,
            share_market=self.share_market,
            underlying_decimals=self.underlying_decimals,
            share_decimals=self.share_decimals,
        )


@dataclass(frozen=True)
class ProtocolConfig:
    registry: str = ""
    oracle: str = ""


@dataclass(frozen=True)
class ManagerConfig:
    default_borrow_fraction_bps: int = 5000


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    account: AccountConfig = field(default_factory=AccountConfig)
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    markets: dict[str, MarketConfig] = field(default_factory=dict)
    manager: ManagerConfig = field(default_factory=ManagerConfig)

    def market(self, name: str) -> Market:
        try:
            return self.markets[name].to_market()
        except KeyError:
            raise KeyError(f"Unknown market '{name}'") from None


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=tuple(raw.get("rpc_endpoints", [])),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        receipt_poll_interval=float(raw.get("receipt_poll_interval", 1.0)),
        receipt_timeout=float(raw.get("receipt_timeout", 120.0)),
    )


def _build_account(raw: dict[str, Any]) -> AccountConfig:
    manager = raw.get("manager", "")
    return AccountConfig(manager=manager, caller=raw.get("caller", "") or manager)


def _build_protocol(raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        registry=raw.get("registry", ""),
        oracle=raw.get("oracle", ""),
    )


def _build_markets(raw: dict[str, Any]) -> dict[str, MarketConfig]:
    markets: dict[str, MarketConfig] = {}
    for name, cfg in raw.items():
        markets[name] = MarketConfig(
            name=name,
            underlying=cfg.get("underlying", ""),
            share_market=cfg.get("share_market", ""),
            underlying_decimals=int(cfg.get("underlying_decimals", 18)),
            share_decimals=int(cfg.get("share_decimals", 8)),
        )
    return markets


def _build_manager(raw: dict[str, Any]) -> ManagerConfig:
    return ManagerConfig(
        default_borrow_fraction_bps=int(raw.get("default_borrow_fraction_bps", 5000)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from the package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        account=_build_account(raw.get("account", {})),
        protocol=_build_protocol(raw.get("protocol", {})),
        markets=_build_markets(raw.get("markets", {})),
        manager=_build_manager(raw.get("manager", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if not cfg.account.manager:
        raise ValueError("No manager account configured")
    if not cfg.protocol.registry:
        raise ValueError("No risk registry address configured")
    if not cfg.protocol.oracle:
        raise ValueError("No price oracle address configured")
    if not cfg.markets:
        raise ValueError("At least one market must be configured")

    for market in cfg.markets.values():
        if not market.underlying or not market.share_market:
            raise ValueError(f"Market '{market.name}' needs underlying and share_market")
        if market.underlying_decimals < 0 or market.share_decimals < 0:
            raise ValueError(f"Market '{market.name}' has negative decimals")

    bps = cfg.manager.default_borrow_fraction_bps
    if not 0 < bps <= BPS_DENOMINATOR:
        raise ValueError(
            f"default_borrow_fraction_bps must be in (0, {BPS_DENOMINATOR}], got {bps}"
        )
