"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from lendpos.config import (
    AccountConfig,
    AppConfig,
    ChainConfig,
    ManagerConfig,
    MarketConfig,
    ProtocolConfig,
)
from lendpos.models import Market
from lendpos.services import Collaborators, PositionManager
from tests.fakes import FakeLedger, FakeOracle, FakeRegistry, FakeShareMarket

MANAGER = "0xMANAGER"
CALLER = "0xCALLER"
CDAI = "0xCDAI"
CUSDC = "0xCUSDC"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        receipt_poll_interval=0.0,
        receipt_timeout=1.0,
    )


@pytest.fixture()
def sample_app_config(sample_chain_config: ChainConfig) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        account=AccountConfig(
            manager="0x" + "aa" * 20,
            caller="0x" + "bb" * 20,
        ),
        protocol=ProtocolConfig(registry="0x" + "cc" * 20, oracle="0x" + "dd" * 20),
        markets={
            "DAI": MarketConfig(
                name="DAI",
                underlying="0x" + "01" * 20,
                share_market="0x" + "02" * 20,
                underlying_decimals=18,
                share_decimals=8,
            ),
        },
        manager=ManagerConfig(default_borrow_fraction_bps=5000),
    )


SAMPLE_YAML = textwrap.dedent("""\
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    account:
      manager: "0xMANAGER"
      caller: "0xCALLER"
    protocol:
      registry: "0xREGISTRY"
      oracle: "0xORACLE"
    markets:
      DAI:
        underlying: "0xDAI"
        share_market: "0xCDAI"
        underlying_decimals: 18
        share_decimals: 8
      USDC:
        underlying: "0xUSDC"
        share_market: "0xCUSDC"
        underlying_decimals: 6
    manager:
      default_borrow_fraction_bps: 7500
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Markets and in-memory collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def dai() -> Market:
    return Market(
        name="DAI",
        underlying="0xDAI",
        share_market=CDAI,
        underlying_decimals=18,
        share_decimals=8,
    )


@pytest.fixture()
def usdc() -> Market:
    return Market(
        name="USDC",
        underlying="0xUSDC",
        share_market=CUSDC,
        underlying_decimals=6,
        share_decimals=8,
    )


@pytest.fixture()
def dai_ledger() -> FakeLedger:
    ledger = FakeLedger(MANAGER, {CALLER: 10_000 * 10**18, CDAI: 1_000_000 * 10**18})
    ledger.allowances[(CALLER, MANAGER)] = 10_000 * 10**18
    return ledger


@pytest.fixture()
def usdc_ledger() -> FakeLedger:
    return FakeLedger(MANAGER, {CUSDC: 1_000_000 * 10**6}, decimals=6)


@pytest.fixture()
def cdai(dai_ledger: FakeLedger) -> FakeShareMarket:
    return FakeShareMarket(CDAI, dai_ledger)


@pytest.fixture()
def cusdc(usdc_ledger: FakeLedger) -> FakeShareMarket:
    return FakeShareMarket(CUSDC, usdc_ledger, exchange_rate=2 * 10**14)


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry(liquidity=1000 * 10**18)


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle({CDAI: 10**18, CUSDC: 10**18})


@pytest.fixture()
def collaborators(
    registry: FakeRegistry,
    oracle: FakeOracle,
    dai: Market,
    usdc: Market,
    dai_ledger: FakeLedger,
    usdc_ledger: FakeLedger,
    cdai: FakeShareMarket,
    cusdc: FakeShareMarket,
) -> Collaborators:
    return Collaborators(
        registry=registry,
        oracle=oracle,
        ledgers={dai.key: dai_ledger, usdc.key: usdc_ledger},
        share_markets={dai.key: cdai, usdc.key: cusdc},
    )


@pytest.fixture()
def manager(collaborators: Collaborators) -> PositionManager:
    return PositionManager(MANAGER, collaborators)
