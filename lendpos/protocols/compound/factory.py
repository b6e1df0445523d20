"""Wire Compound adapters for every configured market."""
from __future__ import annotations

from ...chains.evm import EvmClient
from ...config import AppConfig
from ...services.position_manager import Collaborators
from .comptroller import Comptroller
from .ctoken import CTokenMarket
from .erc20 import Erc20Ledger
from .oracle import CompoundOracle


def build_collaborators(config: AppConfig, client: EvmClient) -> Collaborators:
    account = config.account.manager
    ledgers = {}
    share_markets = {}
    for market_cfg in config.markets.values():
        market = market_cfg.to_market()
        ledgers[market.key] = Erc20Ledger(client, market.underlying, account)
        share_markets[market.key] = CTokenMarket(client, market.share_market, account)

    return Collaborators(
        registry=Comptroller(client, config.protocol.registry, account),
        oracle=CompoundOracle(client, config.protocol.oracle, account),
        ledgers=ledgers,
        share_markets=share_markets,
    )
