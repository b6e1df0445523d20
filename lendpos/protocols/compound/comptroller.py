"""Comptroller (risk registry) adapter."""
from __future__ import annotations

import logging

from ...chains.evm import abi
from .contract import ContractAdapter

logger = logging.getLogger(__name__)


class Comptroller(ContractAdapter):
    async def enter_markets(self, markets: list[str]) -> list[int]:
        """Enter ``markets`` as collateral, returning one status code per market.

        Nothing is sent when the simulation reports any failure.
        """
        signature = "enterMarkets(address[])"
        result = await self._client.call(
            self.address, abi.encode_call(signature, markets), sender=self.account
        )
        codes = abi.decode_uint_array(result)
        if any(codes):
            logger.warning("enterMarkets would fail with codes %s", codes)
            return codes
        await self._transact(signature, markets)
        return codes

    async def get_account_liquidity(self, account: str) -> tuple[int, int, int]:
        error, liquidity, shortfall = await self._call(
            "getAccountLiquidity(address)",
            account,
            returns=["uint256", "uint256", "uint256"],
        )
        return int(error), int(liquidity), int(shortfall)

    async def markets(self, market: str) -> tuple[bool, int]:
        # Later comptrollers append isComped; only the first two words are read.
        is_listed, collateral_factor = await self._call(
            "markets(address)", market, returns=["bool", "uint256"]
        )
        return bool(is_listed), int(collateral_factor)
