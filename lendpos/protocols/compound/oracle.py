"""Compound price oracle adapter."""
from __future__ import annotations

from .contract import ContractAdapter


class CompoundOracle(ContractAdapter):
    async def get_underlying_price(self, market: str) -> int:
        """Price of ``market``'s underlying, 1e18 scaled per whole token.

        0 means the price is unavailable.
        """
        return await self._call_uint("getUnderlyingPrice(address)", market)
