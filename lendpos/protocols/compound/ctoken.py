"""cToken share market adapter."""
from __future__ import annotations

from .contract import ContractAdapter


class CTokenMarket(ContractAdapter):
    """A CErc20 market.

    Rate and balance reads use the ``*Current`` variants through
    ``eth_call`` so that interest is accrued up to the latest block.
    """

    async def mint(self, amount: int) -> int:
        return await self._transact_with_status("mint(uint256)", amount)

    async def redeem(self, share_amount: int) -> int:
        return await self._transact_with_status("redeem(uint256)", share_amount)

    async def borrow(self, amount: int) -> int:
        return await self._transact_with_status("borrow(uint256)", amount)

    async def repay_borrow(self, amount: int) -> int:
        return await self._transact_with_status("repayBorrow(uint256)", amount)

    async def balance_of(self, account: str) -> int:
        return await self._call_uint("balanceOf(address)", account)

    async def exchange_rate(self) -> int:
        return await self._call_uint("exchangeRateCurrent()")

    async def supply_rate(self) -> int:
        return await self._call_uint("supplyRatePerBlock()")

    async def borrow_balance(self, account: str) -> int:
        return await self._call_uint("borrowBalanceCurrent(address)", account)

    async def decimals(self) -> int:
        return await self._call_uint("decimals()")
