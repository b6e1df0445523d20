"""ERC-20 asset ledger adapter."""
from __future__ import annotations

import logging
from typing import Any

from ...chains.evm import RpcError, TransactionReverted
from ...chains.evm import abi
from .contract import ContractAdapter

logger = logging.getLogger(__name__)


class Erc20Ledger(ContractAdapter):
    """ERC-20 token operated from the manager's account."""

    async def _bool_write(self, signature: str, *args: Any) -> bool:
        # Tokens that return nothing (e.g. USDT) count as success unless they revert.
        data = abi.encode_call(signature, *args)
        try:
            result = await self._client.call(self.address, data, sender=self.account)
        except RpcError as e:
            logger.warning("%s on %s rejected: %s", signature, self.address, e.message)
            return False
        if abi.hex_to_bytes(result):
            (ok,) = abi.decode_result(["bool"], result)
            if not ok:
                logger.warning("%s on %s returned false", signature, self.address)
                return False
        try:
            await self._transact(signature, *args)
        except TransactionReverted as e:
            logger.warning("%s on %s reverted: %s", signature, self.address, e.tx_hash)
            return False
        return True

    async def transfer(self, to: str, amount: int) -> bool:
        return await self._bool_write("transfer(address,uint256)", to, amount)

    async def transfer_from(self, src: str, dst: str, amount: int) -> bool:
        return await self._bool_write(
            "transferFrom(address,address,uint256)", src, dst, amount
        )

    async def approve(self, spender: str, amount: int) -> bool:
        return await self._bool_write("approve(address,uint256)", spender, amount)

    async def balance_of(self, account: str) -> int:
        return await self._call_uint("balanceOf(address)", account)

    async def allowance(self, owner: str, spender: str) -> int:
        return await self._call_uint("allowance(address,address)", owner, spender)

    async def decimals(self) -> int:
        return await self._call_uint("decimals()")
