"""Shared plumbing for Compound-style contract adapters."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from ...chains.evm import EvmClient
from ...chains.evm import abi

logger = logging.getLogger(__name__)


class ContractAdapter:
    """A deployed contract, called and transacted from one account."""

    def __init__(self, client: EvmClient, address: str, account: str) -> None:
        self._client = client
        self.address = address
        self.account = account

    async def _call(self, signature: str, *args: Any, returns: Sequence[str]) -> tuple[Any, ...]:
        data = abi.encode_call(signature, *args)
        result = await self._client.call(self.address, data, sender=self.account)
        return abi.decode_result(returns, result)

    async def _call_uint(self, signature: str, *args: Any) -> int:
        (value,) = await self._call(signature, *args, returns=["uint256"])
        return int(value)

    async def _transact(self, signature: str, *args: Any) -> dict[str, Any]:
        data = abi.encode_call(signature, *args)
        logger.info("Sending %s to %s", signature, self.address)
        return await self._client.transact(self.account, self.address, data)

    async def _transact_with_status(self, signature: str, *args: Any) -> int:
        """Run a status-returning write.

        The call is simulated first; a non-zero code is returned without
        sending, otherwise the transaction is sent and 0 returned.
        """
        code = await self._call_uint(signature, *args)
        if code != 0:
            logger.warning("%s on %s would fail with code %d", signature, self.address, code)
            return code
        await self._transact(signature, *args)
        return 0
