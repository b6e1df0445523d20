"""EVM JSON-RPC client with fallback support."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error object (e.g. an execution revert)."""

    def __init__(self, error: dict[str, Any]) -> None:
        self.code = error.get("code")
        self.message = error.get("message", "")
        self.data = error.get("data")
        super().__init__(f"RPC Error {self.code}: {self.message}")


class TransactionReverted(RuntimeError):
    """A transaction was mined with status 0."""

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted")


class EvmClient:
    """EVM RPC client with automatic endpoint fallback.

    Transactions are sent with ``eth_sendTransaction`` so the node must
    manage (unlock) the sending account.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.poll_interval = config.receipt_poll_interval
        self.receipt_timeout = config.receipt_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints.

        Transport failures move on to the next endpoint. A JSON-RPC error
        object is the node's answer and is raised as :class:`RpcError`.
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in result:
                raise RpcError(result["error"])
            return result.get("result")

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def call(self, to: str, data: str, sender: str | None = None) -> str:
        """Execute a read-only ``eth_call`` against the latest block."""
        tx: dict[str, Any] = {"to": to, "data": data}
        if sender:
            tx["from"] = sender
        return await self.rpc_call("eth_call", [tx, "latest"])

    async def send_transaction(self, sender: str, to: str, data: str) -> str:
        """Submit a transaction and return its hash."""
        return await self.rpc_call(
            "eth_sendTransaction", [{"from": sender, "to": to, "data": data}]
        )

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        """Wait until ``tx_hash`` is mined, up to ``receipt_timeout`` seconds."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt:
                return receipt
            if loop.time() >= deadline:
                raise TimeoutError(
                    f"No receipt for {tx_hash} after {self.receipt_timeout}s"
                )
            await asyncio.sleep(self.poll_interval)

    async def transact(self, sender: str, to: str, data: str) -> dict[str, Any]:
        """Send a transaction, wait for it, and raise if it reverted."""
        tx_hash = await self.send_transaction(sender, to, data)
        logger.debug("Sent transaction %s to %s", tx_hash, to)
        receipt = await self.wait_for_receipt(tx_hash)
        if int(receipt.get("status", "0x0"), 16) != 1:
            raise TransactionReverted(tx_hash)
        return receipt
