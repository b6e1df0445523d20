"""Asset ledger protocol: fungible token abstraction."""
from typing import Protocol


class AssetLedger(Protocol):
    """Balances and transfers of one underlying asset, seen from the manager's account."""

    async def transfer(self, to: str, amount: int) -> bool: ...

    async def transfer_from(self, src: str, dst: str, amount: int) -> bool: ...

    async def approve(self, spender: str, amount: int) -> bool: ...

    async def balance_of(self, account: str) -> int: ...

    async def decimals(self) -> int: ...
