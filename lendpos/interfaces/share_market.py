"""Share market protocol: yield-bearing deposit and loan market."""
from typing import Protocol


class ShareMarket(Protocol):
    """Mint/redeem shares and borrow/repay the underlying.

    Write operations return the protocol status code, 0 meaning success.
    """

    async def mint(self, amount: int) -> int: ...

    async def redeem(self, share_amount: int) -> int: ...

    async def borrow(self, amount: int) -> int: ...

    async def repay_borrow(self, amount: int) -> int: ...

    async def balance_of(self, account: str) -> int: ...

    async def exchange_rate(self) -> int: ...

    async def supply_rate(self) -> int: ...

    async def borrow_balance(self, account: str) -> int: ...
