"""Risk registry protocol: market listing and account liquidity."""
from typing import Protocol


class RiskRegistry(Protocol):
    """Abstract interface for the protocol's risk controller."""

    async def enter_markets(self, markets: list[str]) -> list[int]: ...

    async def get_account_liquidity(self, account: str) -> tuple[int, int, int]: ...

    async def markets(self, market: str) -> tuple[bool, int]: ...
