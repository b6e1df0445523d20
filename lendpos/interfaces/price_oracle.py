"""Price oracle protocol: price feed abstraction."""
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for fetching a market's underlying price (1e18 scaled)."""

    async def get_underlying_price(self, market: str) -> int: ...
