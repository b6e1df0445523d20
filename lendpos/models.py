"""Data models. Value types are frozen."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Market:
    """One supply/borrow market: an underlying asset and its share market."""

    name: str
    underlying: str
    share_market: str
    underlying_decimals: int = 18
    share_decimals: int = 8

    @property
    def key(self) -> str:
        return self.share_market


@dataclass(frozen=True)
class LiquiditySnapshot:
    """Account liquidity as reported by the risk registry (1e18 scaled)."""

    liquidity: int
    shortfall: int

    def __post_init__(self) -> None:
        if self.liquidity and self.shortfall:
            raise ValueError("liquidity and shortfall are mutually exclusive")
        if self.liquidity < 0 or self.shortfall < 0:
            raise ValueError("liquidity and shortfall must be non-negative")


@dataclass(frozen=True)
class MarketInfo:
    is_listed: bool
    collateral_factor: int


@dataclass(frozen=True)
class RateSnapshot:
    exchange_rate: int
    supply_rate: int


@dataclass(frozen=True)
class BorrowResult:
    """Outcome of a successful enter-and-borrow."""

    market: str
    liquidity: int
    price: int
    max_borrow: int
    amount: int


def _frozen(mapping: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Position:
    """Local bookkeeping of one manager.

    Never mutated in place: operations build the next position with
    ``with_*`` helpers and swap it in once all collaborator calls succeeded.
    """

    supplied_shares: Mapping[str, int] = field(default_factory=lambda: _frozen({}))
    entered_collateral: frozenset[str] = frozenset()
    borrowed_principal: Mapping[str, int] = field(default_factory=lambda: _frozen({}))

    def shares(self, market: Market) -> int:
        return self.supplied_shares.get(market.key, 0)

    def principal(self, market: Market) -> int:
        return self.borrowed_principal.get(market.key, 0)

    def with_shares(self, market: Market, delta: int) -> Position:
        updated = dict(self.supplied_shares)
        balance = updated.get(market.key, 0) + delta
        if balance < 0:
            raise ValueError(f"share balance of {market.name} would go negative")
        if balance:
            updated[market.key] = balance
        else:
            updated.pop(market.key, None)
        return replace(self, supplied_shares=_frozen(updated))

    def with_collateral(self, market: Market) -> Position:
        return replace(self, entered_collateral=self.entered_collateral | {market.key})

    def with_principal(self, market: Market, delta: int) -> Position:
        # Repaying more than recorded is the share market's concern; floor at zero.
        updated = dict(self.borrowed_principal)
        balance = max(0, updated.get(market.key, 0) + delta)
        if balance:
            updated[market.key] = balance
        else:
            updated.pop(market.key, None)
        return replace(self, borrowed_principal=_frozen(updated))
