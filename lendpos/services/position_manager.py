"""Position manager: supply, enter-and-borrow, repay and redeem against a money market."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Mapping

from ..errors import (
    BorrowFailed,
    InsufficientCollateral,
    LiquidityQueryFailed,
    MarketEntryFailed,
    MintFailed,
    NoLiquidity,
    PriceUnavailable,
    RedeemFailed,
    RepayFailed,
    TransferFailed,
    ZeroMaxBorrow,
)
from ..fixed_point import BPS_DENOMINATOR, apply_bps, max_borrow, shares_to_underlying
from ..interfaces import AssetLedger, PriceOracle, RiskRegistry, ShareMarket
from ..models import (
    BorrowResult,
    LiquiditySnapshot,
    Market,
    MarketInfo,
    Position,
    RateSnapshot,
)
from .compensation import Compensation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collaborators:
    """Handles to every external contract the manager talks to.

    Ledgers and share markets are keyed by :attr:`Market.key`.
    """

    registry: RiskRegistry
    oracle: PriceOracle
    ledgers: Mapping[str, AssetLedger] = field(default_factory=dict)
    share_markets: Mapping[str, ShareMarket] = field(default_factory=dict)

    def ledger(self, market: Market) -> AssetLedger:
        try:
            return self.ledgers[market.key]
        except KeyError:
            raise KeyError(f"No asset ledger wired for market '{market.name}'") from None

    def share_market(self, market: Market) -> ShareMarket:
        try:
            return self.share_markets[market.key]
        except KeyError:
            raise KeyError(f"No share market wired for market '{market.name}'") from None


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


class PositionManager:
    """Runs one account's position against the money market.

    ``account`` is the manager's custody address: it holds the minted shares
    and the borrowed funds. Each public operation holds an ``asyncio.Lock``
    for its whole duration and either completes or leaves no effect behind.
    Local bookkeeping in :attr:`position` is replaced as soon as the
    collaborator whose state it mirrors has confirmed the change, so it
    never records shares or collateral the market does not hold.
    """

    def __init__(
        self,
        account: str,
        collaborators: Collaborators,
        position: Position | None = None,
    ) -> None:
        self.account = account
        self._collab = collaborators
        self._position = position if position is not None else Position()
        self._lock = asyncio.Lock()

    @property
    def position(self) -> Position:
        return self._position

    # ------------------------------------------------------------------
    # Supply / redeem
    # ------------------------------------------------------------------

    async def supply(self, caller: str, market: Market, amount: int) -> int:
        """Deposit ``amount`` of the underlying from ``caller``; return shares minted."""
        _require_positive("amount", amount)
        ledger = self._collab.ledger(market)
        shares = self._collab.share_market(market)

        async with self._lock, Compensation(f"supply {market.name}") as undo:
            shares_before = await shares.balance_of(self.account)

            if not await ledger.transfer_from(caller, self.account, amount):
                raise TransferFailed(
                    f"could not pull {amount} {market.name} from {caller}"
                )
            undo.push(
                f"return {amount} to {caller}",
                lambda: ledger.transfer(caller, amount),
            )

            if not await ledger.approve(market.share_market, amount):
                raise TransferFailed(f"approve of {market.share_market} rejected")
            undo.push(
                "revoke share market allowance",
                lambda: ledger.approve(market.share_market, 0),
            )

            code = await shares.mint(amount)
            if code != 0:
                raise MintFailed(code, market.name)

            # The underlying now belongs to the share market.
            undo.discard()
            undo.push(
                f"unwind mint of {amount} {market.name}",
                lambda: self._unwind_mint(caller, market, shares_before),
            )

            minted = await shares.balance_of(self.account) - shares_before
            self._position = self._position.with_shares(market, minted)

        logger.info("Supplied %d %s for %d shares", amount, market.name, minted)
        return minted

    async def redeem(self, caller: str, market: Market, share_amount: int) -> int:
        """Burn ``share_amount`` shares and send the underlying received to ``caller``.

        Whether the remaining collateral still covers open borrows is not
        checked here; call :meth:`get_account_liquidity` first.
        """
        _require_positive("share_amount", share_amount)
        ledger = self._collab.ledger(market)
        shares = self._collab.share_market(market)

        async with self._lock, Compensation(f"redeem {market.name}") as undo:
            held = self._position.shares(market)
            if share_amount > held:
                raise ValueError(
                    f"cannot redeem {share_amount} shares of {market.name}, holding {held}"
                )

            balance_before = await ledger.balance_of(self.account)
            code = await shares.redeem(share_amount)
            if code != 0:
                raise RedeemFailed(code, market.name)

            # Burned shares are gone whatever happens to the payout.
            self._position = self._position.with_shares(market, -share_amount)
            received = await ledger.balance_of(self.account) - balance_before

            if received > 0:
                undo.push(
                    f"re-supply {received} {market.name}",
                    lambda: self._resupply(market, received),
                )
                if not await ledger.transfer(caller, received):
                    raise TransferFailed(
                        f"could not send {received} {market.name} to {caller}"
                    )

        logger.info(
            "Redeemed %d %s shares for %d underlying", share_amount, market.name, received
        )
        return received

    async def _resupply(self, market: Market, amount: int) -> bool:
        ledger = self._collab.ledger(market)
        shares = self._collab.share_market(market)
        if not await ledger.approve(market.share_market, amount):
            return False
        before = await shares.balance_of(self.account)
        if await shares.mint(amount) != 0:
            return False
        minted = await shares.balance_of(self.account) - before
        self._position = self._position.with_shares(market, minted)
        return True

    async def _unwind_mint(self, caller: str, market: Market, shares_before: int) -> bool:
        """Redeem what a supply minted and hand the proceeds back to ``caller``."""
        ledger = self._collab.ledger(market)
        shares = self._collab.share_market(market)
        minted = await shares.balance_of(self.account) - shares_before
        if minted <= 0:
            return False
        balance_before = await ledger.balance_of(self.account)
        if await shares.redeem(minted) != 0:
            return False
        received = await ledger.balance_of(self.account) - balance_before
        return await ledger.transfer(caller, received)

    # ------------------------------------------------------------------
    # Borrow / repay
    # ------------------------------------------------------------------

    async def enter_and_borrow(
        self,
        market: Market,
        borrow_decimals: int | None,
        borrow_fraction_bps: int,
        *,
        borrow_market: Market | None = None,
    ) -> BorrowResult:
        """Enter ``market`` as collateral and borrow a fraction of the maximum.

        The maximum is ``liquidity * 10**borrow_decimals / price`` where
        ``price`` is the oracle price of the borrowed market's underlying.
        ``borrow_market`` defaults to ``market`` and ``borrow_decimals``
        to the borrowed market's underlying decimals.
        """
        if not 0 < borrow_fraction_bps <= BPS_DENOMINATOR:
            raise ValueError(
                f"borrow_fraction_bps must be in (0, {BPS_DENOMINATOR}], "
                f"got {borrow_fraction_bps}"
            )
        target = borrow_market or market
        if borrow_decimals is None:
            borrow_decimals = target.underlying_decimals
        if borrow_decimals < 0:
            raise ValueError(f"borrow_decimals must be non-negative, got {borrow_decimals}")

        async with self._lock:
            codes = await self._collab.registry.enter_markets([market.share_market])
            code = codes[0] if codes else -1
            if code != 0:
                raise MarketEntryFailed(code, market.name)
            self._position = self._position.with_collateral(market)

            liquidity, shortfall = await self._read_liquidity()
            # Shortfall wins even if the registry also reports liquidity.
            if shortfall > 0:
                raise InsufficientCollateral(shortfall)
            if liquidity == 0:
                raise NoLiquidity("account has no liquidity to borrow against")

            price = await self._collab.oracle.get_underlying_price(target.share_market)
            if price <= 0:
                raise PriceUnavailable(f"oracle has no price for {target.name}")

            ceiling = max_borrow(liquidity, price, borrow_decimals)
            if ceiling == 0:
                raise ZeroMaxBorrow(
                    f"liquidity {liquidity} buys no {target.name} at {price}"
                )

            amount = apply_bps(ceiling, borrow_fraction_bps)
            code = await self._collab.share_market(target).borrow(amount)
            if code != 0:
                raise BorrowFailed(code, target.name)

            self._position = self._position.with_principal(target, amount)

        logger.info(
            "Borrowed %d %s (%d bps of max %d) against %s",
            amount,
            target.name,
            borrow_fraction_bps,
            ceiling,
            market.name,
        )
        return BorrowResult(
            market=target.name,
            liquidity=liquidity,
            price=price,
            max_borrow=ceiling,
            amount=amount,
        )

    async def repay(self, borrowed_market: Market, amount: int) -> None:
        """Repay ``amount`` of the underlying held by the manager."""
        _require_positive("amount", amount)
        ledger = self._collab.ledger(borrowed_market)
        shares = self._collab.share_market(borrowed_market)

        async with self._lock, Compensation(f"repay {borrowed_market.name}") as undo:
            if not await ledger.approve(borrowed_market.share_market, amount):
                raise TransferFailed(
                    f"approve of {borrowed_market.share_market} rejected"
                )
            undo.push(
                "revoke share market allowance",
                lambda: ledger.approve(borrowed_market.share_market, 0),
            )

            code = await shares.repay_borrow(amount)
            if code != 0:
                raise RepayFailed(code, borrowed_market.name)

            self._position = self._position.with_principal(borrowed_market, -amount)

        logger.info("Repaid %d %s", amount, borrowed_market.name)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    async def _read_liquidity(self) -> tuple[int, int]:
        error, liquidity, shortfall = await self._collab.registry.get_account_liquidity(
            self.account
        )
        if error != 0:
            raise LiquidityQueryFailed(error)
        return liquidity, shortfall

    async def get_account_liquidity(self) -> LiquiditySnapshot:
        liquidity, shortfall = await self._read_liquidity()
        return LiquiditySnapshot(liquidity=liquidity, shortfall=shortfall)

    async def get_share_balance(self, market: Market) -> int:
        return await self._collab.share_market(market).balance_of(self.account)

    async def get_underlying_balance(self, market: Market) -> int:
        return await self._collab.ledger(market).balance_of(self.account)

    async def get_exchange_rate_and_supply_rate(self, market: Market) -> RateSnapshot:
        shares = self._collab.share_market(market)
        exchange_rate = await shares.exchange_rate()
        supply_rate = await shares.supply_rate()
        return RateSnapshot(exchange_rate=exchange_rate, supply_rate=supply_rate)

    async def estimate_underlying_balance(self, market: Market) -> int:
        shares = self._collab.share_market(market)
        balance = await shares.balance_of(self.account)
        exchange_rate = await shares.exchange_rate()
        return shares_to_underlying(
            balance, exchange_rate, market.underlying_decimals, market.share_decimals
        )

    async def get_collateral_factor(self, market: Market) -> MarketInfo:
        is_listed, factor = await self._collab.registry.markets(market.share_market)
        return MarketInfo(is_listed=is_listed, collateral_factor=factor)

    async def get_borrow_balance(self, market: Market) -> int:
        return await self._collab.share_market(market).borrow_balance(self.account)
