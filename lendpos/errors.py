"""Typed failures raised by the position manager."""
from __future__ import annotations

# Compound ComptrollerErrorReporter.Error
COMPTROLLER_ERRORS: tuple[str, ...] = (
    "NO_ERROR",
    "UNAUTHORIZED",
    "COMPTROLLER_MISMATCH",
    "INSUFFICIENT_SHORTFALL",
    "INSUFFICIENT_LIQUIDITY",
    "INVALID_CLOSE_FACTOR",
    "INVALID_COLLATERAL_FACTOR",
    "INVALID_LIQUIDATION_INCENTIVE",
    "MARKET_NOT_ENTERED",
    "MARKET_NOT_LISTED",
    "MARKET_ALREADY_LISTED",
    "MATH_ERROR",
    "NONZERO_BORROW_BALANCE",
    "PRICE_ERROR",
    "REJECTION",
    "SNAPSHOT_ERROR",
    "TOO_MANY_ASSETS",
    "TOO_MUCH_REPAY",
)

# Compound TokenErrorReporter.Error
TOKEN_ERRORS: tuple[str, ...] = (
    "NO_ERROR",
    "UNAUTHORIZED",
    "BAD_INPUT",
    "COMPTROLLER_REJECTION",
    "COMPTROLLER_CALCULATION_ERROR",
    "INTEREST_RATE_MODEL_ERROR",
    "INVALID_ACCOUNT_PAIR",
    "INVALID_CLOSE_AMOUNT_REQUESTED",
    "INVALID_COLLATERAL_FACTOR",
    "MATH_ERROR",
    "MARKET_NOT_FRESH",
    "MARKET_NOT_LISTED",
    "TOKEN_INSUFFICIENT_ALLOWANCE",
    "TOKEN_INSUFFICIENT_BALANCE",
    "TOKEN_INSUFFICIENT_CASH",
    "TOKEN_TRANSFER_IN_FAILED",
    "TOKEN_TRANSFER_OUT_FAILED",
)


def describe_code(code: int, table: tuple[str, ...] = TOKEN_ERRORS) -> str:
    """Render a protocol status code, e.g. ``3 (COMPTROLLER_REJECTION)``."""
    if 0 <= code < len(table):
        return f"{code} ({table[code]})"
    return str(code)


class PositionError(Exception):
    """Base class for every failure surfaced by a position operation."""


class CodedError(PositionError):
    """A collaborator answered with a non-zero status code."""

    table: tuple[str, ...] = TOKEN_ERRORS
    action = "operation"

    def __init__(self, code: int, market: str = "") -> None:
        self.code = code
        self.market = market
        where = f" on {market}" if market else ""
        super().__init__(f"{self.action} failed{where}: {describe_code(code, self.table)}")


class TransferFailed(PositionError):
    """The asset ledger rejected a transfer (balance or allowance)."""


class MintFailed(CodedError):
    action = "mint"


class RedeemFailed(CodedError):
    action = "redeem"


class BorrowFailed(CodedError):
    action = "borrow"


class RepayFailed(CodedError):
    action = "repayBorrow"


class MarketEntryFailed(CodedError):
    table = COMPTROLLER_ERRORS
    action = "enterMarkets"


class LiquidityQueryFailed(CodedError):
    table = COMPTROLLER_ERRORS
    action = "getAccountLiquidity"


class InsufficientCollateral(PositionError):
    """The account is in shortfall."""

    def __init__(self, shortfall: int) -> None:
        self.shortfall = shortfall
        super().__init__(f"account has a shortfall of {shortfall}")


class NoLiquidity(PositionError):
    """The account has no borrowing power left."""


class PriceUnavailable(PositionError):
    """The oracle reported a zero price for the market."""


class ZeroMaxBorrow(PositionError):
    """Liquidity converts to less than one unit of the borrowed asset."""
