"""Pure fixed-point conversions. No I/O."""
from __future__ import annotations

EXP_SCALE = 10**18
BPS_DENOMINATOR = 10_000


def rescale(value: int, exponent: int) -> int:
    """Divide ``value`` by ``10**exponent``, multiplying when it is negative.

    Division truncates toward zero.
    """
    if exponent >= 0:
        return value // 10**exponent
    return value * 10 ** (-exponent)


def shares_to_underlying(
    share_balance: int,
    exchange_rate: int,
    underlying_decimals: int,
    share_decimals: int,
) -> int:
    """Convert a share balance into its underlying-asset equivalent.

        underlying = shares * exchange_rate / 10^(18 + underlying_dec - share_dec)

    The exponent may be negative when the underlying uses fewer decimals
    than the share token.
    """
    return rescale(
        share_balance * exchange_rate,
        18 + underlying_decimals - share_decimals,
    )


def max_borrow(liquidity: int, price: int, borrow_decimals: int) -> int:
    """Largest borrow, in the borrowed asset's smallest unit, that ``liquidity`` covers.

    ``liquidity`` and ``price`` share the 1e18 reference-currency scale.
    """
    if price <= 0:
        raise ValueError("price must be positive")
    return liquidity * 10**borrow_decimals // price


def apply_bps(amount: int, bps: int) -> int:
    """Take ``bps`` basis points of ``amount``, rounding down."""
    return amount * bps // BPS_DENOMINATOR
