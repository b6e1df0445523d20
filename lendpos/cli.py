"""Command-line interface for the position manager."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .chains.evm import EvmClient, RpcError, TransactionReverted
from .config import AppConfig, load_config
from .errors import PositionError
from .logging_setup import configure_logging
from .models import Position
from .protocols.compound import build_collaborators
from .services import PositionManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lendpos",
        description="Manage a supply/borrow position on a Compound-style money market",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    status = sub.add_parser("status", help="Show balances, rates and liquidity for a market")
    status.add_argument("market", help="Market name from config")

    supply = sub.add_parser("supply", help="Supply underlying (smallest units)")
    supply.add_argument("market")
    supply.add_argument("amount", type=int)

    redeem = sub.add_parser("redeem", help="Redeem shares (smallest units)")
    redeem.add_argument("market")
    redeem.add_argument("shares", type=int)

    borrow = sub.add_parser("borrow", help="Enter market as collateral and borrow")
    borrow.add_argument("market", help="Collateral market")
    borrow.add_argument(
        "--fraction-bps",
        type=int,
        default=None,
        help="Fraction of the maximum to borrow, in basis points (overrides config)",
    )
    borrow.add_argument(
        "--borrow-market",
        default=None,
        help="Market to borrow from (default: the collateral market)",
    )
    borrow.add_argument(
        "--decimals",
        type=int,
        default=None,
        help="Decimals of the borrowed asset (default: from config)",
    )

    repay = sub.add_parser("repay", help="Repay borrowed underlying (smallest units)")
    repay.add_argument("market")
    repay.add_argument("amount", type=int)

    return parser


async def _status(manager: PositionManager, config: AppConfig, name: str) -> None:
    market = config.market(name)
    rates = await manager.get_exchange_rate_and_supply_rate(market)
    info = await manager.get_collateral_factor(market)
    liquidity = await manager.get_account_liquidity()

    print(f"Market:              {market.name} ({market.share_market})")
    print(f"Listed:              {'yes' if info.is_listed else 'no'}")
    print(f"Collateral factor:   {info.collateral_factor / 10**18:.2%}")
    print(f"Share balance:       {await manager.get_share_balance(market)}")
    print(f"Exchange rate:       {rates.exchange_rate}")
    print(f"Supply rate/block:   {rates.supply_rate}")
    print(f"Underlying (est.):   {await manager.estimate_underlying_balance(market)}")
    print(f"Underlying held:     {await manager.get_underlying_balance(market)}")
    print(f"Borrow balance:      {await manager.get_borrow_balance(market)}")
    print(f"Liquidity:           {liquidity.liquidity}")
    print(f"Shortfall:           {liquidity.shortfall}")


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    collaborators = build_collaborators(config, EvmClient(config.chain))
    manager = PositionManager(config.account.manager, collaborators)
    caller = config.account.caller

    if args.command == "status":
        await _status(manager, config, args.market)
    elif args.command == "supply":
        minted = await manager.supply(caller, config.market(args.market), args.amount)
        print(f"Minted {minted} shares")
    elif args.command == "redeem":
        market = config.market(args.market)
        # Shares already in custody from earlier runs count as supplied.
        held = await manager.get_share_balance(market)
        manager = PositionManager(
            manager.account, collaborators, Position().with_shares(market, held)
        )
        received = await manager.redeem(caller, market, args.shares)
        print(f"Received {received} underlying")
    elif args.command == "borrow":
        bps = args.fraction_bps
        if bps is None:
            bps = config.manager.default_borrow_fraction_bps
        borrow_market = (
            config.market(args.borrow_market) if args.borrow_market else None
        )
        result = await manager.enter_and_borrow(
            config.market(args.market),
            args.decimals,
            bps,
            borrow_market=borrow_market,
        )
        print(f"Borrowed {result.amount} {result.market} (max {result.max_borrow})")
    elif args.command == "repay":
        await manager.repay(config.market(args.market), args.amount)
        print(f"Repaid {args.amount}")
    else:
        build_parser().print_help()
        sys.exit(1)


def _fail(message: str) -> None:
    logger.error("%s", message)
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except (PositionError, RpcError, TransactionReverted, TimeoutError) as e:
        _fail(str(e))
    except KeyError as e:
        _fail(e.args[0] if e.args else "unknown key")


if __name__ == "__main__":
    main()
