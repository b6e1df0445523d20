"""Compound v2 style contracts over JSON-RPC."""
from .comptroller import Comptroller
from .ctoken import CTokenMarket
from .erc20 import Erc20Ledger
from .factory import build_collaborators
from .oracle import CompoundOracle

__all__ = [
    "CTokenMarket",
    "CompoundOracle",
    "Comptroller",
    "Erc20Ledger",
    "build_collaborators",
]
