"""Protocol interfaces for the money-market collaborators."""
from .asset_ledger import AssetLedger
from .price_oracle import PriceOracle
from .risk_registry import RiskRegistry
from .share_market import ShareMarket

__all__ = ["AssetLedger", "PriceOracle", "RiskRegistry", "ShareMarket"]
