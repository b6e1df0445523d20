from .client import EvmClient, RpcError, TransactionReverted

__all__ = ["EvmClient", "RpcError", "TransactionReverted"]
