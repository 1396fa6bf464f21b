"""
Solana chain data provider package.

JSON-RPC client for getSignaturesForAddress / getTransaction and the
normalized signature records it returns.
"""

from wallet_history.provider.models import SignatureRecord
from wallet_history.provider.rpc_client import SolanaRpcClient

__all__ = ["SignatureRecord", "SolanaRpcClient"]
