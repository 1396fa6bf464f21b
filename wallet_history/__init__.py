"""
Wallet History — Solana wallet transfer-history ingestion worker.

Pulls transaction signatures for tracked wallets from a Solana RPC provider,
reconstructs SOL transfers from balance deltas, and stores them idempotently.
Modular layout: provider client, ingestion pipeline, database, worker, CLI.
"""

__version__ = "0.1.0"
