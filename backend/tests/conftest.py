"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real ledger or database
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("CHAIN_RPC_URL", "")
os.environ.setdefault("LOG_FORMAT", "text")
