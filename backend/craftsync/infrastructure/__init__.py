"""Infrastructure Layer — database, ledger transport and cross-cutting concerns.

Invariants:
    - Infrastructure imports only types and errors from core/, never matching logic
    - All ledger reads wrapped with retry and error mapping (TransientChainError)

Design Decisions:
    - Resilient wrappers over raw clients: web3.py and SQLAlchemy errors never
      leak past this layer untyped
"""
