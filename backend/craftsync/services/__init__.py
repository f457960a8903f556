"""Services Layer — stores, the event synchronizer and crafting orchestration.

Invariants:
    - Services own IO; decisions are delegated to pure functions in core/
    - Each store write is one transaction

Design Decisions:
    - One module per service for locality
"""
