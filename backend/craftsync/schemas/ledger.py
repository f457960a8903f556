"""Ledger Read Schemas — live contract views, passed through without projection.

Invariants:
    - uint256 quantities (balances, supply, prices) travel as decimal strings
    - contract_address names the contract the value was read from
"""

from pydantic import BaseModel


class TokenBalanceOut(BaseModel):
    token_id: int
    account: str
    balance: str
    contract_address: str


class TokenPriceOut(BaseModel):
    token_id: int
    price_wei: str
    contract_address: str


class TokenSupplyOut(BaseModel):
    token_id: int
    total_supply: str
    contract_address: str


class TokenExistsOut(BaseModel):
    token_id: int
    exists: bool
    contract_address: str


class LedgerRecipeOut(BaseModel):
    recipe_id: int
    name: str
    output_token_id: int
    output_amount: int
    requires_exact_pattern: bool
    active: bool
    ingredient_count: int

    @classmethod
    def from_view(cls, recipe_id: int, view: dict) -> "LedgerRecipeOut":
        return cls(
            recipe_id=recipe_id,
            name=view["name"],
            output_token_id=view["outputTokenId"],
            output_amount=view["outputAmount"],
            requires_exact_pattern=view["requiresExactPattern"],
            active=view["active"],
            ingredient_count=view["ingredientCount"],
        )


class ActiveRecipeIdsOut(BaseModel):
    recipe_ids: list[int]
    count: int
