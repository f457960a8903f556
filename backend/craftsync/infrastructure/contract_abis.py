"""Contract ABIs — the on-chain views and events the service reads.

Invariants:
    - Read-only: no entry here is ever sent as a transaction by this service;
      createRecipe is listed only so its calldata can be decoded
    - Each event entry is decoded on its own, so two RecipeCreated shapes can coexist

Design Decisions:
    - JSON ABI fragments over human-readable signatures: web3.py consumes them directly
"""


def _param(name: str, type_: str, indexed: bool | None = None, components=None) -> dict:
    param = {"name": name, "type": type_, "internalType": type_}
    if indexed is not None:
        param["indexed"] = indexed
    if components is not None:
        param["components"] = components
    return param


def _view(name: str, inputs: list[dict], outputs: list[dict]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": outputs,
    }


def _event(name: str, inputs: list[dict]) -> dict:
    return {"type": "event", "name": name, "anonymous": False, "inputs": inputs}


INGREDIENT_TUPLE = [
    _param("tokenId", "uint256"),
    _param("amount", "uint256"),
    _param("position", "uint8"),
]


# ─── ERC1155 game items ──────────────────────────────────────────

TOKEN_FUNCTIONS = [
    _view("balanceOf", [_param("account", "address"), _param("id", "uint256")],
          [_param("", "uint256")]),
    _view("uri", [_param("id", "uint256")], [_param("", "string")]),
    _view("tokenPrices", [_param("id", "uint256")], [_param("", "uint256")]),
    _view("tokenNames", [_param("id", "uint256")], [_param("", "string")]),
    _view("totalSupply", [_param("id", "uint256")], [_param("", "uint256")]),
    _view("exists", [_param("id", "uint256")], [_param("", "bool")]),
]

TOKEN_EVENTS = [
    _event("TransferBatch", [
        _param("operator", "address", indexed=True),
        _param("from", "address", indexed=True),
        _param("to", "address", indexed=True),
        _param("ids", "uint256[]", indexed=False),
        _param("values", "uint256[]", indexed=False),
    ]),
    _event("TransferSingle", [
        _param("operator", "address", indexed=True),
        _param("from", "address", indexed=True),
        _param("to", "address", indexed=True),
        _param("id", "uint256", indexed=False),
        _param("value", "uint256", indexed=False),
    ]),
]


# ─── Workbench (recipes) ─────────────────────────────────────────

WORKBENCH_FUNCTIONS = [
    _view("getRecipe", [_param("recipeId", "uint256")], [
        _param("outputTokenId", "uint256"),
        _param("outputAmount", "uint256"),
        _param("requiresExactPattern", "bool"),
        _param("active", "bool"),
        _param("name", "string"),
        _param("ingredientCount", "uint256"),
    ]),
    _view("getRecipeIngredients", [_param("recipeId", "uint256")], [
        _param("ingredients", "tuple[]", components=INGREDIENT_TUPLE),
    ]),
    _view("getActiveRecipeIds", [], [_param("activeRecipeIds", "uint256[]")]),
    {
        "type": "function",
        "name": "createRecipe",
        "stateMutability": "nonpayable",
        "inputs": [
            _param("ingredients", "tuple[]", components=INGREDIENT_TUPLE),
            _param("outputTokenId", "uint256"),
            _param("outputAmount", "uint256"),
            _param("requiresExactPattern", "bool"),
            _param("name", "string"),
        ],
        "outputs": [_param("recipeId", "uint256")],
    },
]

# Full payload: ingredient arrays travel with the event.
RECIPE_CREATED_FULL = _event("RecipeCreated", [
    _param("recipeId", "uint256", indexed=True),
    _param("resultIngredientId", "uint256", indexed=True),
    _param("ingredients", "uint256[]", indexed=False),
    _param("positions", "uint8[]", indexed=False),
    _param("amounts", "uint256[]", indexed=False),
])

# Compact payload: ingredients must be recovered from the createRecipe calldata.
RECIPE_CREATED_COMPACT = _event("RecipeCreated", [
    _param("recipeId", "uint256", indexed=True),
    _param("name", "string", indexed=False),
    _param("outputTokenId", "uint256", indexed=False),
    _param("outputAmount", "uint256", indexed=False),
])

WORKBENCH_EVENTS = [RECIPE_CREATED_FULL, RECIPE_CREATED_COMPACT]


def event_signature(event_abi: dict) -> str:
    """Canonical signature, e.g. TransferBatch(address,address,address,uint256[],uint256[])."""
    types = ",".join(i["type"] for i in event_abi["inputs"])
    return f"{event_abi['name']}({types})"
