"""Crafting Routes — grid crafts, bag previews, recipes per grid size.

Invariants:
    - Routes only translate: schema -> core value -> CraftingService -> schema
    - Failures surface as CraftSyncError envelopes via the global handlers
      (400 malformed grid, 404 no match, 400 ingredients unavailable)
"""

import logging

from fastapi import APIRouter, Depends

from craftsync.api.dependencies import get_crafting_service
from craftsync.schemas.crafting import (
    CraftResponse, GridRecipesResponse, GridRequest, PreviewRequest,
    PreviewResponse, RecipeSummary,
)
from craftsync.services.crafting_service import CraftingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/crafting", tags=["crafting"])


@router.post("/craft", response_model=CraftResponse)
async def craft(
    body: GridRequest,
    service: CraftingService = Depends(get_crafting_service),
):
    """Match a grid against the stored recipes; report what it would consume."""
    result = await service.craft(body.to_domain())
    return CraftResponse.from_result(result)


@router.post("/preview", response_model=PreviewResponse)
async def preview(
    body: PreviewRequest,
    service: CraftingService = Depends(get_crafting_service),
):
    """Every active recipe, with craftability against an unordered bag."""
    verdicts, names = await service.preview(body.to_domain())
    return PreviewResponse.from_verdicts(verdicts, names)


@router.get("/grid/{grid_size}/recipes", response_model=GridRecipesResponse)
async def recipes_for_grid(
    grid_size: int,
    service: CraftingService = Depends(get_crafting_service),
):
    recipes = await service.recipes_for_grid(grid_size)
    refs = [r.output for r in recipes]
    refs += [req.ingredient for r in recipes for req in r.requirements]
    names = await service.ingredient_names(refs)
    return GridRecipesResponse(
        grid_size=grid_size,
        recipes=[RecipeSummary.from_spec(r, names) for r in recipes],
    )
