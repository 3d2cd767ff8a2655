from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.app.api.deps import get_catalog_service
from backend.app.models.block import BlockDefinition
from backend.app.services.catalog_service import CatalogService

router = APIRouter(prefix="/blocks", tags=["blocks"])


@router.get("", response_model=list[BlockDefinition])
async def list_blocks(
    category: str | None = Query(default=None),
    level: int | None = Query(default=None, ge=1, le=5),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[BlockDefinition]:
    return catalog.list_definitions(category, level)


@router.get("/categories")
async def list_categories(catalog: CatalogService = Depends(get_catalog_service)) -> dict[str, int]:
    return catalog.categories()


@router.get("/{definition_id}", response_model=BlockDefinition)
async def get_block(definition_id: str, catalog: CatalogService = Depends(get_catalog_service)) -> BlockDefinition:
    definition = catalog.get_definition(definition_id)
    if not definition:
        raise HTTPException(status_code=404, detail=f"Block definition '{definition_id}' not found")
    return definition
