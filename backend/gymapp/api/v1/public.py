"""Public API router — plans and the class catalogue, no auth required."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gymapp.api.deps import get_db
from gymapp.schemas.catalog import (
    PlanResponse,
    PlansListResponse,
    PublicClassesListResponse,
    PublicClassResponse,
)
from gymapp.services import catalog_service

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/plans", response_model=PlansListResponse)
async def list_plans(db: AsyncSession = Depends(get_db)) -> PlansListResponse:
    """List subscription plans, cheapest first."""
    plans = await catalog_service.list_plans(db)
    return PlansListResponse(plans=[PlanResponse.model_validate(p) for p in plans])


@router.get("/classes", response_model=PublicClassesListResponse)
async def list_classes(db: AsyncSession = Depends(get_db)) -> PublicClassesListResponse:
    classes = await catalog_service.list_group_classes(db)
    return PublicClassesListResponse(classes=[PublicClassResponse.model_validate(c) for c in classes])
