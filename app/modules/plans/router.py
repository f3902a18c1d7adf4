from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.schemas import MessageResponse
from app.modules.plans import schemas
from app.modules.plans.services import PlanService

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=List[schemas.PlanResponse])
async def get_plans(db: AsyncSession = Depends(get_db)):
    """Get all active plans, sorted by minimum amount"""
    return await PlanService.get_active_plans(db)


@router.get("/{plan_id}", response_model=schemas.PlanResponse)
async def get_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    plan = await PlanService.get_plan(db, plan_id)
    if not plan:
        raise NotFoundError("Plan not found")
    return plan


@router.post("", response_model=schemas.PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(data: schemas.PlanCreate, db: AsyncSession = Depends(get_db)):
    """
    Create a new plan.

    - ROI must be between 0 and 1000
    - Name must be unique (case-insensitive)
    - Duration must look like "30 days", "6 months", ...
    """
    return await PlanService.create_plan(db, data)


@router.put("/{plan_id}", response_model=schemas.PlanResponse)
async def update_plan(plan_id: int, data: schemas.PlanUpdate, db: AsyncSession = Depends(get_db)):
    """Replace a plan's fields (same validation as create)"""
    return await PlanService.update_plan(db, plan_id, data)


@router.delete("/{plan_id}", response_model=MessageResponse)
async def delete_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete a plan"""
    await PlanService.deactivate_plan(db, plan_id)
    return {"message": "Plan deleted successfully"}
