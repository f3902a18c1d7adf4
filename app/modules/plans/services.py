from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from datetime import datetime
import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.modules.plans.models import Plan
from app.modules.plans.schemas import PlanCreate, PlanUpdate
from app.modules.investments.calculator import calculate_end_date

logger = logging.getLogger(__name__)


DEFAULT_PLANS = [
    {
        "name": "Starter",
        "description": "Short entry-level plan",
        "roi": 5.0,
        "min_amount": 100.0,
        "duration": "7 days",
        "features": ["Daily interest accrual", "Principal returned at maturity"],
    },
    {
        "name": "Growth",
        "description": "Balanced monthly plan",
        "roi": 12.0,
        "min_amount": 1000.0,
        "duration": "1 month",
        "features": ["Higher rate of return", "Automatic payout", "Email updates"],
    },
    {
        "name": "Premium",
        "description": "Long-term plan for larger balances",
        "roi": 40.0,
        "min_amount": 10000.0,
        "duration": "6 months",
        "features": ["Best rate of return", "Automatic payout", "Priority support"],
    },
]


class PlanService:
    """Service for managing the investment plan catalogue"""

    @staticmethod
    async def get_active_plans(db: AsyncSession) -> List[Plan]:
        """Active plans, cheapest entry first"""
        query = select(Plan).where(Plan.is_active == True).order_by(Plan.min_amount.asc(), Plan.id.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_plan(db: AsyncSession, plan_id: int) -> Optional[Plan]:
        result = await db.execute(select(Plan).where(Plan.id == plan_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Plan.id).where(func.lower(Plan.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Plan.id != exclude_id)
        result = await db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            raise ValidationError("Plan name already exists")

    @staticmethod
    async def _commit_plan(db: AsyncSession) -> None:
        """Commit, reporting a name clash caught by the unique index as a validation error"""
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ValidationError("Plan name already exists")

    @staticmethod
    async def create_plan(db: AsyncSession, data: PlanCreate) -> Plan:
        """Create a plan after checking its duration and name"""
        calculate_end_date(datetime.utcnow(), data.duration)
        await PlanService._ensure_unique_name(db, data.name)

        plan = Plan(
            name=data.name,
            description=data.description,
            roi=data.roi,
            min_amount=data.min_amount,
            duration=data.duration,
            features=data.features,
            is_active=True
        )
        db.add(plan)
        await PlanService._commit_plan(db)
        await db.refresh(plan)
        logger.info(f"Created plan {plan.id} ({plan.name})")
        return plan

    @staticmethod
    async def update_plan(db: AsyncSession, plan_id: int, data: PlanUpdate) -> Plan:
        plan = await PlanService.get_plan(db, plan_id)
        if not plan:
            raise NotFoundError("Plan not found")

        calculate_end_date(datetime.utcnow(), data.duration)
        await PlanService._ensure_unique_name(db, data.name, exclude_id=plan_id)

        update_data = data.model_dump()
        for field, value in update_data.items():
            setattr(plan, field, value)

        await PlanService._commit_plan(db)
        await db.refresh(plan)
        return plan

    @staticmethod
    async def deactivate_plan(db: AsyncSession, plan_id: int) -> Plan:
        """Soft delete: the plan stays referenced by existing investments"""
        plan = await PlanService.get_plan(db, plan_id)
        if not plan:
            raise NotFoundError("Plan not found")

        plan.is_active = False
        await db.commit()
        await db.refresh(plan)
        logger.info(f"Deactivated plan {plan.id} ({plan.name})")
        return plan

    @staticmethod
    async def init_default_plans(db: AsyncSession) -> int:
        """Seed the default catalogue when no plan exists yet"""
        count = await db.scalar(select(func.count(Plan.id)))
        if count:
            logger.info("Plans table is not empty, skipping seeding")
            return 0

        for plan_data in DEFAULT_PLANS:
            db.add(Plan(is_active=True, **plan_data))

        await db.commit()
        logger.info(f"Seeded {len(DEFAULT_PLANS)} default plans")
        return len(DEFAULT_PLANS)
