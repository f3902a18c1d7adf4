from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.schemas import MessageResponse
from app.modules.investments import schemas
from app.modules.investments.automation import InvestmentCompletionScheduler, get_investment_scheduler
from app.modules.investments.calculator import milliseconds_between
from app.modules.investments.services import InvestmentService
from app.modules.notifications.services import InvestmentMailer, get_mailer

router = APIRouter(prefix="/plans", tags=["investments"])


def get_investment_service(
    db: AsyncSession = Depends(get_db),
    mailer: InvestmentMailer = Depends(get_mailer)
) -> InvestmentService:
    return InvestmentService(db, mailer)


@router.post(
    "/invest",
    response_model=schemas.InvestmentCreatedResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_investment(
    data: schemas.InvestmentCreate,
    service: InvestmentService = Depends(get_investment_service)
):
    """
    Invest in a plan.

    - Amount must meet the plan minimum and the user's deposit balance
    - The investment is activated immediately
    """
    investment, remaining_balance = await service.create_investment(data)
    return schemas.InvestmentCreatedResponse(
        message="Investment activated successfully",
        remaining_balance=remaining_balance,
        investment=schemas.InvestmentSummary(
            id=investment.id,
            status=investment.status.value,
            start_date=investment.start_date,
            end_date=investment.end_date,
            time_remaining=milliseconds_between(investment.start_date, investment.end_date)
        )
    )


@router.put("/investment/{investment_id}", response_model=schemas.InvestmentStatusResponse)
async def update_investment_status(
    investment_id: int,
    data: schemas.InvestmentStatusUpdate,
    service: InvestmentService = Depends(get_investment_service)
):
    """Move an investment to approved, rejected, completed, ... (admin)"""
    investment = await service.update_investment_status(investment_id, data.status)
    return schemas.InvestmentStatusResponse(
        message=f"Investment {data.status.value} successfully",
        transaction=schemas.InvestmentResponse.model_validate(investment)
    )


@router.get("/investment/{investment_id}/progress", response_model=schemas.InvestmentProgress)
async def get_investment_progress(
    investment_id: int,
    service: InvestmentService = Depends(get_investment_service)
):
    """Current accrued interest and remaining time"""
    return await service.get_progress(investment_id)


@router.get("/investments/active", response_model=schemas.ActiveInvestmentsResponse)
async def get_active_investments(service: InvestmentService = Depends(get_investment_service)):
    """All active investments with their progress"""
    return await service.list_active_with_progress()


@router.post("/investments/complete-automation", response_model=MessageResponse)
async def trigger_investment_completion(
    scheduler: InvestmentCompletionScheduler = Depends(get_investment_scheduler)
):
    """Run the completion sweep now (admin)"""
    await scheduler.run_manual_check()
    return {"message": "Investment completion check triggered successfully"}
