from pydantic import Field
from datetime import datetime
from typing import Optional, List

from app.core.schemas import CamelModel
from app.modules.transactions.models import TransactionStatus


# ============ Requests ============

class InvestmentCreate(CamelModel):
    plan_id: int
    amount: float = Field(..., gt=0)
    user_id: int
    interest: Optional[float] = Field(None, ge=0, description="Overrides amount * roi / 100")


class InvestmentStatusUpdate(CamelModel):
    status: TransactionStatus


# ============ Responses ============

class InvestmentResponse(CamelModel):
    id: int
    type: str
    status: str
    amount: float
    user_id: int
    user_email: str
    user_name: Optional[str] = None
    plan_name: Optional[str] = None
    plan_duration: Optional[str] = None
    total_interest: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current_interest: Optional[float] = None
    created_at: Optional[datetime] = None


class InvestmentSummary(CamelModel):
    id: int
    status: str
    start_date: datetime
    end_date: datetime
    time_remaining: int = Field(..., description="Milliseconds until maturity at creation time")


class InvestmentCreatedResponse(CamelModel):
    message: str
    remaining_balance: float
    investment: InvestmentSummary


class InvestmentStatusResponse(CamelModel):
    message: str
    transaction: InvestmentResponse


class InvestmentProgress(CamelModel):
    investment_id: int
    status: str  # stored status, or "ready_to_complete" once due
    total_amount: float
    total_interest: float
    current_interest: float
    progress: float
    time_remaining: str
    start_date: datetime
    end_date: datetime
    is_completed: bool


class ActiveInvestment(InvestmentResponse):
    is_due: bool
    progress: float


class ActiveInvestmentsSummary(CamelModel):
    total: int
    ready_to_complete: int


class ActiveInvestmentsResponse(CamelModel):
    investments: List[ActiveInvestment]
    summary: ActiveInvestmentsSummary
