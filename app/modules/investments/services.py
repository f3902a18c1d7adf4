from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from typing import List, Optional, Tuple
from datetime import datetime
import logging

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.modules.investments import calculator
from app.modules.investments.schemas import (
    InvestmentCreate, InvestmentResponse, InvestmentProgress,
    ActiveInvestment, ActiveInvestmentsResponse, ActiveInvestmentsSummary
)
from app.modules.notifications.services import InvestmentMailer
from app.modules.plans.services import PlanService
from app.modules.transactions.models import (
    Transaction, TransactionType, TransactionStatus, TERMINAL_STATUSES
)
from app.modules.users.models import User
from app.modules.users.services import UserService

logger = logging.getLogger(__name__)

READY_TO_COMPLETE = "ready_to_complete"


def _money(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


class InvestmentService:
    """
    Lifecycle of investment records.

    Investments are activated as soon as they are created. From there an
    admin (or the completion scheduler) moves them to ``approved``,
    ``rejected`` or ``completed``. Rejected and completed records are terminal,
    which keeps every refund and payout to a single application.
    """

    def __init__(
        self,
        db: AsyncSession,
        mailer: InvestmentMailer,
        report_refund_on_rejection: Optional[bool] = None
    ):
        self.db = db
        self.mailer = mailer
        if report_refund_on_rejection is None:
            report_refund_on_rejection = settings.REJECTION_NOTICE_REPORTS_REFUND
        self.report_refund_on_rejection = report_refund_on_rejection

    # ============================================================
    # Lookups
    # ============================================================

    async def get_investment(self, investment_id: int) -> Optional[Transaction]:
        result = await self.db.execute(
            select(Transaction).where(
                and_(Transaction.id == investment_id, Transaction.type == TransactionType.INVESTMENT)
            )
        )
        return result.scalar_one_or_none()

    async def get_investment_or_404(self, investment_id: int) -> Transaction:
        investment = await self.get_investment(investment_id)
        if investment is None:
            raise NotFoundError("Investment not found")
        return investment

    async def get_active_investments(self) -> List[Transaction]:
        result = await self.db.execute(
            select(Transaction).where(
                and_(
                    Transaction.type == TransactionType.INVESTMENT,
                    Transaction.status == TransactionStatus.ACTIVE
                )
            ).order_by(Transaction.end_date.asc(), Transaction.id.asc())
        )
        return list(result.scalars().all())

    async def get_active_investment_ids(self) -> List[int]:
        """Ids of active investments that have a maturity date"""
        result = await self.db.execute(
            select(Transaction.id).where(
                and_(
                    Transaction.type == TransactionType.INVESTMENT,
                    Transaction.status == TransactionStatus.ACTIVE,
                    Transaction.end_date.is_not(None)
                )
            ).order_by(Transaction.end_date.asc(), Transaction.id.asc())
        )
        return list(result.scalars().all())

    # ============================================================
    # Transitions
    # ============================================================

    async def create_investment(
        self,
        data: InvestmentCreate,
        now: Optional[datetime] = None
    ) -> Tuple[Transaction, float]:
        """
        Debit the user's deposit and open an active investment.

        Returns the new record and the user's remaining deposit balance.
        """
        plan = await PlanService.get_plan(self.db, data.plan_id)
        if not plan or not plan.is_active:
            raise NotFoundError("Plan not found")

        if data.amount < plan.min_amount:
            raise ValidationError(f"Minimum amount is ${_money(plan.min_amount)}")

        user = await UserService.get_user_or_404(self.db, data.user_id)

        if user.deposit < data.amount:
            raise ValidationError(f"Insufficient balance. Available: ${_money(user.deposit)}")

        start_date = now or datetime.utcnow()
        end_date = calculator.calculate_end_date(start_date, plan.duration)
        total_interest = data.interest or (data.amount * plan.roi) / 100

        remaining_balance = UserService.debit_deposit(user, data.amount)

        investment = Transaction(
            type=TransactionType.INVESTMENT,
            status=TransactionStatus.ACTIVE,
            amount=data.amount,
            user_id=user.id,
            user_email=user.email,
            user_name=user.username,
            plan_name=plan.name,
            plan_duration=plan.duration,
            total_interest=total_interest,
            start_date=start_date,
            end_date=end_date,
            current_interest=0.0,
            created_at=start_date
        )
        self.db.add(investment)
        await self.db.commit()
        await self.db.refresh(investment)

        logger.info(
            f"Investment {investment.id} activated for user {user.id}: "
            f"{data.amount} in '{plan.name}' until {end_date.isoformat()}"
        )

        await self.mailer.investment_approved(
            user.email, self._display_name(user), data.amount, investment.created_at, plan.name
        )
        await self.mailer.alert_admin(user.email, data.amount, investment.created_at, "investment")

        return investment, remaining_balance

    async def update_investment_status(
        self,
        investment_id: int,
        new_status: TransactionStatus
    ) -> Transaction:
        """Admin transition of an investment record"""
        investment = await self.get_investment_or_404(investment_id)

        user = await UserService.get_user(self.db, investment.user_id)
        if not user:
            raise NotFoundError("User not found")

        if investment.status in TERMINAL_STATUSES:
            raise ValidationError(f"Investment is already {investment.status.value}")

        investment.status = new_status
        notify = None

        if new_status == TransactionStatus.REJECTED:
            refunded = investment.amount
            UserService.credit_deposit(user, refunded)
            investment.amount = 0
            notified_amount = refunded if self.report_refund_on_rejection else investment.amount
            notify = (self.mailer.investment_rejected, notified_amount)
        elif new_status == TransactionStatus.APPROVED:
            notify = (self.mailer.investment_approved, investment.amount)
        elif new_status == TransactionStatus.COMPLETED:
            self.complete_investment(investment, user)
            notify = (self.mailer.investment_completed, investment.amount)

        await self.db.commit()
        await self.db.refresh(investment)

        logger.info(f"Investment {investment.id} moved to {new_status.value}")

        if notify:
            send, amount = notify
            await send(user.email, self._display_name(user), amount, investment.created_at, investment.plan_name)

        return investment

    @staticmethod
    def complete_investment(investment: Transaction, user: User) -> None:
        """Pay out principal and interest and close the record (not committed)"""
        UserService.credit_deposit(user, investment.amount)
        UserService.credit_interest(user, investment.total_interest)
        investment.status = TransactionStatus.COMPLETED
        investment.current_interest = investment.total_interest

    async def complete_if_due(self, investment_id: int, now: Optional[datetime] = None) -> bool:
        """
        Complete one active investment whose end date has passed.

        Returns False when the record is no longer active, not yet due, or its
        owner is missing.
        """
        now = now or datetime.utcnow()
        investment = await self.get_investment(investment_id)
        if investment is None or investment.status != TransactionStatus.ACTIVE or investment.end_date is None:
            return False

        if not calculator.is_investment_due(investment.end_date, now):
            return False

        logger.info(f"Completing investment {investment.id} for user {investment.user_email}")

        user = await UserService.get_user(self.db, investment.user_id)
        if not user:
            logger.error(f"User not found for investment {investment.id}")
            return False

        self.complete_investment(investment, user)
        await self.db.commit()

        # Payout is already committed at this point
        try:
            await self.mailer.investment_completed(
                user.email, self._display_name(user), investment.amount, investment.created_at, investment.plan_name
            )
        except Exception as e:
            logger.error(f"Completion notice failed for investment {investment.id}: {str(e)}")
        return True

    # ============================================================
    # Progress
    # ============================================================

    def _project(self, investment: Transaction, now: datetime) -> Tuple[float, float, bool]:
        total_interest = investment.total_interest or 0.0
        current_interest = calculator.calculate_progressive_interest(
            total_interest, investment.start_date, investment.end_date, now
        )
        progress = calculator.calculate_progress_percentage(
            current_interest, total_interest, investment.start_date, investment.end_date, now
        )
        is_due = calculator.is_investment_due(investment.end_date, now)
        return current_interest, progress, is_due

    async def get_progress(self, investment_id: int, now: Optional[datetime] = None) -> InvestmentProgress:
        """Read-only view of how far an investment has accrued"""
        now = now or datetime.utcnow()
        investment = await self.get_investment_or_404(investment_id)

        current_interest, progress, is_due = self._project(investment, now)

        status = investment.status.value
        if is_due and investment.status not in TERMINAL_STATUSES:
            status = READY_TO_COMPLETE

        return InvestmentProgress(
            investment_id=investment.id,
            status=status,
            total_amount=investment.amount,
            total_interest=investment.total_interest or 0.0,
            current_interest=current_interest,
            progress=progress,
            time_remaining=calculator.format_time_remaining(investment.end_date, now),
            start_date=investment.start_date,
            end_date=investment.end_date,
            is_completed=is_due
        )

    async def list_active_with_progress(self, now: Optional[datetime] = None) -> ActiveInvestmentsResponse:
        now = now or datetime.utcnow()
        investments = []
        for investment in await self.get_active_investments():
            current_interest, progress, is_due = self._project(investment, now)
            data = InvestmentResponse.model_validate(investment).model_dump()
            data["current_interest"] = current_interest
            investments.append(ActiveInvestment(**data, is_due=is_due, progress=progress))

        return ActiveInvestmentsResponse(
            investments=investments,
            summary=ActiveInvestmentsSummary(
                total=len(investments),
                ready_to_complete=sum(1 for inv in investments if inv.is_due)
            )
        )

    @staticmethod
    def _display_name(user: User) -> str:
        return user.full_name or user.username
