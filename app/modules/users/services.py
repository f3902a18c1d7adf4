from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.core.exceptions import NotFoundError
from app.modules.users.models import User


class UserService:
    """Balance store for the investment lifecycle"""

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
        user = await UserService.get_user(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def debit_deposit(user: User, amount: float) -> float:
        """Take ``amount`` from the deposit balance and return what is left"""
        user.deposit = (user.deposit or 0.0) - amount
        return user.deposit

    @staticmethod
    def credit_deposit(user: User, amount: float) -> float:
        user.deposit = (user.deposit or 0.0) + float(amount or 0)
        return user.deposit

    @staticmethod
    def credit_interest(user: User, amount: float) -> float:
        user.interest = (user.interest or 0.0) + float(amount or 0)
        return user.interest
