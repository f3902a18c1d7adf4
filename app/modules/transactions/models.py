from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum as SQLEnum
from datetime import datetime
from app.core.database import Base
import enum


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class TransactionType(str, enum.Enum):
    """Type of ledger transaction"""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INVESTMENT = "investment"


class TransactionStatus(str, enum.Enum):
    """
    Lifecycle status.
    Investments start as ACTIVE; PENDING is kept for records created by
    other flows.
    """
    PENDING = "pending"
    ACTIVE = "active"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


TERMINAL_STATUSES = (TransactionStatus.REJECTED, TransactionStatus.COMPLETED)


class Transaction(Base):
    """
    Ledger record. Rows of type INVESTMENT carry a snapshot of the plan they
    were opened on (``plan_*`` columns) and a snapshot of the owning user.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(
        SQLEnum(TransactionType, name="transaction_type", values_callable=_enum_values),
        nullable=False,
        index=True
    )
    status = Column(
        SQLEnum(TransactionStatus, name="transaction_status", values_callable=_enum_values),
        default=TransactionStatus.PENDING,
        nullable=False,
        index=True
    )
    amount = Column(Float, nullable=False)

    # Owner snapshot
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False)
    user_name = Column(String(100), nullable=True)

    # Plan snapshot (investments only)
    plan_name = Column(String(100), nullable=True)
    plan_duration = Column(String(50), nullable=True)
    total_interest = Column(Float, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    current_interest = Column(Float, default=0.0, nullable=True)  # Advisory, for display

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Transaction(id={self.id}, type={self.type}, status={self.status}, amount={self.amount})>"
