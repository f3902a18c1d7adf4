from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, JSON, Index
from sqlalchemy.sql import func
from app.core.database import Base


class Plan(Base):
    """
    Investment plan offered to users.
    Plans are never hard-deleted; clearing ``is_active`` retires them.
    """
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)  # Unique, case-insensitive
    description = Column(Text, nullable=False)
    roi = Column(Float, nullable=False)  # Percentage over the whole duration
    min_amount = Column(Float, nullable=False)
    duration = Column(String(50), nullable=False)  # e.g. "30 days", "6 months"
    features = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ux_plans_name_lower", func.lower(name), unique=True),
    )

    def __repr__(self):
        return f"<Plan(id={self.id}, name={self.name}, roi={self.roi}, active={self.is_active})>"
