from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class User(Base):
    """
    User record as seen by the investment module.
    Only the balance fields are mutated here; the rest is a read-only snapshot
    used for notifications.
    """
    __tablename__ = "users"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Identity
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), nullable=False)
    full_name = Column(String(200), nullable=True)

    # Balances
    deposit = Column(Float, default=0.0, nullable=False)   # Spendable principal
    interest = Column(Float, default=0.0, nullable=False)  # Realized interest

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, deposit={self.deposit}, interest={self.interest})>"
