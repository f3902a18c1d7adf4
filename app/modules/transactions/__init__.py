# Transaction module
from app.modules.transactions.models import (
    Transaction, TransactionType, TransactionStatus, TERMINAL_STATUSES
)

__all__ = ["Transaction", "TransactionType", "TransactionStatus", "TERMINAL_STATUSES"]
