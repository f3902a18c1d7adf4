# Notifications module
from app.modules.notifications.services import InvestmentMailer, get_mailer

__all__ = ["InvestmentMailer", "get_mailer"]
