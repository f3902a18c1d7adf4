from datetime import datetime
from typing import Optional, Union
import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, From

from app.core.config import settings

logger = logging.getLogger(__name__)


def _format_amount(amount: Union[int, float, None]) -> str:
    return f"${float(amount or 0):,.2f}"


def _format_date(date: Optional[datetime]) -> str:
    if date is None:
        return ""
    return date.strftime("%B %d, %Y %H:%M UTC")


class InvestmentMailer:
    """
    Email notifications for investment state changes, sent through SendGrid.

    Sending never raises: a failed or unconfigured send is logged so a
    notification problem cannot undo a balance change that is already committed.
    """

    def __init__(self, api_key: Optional[str] = None, admin_email: Optional[str] = None):
        self.api_key = settings.SENDGRID_API_KEY if api_key is None else api_key
        self.admin_email = admin_email or settings.ADMIN_EMAIL

    async def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send one email; returns whether SendGrid accepted it"""
        if not self.api_key:
            logger.warning(f"SendGrid not configured, skipping email '{subject}' to {to_email}")
            return False

        message = Mail(
            from_email=From(settings.SENDGRID_FROM_EMAIL, settings.SENDGRID_FROM_NAME),
            to_emails=to_email,
            subject=subject,
            html_content=html_content
        )

        try:
            client = SendGridAPIClient(self.api_key)
            response = await asyncio.to_thread(client.send, message)
            logger.info(
                f"Email '{subject}' sent to {to_email} "
                f"(status={response.status_code}, id={response.headers.get('X-Message-Id', '')})"
            )
            return True
        except Exception as e:
            logger.error(f"Email send failed for '{subject}' to {to_email}: {str(e)}")
            return False

    async def investment_approved(self, email, name, amount, date, plan_name) -> bool:
        subject = "Your investment is active"
        html = (
            f"<p>Hello {name or 'there'},</p>"
            f"<p>Your investment of <strong>{_format_amount(amount)}</strong> in the "
            f"<strong>{plan_name}</strong> plan has been approved and is now active.</p>"
            f"<p>Date: {_format_date(date)}</p>"
        )
        return await self.send_email(email, subject, html)

    async def investment_rejected(self, email, name, amount, date, plan_name) -> bool:
        subject = "Your investment was rejected"
        html = (
            f"<p>Hello {name or 'there'},</p>"
            f"<p>Your investment in the <strong>{plan_name}</strong> plan was rejected. "
            f"Amount: <strong>{_format_amount(amount)}</strong>. "
            f"Any funds debited for it have been returned to your deposit balance.</p>"
            f"<p>Date: {_format_date(date)}</p>"
        )
        return await self.send_email(email, subject, html)

    async def investment_completed(self, email, name, amount, date, plan_name) -> bool:
        subject = "Your investment has matured"
        html = (
            f"<p>Hello {name or 'there'},</p>"
            f"<p>Your investment of <strong>{_format_amount(amount)}</strong> in the "
            f"<strong>{plan_name}</strong> plan is complete. The principal is back in your "
            f"deposit balance and the interest has been added to your interest balance.</p>"
            f"<p>Invested on: {_format_date(date)}</p>"
        )
        return await self.send_email(email, subject, html)

    async def alert_admin(self, email, amount, date, kind: str) -> bool:
        subject = f"New {kind} by {email}"
        html = (
            f"<p>User <strong>{email}</strong> made a new {kind} of "
            f"<strong>{_format_amount(amount)}</strong>.</p>"
            f"<p>Date: {_format_date(date)}</p>"
        )
        return await self.send_email(self.admin_email, subject, html)


_mailer: Optional[InvestmentMailer] = None


def get_mailer() -> InvestmentMailer:
    """Shared mailer instance (FastAPI dependency)"""
    global _mailer
    if _mailer is None:
        _mailer = InvestmentMailer()
    return _mailer
