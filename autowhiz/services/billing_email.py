"""
Billing emails (payment receipts, failed-payment warnings) sent through Resend.

Sending is skipped when RESEND_API_KEY is unset, and delivery errors are logged
rather than raised so webhook processing never fails because of email.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

import resend

from autowhiz.core.config import settings

logger = logging.getLogger(__name__)


def _send(to_email: str, subject: str, html: str) -> bool:
    if not settings.RESEND_API_KEY or not to_email:
        return False

    resend.api_key = settings.RESEND_API_KEY
    try:
        resend.Emails.send({
            "from": settings.BILLING_FROM_EMAIL,
            "to": [to_email],
            "subject": subject,
            "html": html.strip(),
        })
    except Exception as e:
        logger.error("[Billing email] Failed to send '%s' to %s: %s", subject, to_email, e)
        return False

    logger.info("[Billing email] Sent '%s' to %s", subject, to_email)
    return True


def send_payment_receipt(
    to_email: str,
    amount: Decimal,
    currency: str,
    invoice_url: Optional[str] = None,
    paid_at: Optional[datetime] = None,
) -> bool:
    amount_str = f"{amount:.2f}"
    currency_display = currency.upper() if currency else "USD"
    date_str = paid_at.strftime("%B %d, %Y") if paid_at else ""

    html = f"""
    <p>Hi,</p>
    <p>Thanks for your payment. Your {settings.APP_NAME} subscription has been renewed
    and your monthly analyses have been reset.</p>
    <p><strong>Amount:</strong> {currency_display} {amount_str}</p>
    <p><strong>Date:</strong> {date_str}</p>
    """
    if invoice_url:
        html += f'<p><a href="{invoice_url}">View or download your invoice</a></p>'

    return _send(to_email, f"Your {settings.APP_NAME} receipt: {currency_display} {amount_str}", html)


def send_payment_failed(to_email: str, amount_due: Decimal, currency: str) -> bool:
    currency_display = currency.upper() if currency else "USD"
    html = f"""
    <p>Hi,</p>
    <p>We couldn't process your {settings.APP_NAME} payment of {currency_display} {amount_due:.2f}.</p>
    <p>Please <a href="{settings.SITE_URL}/dashboard/settings?tab=billing">update your payment method</a>
    to avoid losing access to your plan.</p>
    """
    return _send(to_email, f"Action needed: your {settings.APP_NAME} payment failed", html)
