"""
Website contact form relay.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Request

from hvac_crm.core.config import settings
from hvac_crm.core.rate_limiter import limiter
from hvac_crm.schemas.bookings import ContactMessage
from hvac_crm.utils.notifications import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter()


def _render_contact_email(message: ContactMessage) -> str:
    return (
        f"New Contact Form Submission from the {settings.BUSINESS_NAME} website\n\n"
        f"Name: {message.name}\n"
        f"Email: {message.email}\n"
        f"Phone: {message.phone or 'Not provided'}\n"
        f"Service Requested: {message.service or 'General inquiry'}\n\n"
        f"Message:\n{message.message}\n"
    )


@router.post("")
@limiter.limit(settings.BOOKING_RATE_LIMIT)
async def submit_contact_form(
    request: Request,
    message: ContactMessage,
    background_tasks: BackgroundTasks,
):
    """Relay a contact form submission to the office inbox."""
    recipient = settings.CONTACT_EMAIL or settings.SMTP_USER
    if recipient:
        background_tasks.add_task(
            NotificationService.send_email,
            recipient,
            f"Website inquiry from {message.name}",
            _render_contact_email(message),
            reply_to=str(message.email),
        )
    else:
        logger.warning("No contact inbox configured; submission from %s not relayed", message.email)

    return {
        "success": True,
        "message": "Thank you for contacting us. We will get back to you soon!",
    }
