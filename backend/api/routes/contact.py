"""
Contact form API route.
"""

import logging

from fastapi import APIRouter, Depends, Request

from adapters.email.resend_adapter import ResendEmailService, contact_recipient, get_email_service
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.contact import ContactRequest, ContactResponse
from core.errors import ValidationFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=ContactResponse)
@limiter.limit(get_rate_limit("contact"))
async def submit_contact_form(
    request: Request,
    contact_data: ContactRequest,
    email_service: ResendEmailService = Depends(get_email_service),
) -> ContactResponse:
    """
    Forward a contact form message to the mailbox for its subject.

    Public.  Delivery failures are logged; the submission is still accepted.
    """
    name = (contact_data.name or "").strip()
    email = (contact_data.email or "").strip()
    subject = (contact_data.subject or "").strip()
    message = (contact_data.message or "").strip()
    if not (name and email and subject and message):
        raise ValidationFailedError("All fields are required (name, email, subject, message)")

    recipient = contact_recipient(subject)
    sent = await email_service.send_contact_message(
        recipient=recipient,
        name=name,
        reply_to=email,
        subject=subject,
        message=message,
    )
    if not sent:
        logger.warning("Contact message for %s was not delivered", recipient)

    return ContactResponse(success=True, recipient=recipient)
