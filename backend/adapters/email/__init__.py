"""Email adapters."""

from .resend_adapter import (
    CONTACT_RECIPIENTS,
    ResendEmailService,
    contact_recipient,
    email_service,
    get_email_service,
)

__all__ = [
    "CONTACT_RECIPIENTS",
    "ResendEmailService",
    "contact_recipient",
    "email_service",
    "get_email_service",
]
