"""
Outbound mail through Resend: contact form forwarding and password reset notices.
"""

import html
import logging

import resend

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

# Contact form subject -> editorial mailbox
CONTACT_RECIPIENTS = {
    "Master Solvers' Club Problem Submission": "msc@bridgeworld.com",
    "Challenge the Champs Hand Submission": "ctc@bridgeworld.com",
    "Technical Issues": "support@bridgeworld.com",
}


def contact_recipient(subject: str) -> str:
    """Route a contact form subject to its mailbox, or the default editor."""
    return CONTACT_RECIPIENTS.get(subject.strip(), settings.contact_default_recipient)


class ResendEmailService:
    """Sends mail through Resend, or only logs it when RESEND_API_KEY is unset."""

    def __init__(self):
        if settings.resend_api_key:
            resend.api_key = settings.resend_api_key
        self._from_email = settings.resend_from_email
        self._frontend_url = settings.frontend_url

    async def send_contact_message(
        self,
        recipient: str,
        name: str,
        reply_to: str,
        subject: str,
        message: str,
    ) -> bool:
        """Forward a contact form submission; False when Resend rejects it."""
        logger.info(
            "Contact form message to %s from %s <%s>: %s", recipient, name, reply_to, subject
        )
        if not settings.resend_api_key:
            logger.info("[DEV] Contact message not sent (no RESEND_API_KEY):\n%s", message)
            return True

        return self._send(
            {
                "to": recipient,
                "reply_to": reply_to,
                "subject": f"[Contact] {subject}",
                "text": f"From: {name} <{reply_to}>\nSubject: {subject}\n\n{message}",
            },
            kind="contact message",
        )

    async def send_password_reset_notice(self, to_email: str, user_name: str | None) -> bool:
        """Tell a user an administrator started a password reset for them."""
        sign_in_url = f"{self._frontend_url}/sign-in"
        if not settings.resend_api_key:
            logger.info(f"[DEV] Password reset notice for {to_email}: {sign_in_url}")
            return True

        return self._send(
            {
                "to": to_email,
                "subject": "Reset your password",
                "html": self._get_password_reset_notice_html(user_name, sign_in_url),
            },
            kind="password reset notice",
        )

    def _send(self, params: dict, kind: str) -> bool:
        try:
            resend.Emails.send({"from": self._from_email, **params})
        except Exception as e:
            logger.error("Resend rejected %s: %s", kind, e)
            return False
        return True

    def _get_password_reset_notice_html(self, user_name: str | None, sign_in_url: str) -> str:
        greeting = f"Hi {html.escape(user_name)}," if user_name else "Hi,"
        return f"""
<!DOCTYPE html>
<html>
<body style="font-family: Georgia, serif; color: #1f2937; max-width: 560px; margin: 0 auto; padding: 24px;">
  <p>{greeting}</p>
  <p>An administrator has started a password reset for your account.</p>
  <p>Use <strong>Forgot password?</strong> on the sign-in page to choose a new one:</p>
  <p><a href="{sign_in_url}" style="color: #1d4ed8;">{sign_in_url}</a></p>
  <p>If you did not expect this, you can ignore this email.</p>
</body>
</html>
"""


email_service = ResendEmailService()


def get_email_service() -> ResendEmailService:
    """FastAPI dependency returning the email service."""
    return email_service
