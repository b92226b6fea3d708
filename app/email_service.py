"""
Email Service using Resend
Compiles MJML templates to HTML and sends mailer requests and appointment notifications
"""

import logging
from typing import Optional

import resend
from fastapi import Request
from mjml import mjml_to_html

from . import config
from .email_templates import render_mjml, render_text
from .errors import NotInitializedError
from .schemas import EmailRequest, EmailResult, TemplateData

logger = logging.getLogger(__name__)


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def render_email(data: TemplateData) -> tuple[str, str]:
    """Return the (html, text) pair for a template"""
    return compile_mjml_to_html(render_mjml(data)), render_text(data)


def _as_list(value) -> list[str]:
    return [value] if isinstance(value, str) else list(value)


class EmailService:
    """Sends email through Resend; disabled when no API key is configured"""

    def __init__(self, api_key: Optional[str], from_address: str, from_name: Optional[str] = None):
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        if api_key:
            resend.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def default_sender(self) -> str:
        if self.from_name and "<" not in self.from_address:
            return f"{self.from_name} <{self.from_address}>"
        return self.from_address

    async def send_email(self, email: EmailRequest) -> EmailResult:
        """
        Send an email through Resend.

        Provider errors are returned as a failed ``EmailResult`` rather than raised.

        Raises:
            NotInitializedError: If no Resend API key is configured
        """
        if not self.configured:
            raise NotInitializedError(
                "Email service not initialized. Please set RESEND_API_KEY environment variable."
            )

        recipients = _as_list(email.to)
        params = {
            "from": email.from_address or self.default_sender,
            "to": recipients,
            "subject": email.subject,
        }
        if email.text:
            params["text"] = email.text
        if email.html:
            params["html"] = email.html
        if email.cc:
            params["cc"] = _as_list(email.cc)
        if email.bcc:
            params["bcc"] = _as_list(email.bcc)
        if email.replyTo:
            params["reply_to"] = email.replyTo

        try:
            logger.info(f"📧 Sending email via Resend to: {recipients}")
            response = resend.Emails.send(params)
            logger.info(f"✅ Email sent successfully via Resend: {response}")
        except Exception as e:
            logger.error(f"❌ Email send error to {recipients}: {e}")
            return EmailResult(
                success=False,
                message="Failed to send email",
                error=str(e) or "Unknown error occurred",
            )

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        return EmailResult(success=True, message="Email sent successfully", messageId=message_id)


def build_email_service() -> EmailService:
    service = EmailService(
        api_key=config.RESEND_API_KEY,
        from_address=config.EMAIL_FROM_ADDRESS,
        from_name=config.FROM_NAME,
    )
    if service.configured:
        logger.info("✅ Email service initialized with Resend")
    else:
        logger.warning("⚠️ RESEND_API_KEY not found. Email functionality will be disabled.")
    return service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service
