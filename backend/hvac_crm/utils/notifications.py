"""
Customer notifications: SMS through Twilio and email through SMTP.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional
import httpx
from fastapi import Request
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import smtplib

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from hvac_crm.core.config import settings
from hvac_crm.core.metrics import record_external_api_retry, record_sms

logger = logging.getLogger(__name__)


SMS_TEMPLATES: Dict[str, str] = {
    "appointment_confirmation": (
        "Thanks for calling {business_name}! Your {service_type} is scheduled for "
        "{date} at {time}. Reply CONFIRM or call {business_phone} to modify."
    ),
    "appointment_reminder": (
        "Reminder: {business_name} appointment tomorrow at {time} for "
        "{service_type}. Reply CONFIRM or RESCHEDULE."
    ),
    "tech_en_route": (
        "Good news! {tech_name} is on the way to your location. ETA: {eta} minutes."
    ),
    "service_complete": (
        "Your {service_type} is complete! Thanks for choosing {business_name}."
    ),
    "emergency_response": (
        "We received your emergency request. {tech_name} will contact you within "
        "15 minutes at {customer_phone}. Help is on the way!"
    ),
    "follow_up_maintenance": (
        "Hi {customer_name}! It's been {months_since} months since your last "
        "{service_type}. Reply YES to book maintenance or call {business_phone}."
    ),
}


def render_sms(template_name: str, data: Mapping[str, Any]) -> str:
    """Fill an SMS template; business identity fields default from settings."""
    try:
        template = SMS_TEMPLATES[template_name]
    except KeyError:
        raise ValueError(f"Unknown SMS template: {template_name}") from None

    context = {
        "business_name": settings.BUSINESS_NAME,
        "business_phone": settings.BUSINESS_PHONE,
        **data,
    }
    try:
        return template.format(**context)
    except KeyError as exc:
        raise ValueError(f"Missing field {exc.args[0]!r} for template {template_name}") from None


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def _record_twilio_retry(retry_state):
    """Tenacity before_sleep callback to track Twilio retries."""
    record_external_api_retry("twilio")


@dataclass(slots=True)
class SmsResult:
    success: bool
    sid: Optional[str] = None
    error: Optional[str] = None


class SmsNotifier:
    """
    Sends templated SMS through the Twilio Messages API.

    The notifier owns its HTTP client; build it once at startup and close it at
    shutdown. Without credentials it is disabled and every send returns a
    failed result instead of raising.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com/2010-04-01",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=10.0)

    @classmethod
    def from_settings(cls) -> "SmsNotifier":
        if not settings.sms_enabled:
            logger.warning("Twilio credentials not configured - SMS disabled")
        return cls(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            base_url=settings.TWILIO_API_BASE_URL,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token)

    async def close(self) -> None:
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=2),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_record_twilio_retry,
        reraise=True,
    )
    async def _post_message(self, to: str, body: str) -> Dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}/Accounts/{self.account_sid}/Messages.json",
            data={"To": to, "From": self.from_number, "Body": body},
            auth=(self.account_sid, self.auth_token),
        )
        response.raise_for_status()
        return response.json()

    async def send(self, to: str, template_name: str, data: Mapping[str, Any]) -> SmsResult:
        """Render and send one message. Failures are logged and returned, never raised."""
        if not self.enabled:
            record_sms(template_name, "disabled")
            return SmsResult(success=False, error="Twilio not configured")

        try:
            body = render_sms(template_name, data)
            payload = await self._post_message(to, body)
        except (ValueError, httpx.HTTPError) as exc:
            logger.error("SMS send to %s failed: %s", to, exc)
            record_sms(template_name, "failed")
            return SmsResult(success=False, error=str(exc))

        sid = payload.get("sid")
        record_sms(template_name, "sent")
        logger.info("SMS sent to %s: %s", to, sid)
        return SmsResult(success=True, sid=sid)

    async def send_batch(
        self,
        recipients: Iterable[Mapping[str, Any]],
        template_name: str,
        data: Mapping[str, Any],
    ) -> List[Dict[str, Any]]:
        """Send one message per recipient; recipient fields override ``data``."""
        results = []
        for recipient in recipients:
            result = await self.send(recipient["phone"], template_name, {**data, **recipient})
            results.append(
                {"phone": recipient["phone"], "success": result.success, "sid": result.sid, "error": result.error}
            )
        return results


class NotificationService:
    """Outbound email for the contact form relay."""

    @staticmethod
    def send_email(
        to: str,
        subject: str,
        body: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send email notification.

        Args:
            to: Recipient email
            subject: Email subject
            body: Plain text body
            html: Optional HTML body
            reply_to: Optional Reply-To address

        Returns:
            True when the message was handed to the SMTP server.
        """
        if not all(
            [
                settings.SMTP_HOST,
                settings.SMTP_USER,
                settings.SMTP_PASSWORD,
            ]
        ):
            logger.warning("SMTP not configured")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = settings.SMTP_USER
            msg["To"] = to
            if reply_to:
                msg["Reply-To"] = reply_to

            msg.attach(MIMEText(body, "plain"))
            if html:
                msg.attach(MIMEText(html, "html"))

            with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
                server.starttls()
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                server.sendmail(settings.SMTP_USER, to, msg.as_string())

            logger.info("Email sent to %s", to)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email: %s", e)
            return False


def get_sms_notifier(request: Request) -> Optional[SmsNotifier]:
    """Dependency returning the application's SMS notifier, if one was built."""
    return getattr(request.app.state, "sms", None)
