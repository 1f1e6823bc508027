"""
Email collaborators.

``HttpEmailSender`` posts invitations to an email API endpoint and
``SmtpEmailSender`` sends them in-process over SMTP. Both return an
EmailSendResult rather than raising on a rejected send.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Dict, Optional

import requests

from ..core.config import Settings


logger = logging.getLogger(__name__)


@dataclass
class EmailSendResult:
    """
    Outcome reported by an email collaborator.

    Attributes:
        success: Whether the collaborator accepted the message
        error: Error text when it did not
        status_code: HTTP status, for HTTP collaborators
        body: Raw response body, for diagnosis
    """
    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None
    body: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.error:
            data["error"] = self.error
        return data


class HttpEmailSender:
    """Sends invitation payloads to a JSON email API."""

    def __init__(self, api_url: str, timeout_seconds: float = 20.0, session: Optional[requests.Session] = None):
        if not api_url:
            raise ValueError("api_url is required")
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def send(self, payload: Dict[str, Any]) -> EmailSendResult:
        logger.info("POST %s to=%s", self.api_url, payload.get("to"))
        try:
            resp = self._session.post(self.api_url, json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            return EmailSendResult(success=False, error=str(e))

        if not resp.ok:
            return EmailSendResult(
                success=False,
                error=f"API request failed: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            data = resp.json()
        except ValueError:
            return EmailSendResult(
                success=False,
                error="Email API returned a non-JSON response",
                status_code=resp.status_code,
                body=resp.text,
            )

        if not data.get("success"):
            return EmailSendResult(
                success=False,
                error=data.get("error") or "Failed to send email",
                status_code=resp.status_code,
                body=resp.text,
            )
        return EmailSendResult(success=True, status_code=resp.status_code, body=resp.text)


class SmtpEmailSender:
    """Sends HTML email over SMTP with STARTTLS."""

    def __init__(self, settings: Settings, timeout_seconds: float = 30.0):
        self.settings = settings
        self.timeout_seconds = timeout_seconds

    def send(self, payload: Dict[str, Any]) -> EmailSendResult:
        msg = EmailMessage()
        msg["From"] = f'"{self.settings.email_from_name}" <{self.settings.email_user}>'
        msg["To"] = payload["to"]
        msg["Subject"] = payload.get("subject", "")
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(payload.get("html", ""), subtype="html")

        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=self.timeout_seconds) as smtp:
                smtp.starttls()
                if self.settings.email_user:
                    smtp.login(self.settings.email_user, self.settings.email_pass)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send to %s failed: %s", payload.get("to"), e)
            return EmailSendResult(success=False, error=str(e))

        logger.info("Email sent to %s", payload["to"])
        return EmailSendResult(success=True)
