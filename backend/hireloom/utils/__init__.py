# Utility modules
from .email_templates import (
    invitation_subject,
    render_custom_email,
    render_invitation,
    render_test_invitation,
)
from .mailer import EmailSendResult, HttpEmailSender, SmtpEmailSender

__all__ = [
    "invitation_subject",
    "render_custom_email",
    "render_invitation",
    "render_test_invitation",
    "EmailSendResult",
    "HttpEmailSender",
    "SmtpEmailSender",
]
