"""
Transactional email through the Brevo v3 REST API.

Two messages are sent by the admin API: the one-time code for back-office
sign-in and the free-text reply to a contact/support message. Bodies are
deliberately plain HTML; visual templates live in Brevo, not here.
"""

from __future__ import annotations

import html
import time
from typing import Any

import requests
import structlog

from amoria_admin import config
from amoria_admin.errors import EmailError
from amoria_admin.metrics import emails_sent, vendor_latency, vendor_requests
from amoria_admin.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"
REQUEST_TIMEOUT = 15

OTP_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<body style="font-family: Arial, sans-serif;">
  <h2>Hello {name},</h2>
  <p>{intro}</p>
  <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px;">{otp}</p>
  <p>This code expires in {minutes} minutes. If you did not request it, you can ignore this email.</p>
  <p>The Amoria Team</p>
</body>
</html>"""

REPLY_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><title>{subject}</title></head>
<body style="font-family: Arial, sans-serif;">
  <h2>Hello {name},</h2>
  {paragraphs}
  <p>Best regards,<br>The Amoria Team<br>{sender_email}</p>
  <p style="color: #a0aec0; font-size: 11px;">&copy; {year} Amoria. All rights reserved.</p>
</body>
</html>"""


def mask_email_for_log(email: str) -> str:
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def render_paragraphs(message: str) -> str:
    """One escaped <p> per non-blank line of the reply text."""
    return "\n  ".join(
        f"<p>{html.escape(line.strip())}</p>" for line in message.splitlines() if line.strip()
    )


def render_otp_email(name: str, otp: str, is_resend: bool) -> str:
    intro = (
        "Here is your new verification code:"
        if is_resend
        else "Use this verification code to sign in to the Amoria admin console:"
    )
    return OTP_TEMPLATE.format(
        name=html.escape(name),
        intro=intro,
        otp=html.escape(otp),
        minutes=config.OTP_EXPIRATION_MINUTES,
    )


def render_reply_email(name: str, subject: str, message: str) -> str:
    return REPLY_TEMPLATE.format(
        subject=html.escape(subject),
        name=html.escape(name),
        paragraphs=render_paragraphs(message),
        sender_email=html.escape(config.BREVO_SENDER_EMAIL),
        year=utc_now().year,
    )


def send_transactional_email(
    kind: str,
    to_email: str,
    to_name: str,
    subject: str,
    html_content: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
) -> str | None:
    """
    Hand one email to Brevo.

    Args:
        kind: Metric/log label for the email (otp, custom_reply)
        to_email: Recipient address
        to_name: Recipient display name
        subject: Subject line
        html_content: Rendered HTML body
        headers: Extra SMTP headers
        params: Template params recorded by Brevo

    Returns:
        Optional[str]: Brevo messageId when present in the response

    Raises:
        EmailError: If no API key is configured or Brevo rejects the request
    """
    if not config.BREVO_API_KEY:
        emails_sent.labels(kind=kind, outcome="not_configured").inc()
        raise EmailError("BREVO_API_KEY is not configured")

    payload: dict[str, Any] = {
        "sender": {"name": config.BREVO_SENDER_NAME, "email": config.BREVO_SENDER_EMAIL},
        "to": [{"email": to_email, "name": to_name}],
        "subject": subject,
        "htmlContent": html_content,
    }
    if headers:
        payload["headers"] = headers
    if params:
        payload["params"] = params

    request_headers = {
        "api-key": config.BREVO_API_KEY,
        "accept": "application/json",
        "content-type": "application/json",
    }

    start_time = time.time()
    try:
        response = requests.post(
            BREVO_SEND_URL, json=payload, headers=request_headers, timeout=REQUEST_TIMEOUT
        )
        vendor_requests.labels(vendor="brevo", status_code=str(response.status_code)).inc()
        response.raise_for_status()
    except requests.RequestException as e:
        if getattr(e, "response", None) is None:
            vendor_requests.labels(vendor="brevo", status_code="error").inc()
        emails_sent.labels(kind=kind, outcome="failure").inc()
        logger.error(
            "email_send_failed",
            kind=kind,
            recipient=mask_email_for_log(to_email),
            error=str(e),
            response_text=getattr(getattr(e, "response", None), "text", None),
        )
        raise EmailError(f"Failed to send {kind} email: {e}") from e
    finally:
        vendor_latency.labels(vendor="brevo").observe(time.time() - start_time)

    emails_sent.labels(kind=kind, outcome="success").inc()
    logger.info("email_sent", kind=kind, recipient=mask_email_for_log(to_email))

    try:
        message_id = response.json().get("messageId")
    except ValueError:
        return None
    return message_id if isinstance(message_id, str) else None


def send_otp_email(email: str, name: str, otp: str, is_resend: bool = False) -> str | None:
    """Email a caller-supplied one-time code to a team member or administrator."""
    subject = "Your new Amoria verification code" if is_resend else "Your Amoria verification code"
    return send_transactional_email(
        kind="otp",
        to_email=email,
        to_name=name,
        subject=subject,
        html_content=render_otp_email(name, otp, is_resend),
        headers={"X-Amoria-Type": "otp-resend" if is_resend else "otp"},
        params={"recipient_name": name, "is_resend": is_resend},
    )


def send_custom_reply(email: str, name: str, subject: str, message: str) -> str | None:
    """Email an admin's reply to the author of a contact or support message."""
    return send_transactional_email(
        kind="custom_reply",
        to_email=email,
        to_name=name,
        subject=subject,
        html_content=render_reply_email(name, subject, message),
        headers={"X-Amoria-Type": "custom-reply", "X-Amoria-Recipient": name},
        params={
            "recipient_name": name,
            "custom_subject": subject,
            "response_type": "custom_reply",
        },
    )
