"""
One-time passcode relay for back-office sign-in.

The admin UI generates the code itself and posts it here; this service only
looks up the team member, emails the code through Brevo and records the event
in ``activity_logs``. No code is stored or compared server side.

Resends are throttled by counting ``otp_resent`` rows for the username in a
trailing window. When that count cannot be read the limiter lets the request
through.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from amoria_admin import config
from amoria_admin.db.readers.activity_logs import count_recent_actions
from amoria_admin.db.readers.team_members import get_active_member, get_member_id
from amoria_admin.db.writers.activity_logs import insert_activity
from amoria_admin.metrics import otp_events
from amoria_admin.services.email import send_otp_email
from amoria_admin.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
OTP_PATTERN = re.compile(r"^\d{6}$")

ACTION_REQUESTED = "otp_requested"
ACTION_RESENT = "otp_resent"
ACTION_LOGOUT = "logout_success"

ADMIN_PROFILE = {
    "id": "admin_001",
    "username": "admin",
    "fullName": "Administrator",
    "role": "admin",
}


class MemberNotFoundError(Exception):
    """No active team member has the requested username."""


class ResendLimitExceeded(Exception):
    """The username used up its resends for the current window."""


def mask_email(email: str) -> str:
    """
    Keep the first and last character of the local part.

    Example:
        >>> mask_email("jonathan@example.com")
        'j******n@example.com'
        >>> mask_email("jo@example.com")
        'j*@example.com'
    """
    local, _, domain = email.partition("@")
    if len(local) > 2:
        masked = local[0] + "*" * (len(local) - 2) + local[-1]
    else:
        masked = local[:1] + "*"
    return f"{masked}@{domain}"


def mask_email_prefix(email: str) -> str:
    """
    Keep the first two characters of the local part.

    Example:
        >>> mask_email_prefix("admin@example.com")
        'ad***@example.com'
    """
    local, _, domain = email.partition("@")
    if len(local) > 2:
        return f"{local[:2]}***@{domain}"
    return f"***@{domain}"


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_otp(otp: str) -> bool:
    return bool(OTP_PATTERN.match(otp))


def display_name(member: dict[str, Any]) -> str:
    return member.get("full_name") or member["username"]


def log_otp_activity(engine: Engine, action: str, member: dict[str, Any]) -> None:
    """Record an OTP event; failures are logged and swallowed."""
    try:
        with engine.begin() as conn:
            insert_activity(
                conn,
                action=action,
                resource_type="auth",
                resource_id=member["id"],
                details={
                    "username": member["username"],
                    "email": mask_email(member["email"]),
                    "timestamp": utc_now().isoformat(),
                },
            )
    except Exception as e:
        logger.warning("activity_log_failed", action=action, username=member["username"], error=str(e))


def resends_used(engine: Engine, username: str) -> Optional[int]:
    """
    Number of resends for ``username`` inside the throttle window.

    Returns:
        Optional[int]: The count, or None when it could not be read
    """
    since = utc_now() - timedelta(minutes=config.OTP_RESEND_WINDOW_MINUTES)
    try:
        with engine.connect() as conn:
            return count_recent_actions(conn, ACTION_RESENT, username, since)
    except Exception as e:
        logger.warning("otp_rate_limit_check_failed", username=username.lower(), error=str(e))
        return None


def find_member_or_raise(engine: Engine, username: str) -> dict[str, Any]:
    with engine.connect() as conn:
        member = get_active_member(conn, username)
    if not member:
        raise MemberNotFoundError(username)
    return member


def request_member_otp(engine: Engine, username: str, otp: str) -> dict[str, Any]:
    """
    Email ``otp`` to the active team member named ``username``.

    Returns:
        dict: The team member row

    Raises:
        MemberNotFoundError: No active member has that username
        EmailError: Brevo did not accept the email
    """
    try:
        member = find_member_or_raise(engine, username)
    except MemberNotFoundError:
        otp_events.labels(action="requested", outcome="not_found").inc()
        raise

    try:
        send_otp_email(member["email"], display_name(member), otp, is_resend=False)
    except Exception:
        otp_events.labels(action="requested", outcome="email_failed").inc()
        raise

    log_otp_activity(engine, ACTION_REQUESTED, member)
    otp_events.labels(action="requested", outcome="success").inc()
    logger.info("otp_requested", username=member["username"], email=mask_email(member["email"]))
    return member


def resend_member_otp(engine: Engine, username: str, otp: str) -> int:
    """
    Resend ``otp`` to a team member, subject to the resend throttle.

    Returns:
        int: Resends still available in the current window

    Raises:
        ResendLimitExceeded: The window's resends are used up
        MemberNotFoundError: No active member has that username
        EmailError: Brevo did not accept the email
    """
    used = resends_used(engine, username)
    if used is not None and used >= config.OTP_MAX_RESENDS:
        otp_events.labels(action="resent", outcome="rate_limited").inc()
        logger.warning("otp_resend_rate_limited", username=username.lower(), attempts=used)
        raise ResendLimitExceeded(username)

    try:
        member = find_member_or_raise(engine, username)
    except MemberNotFoundError:
        otp_events.labels(action="resent", outcome="not_found").inc()
        raise

    try:
        send_otp_email(member["email"], display_name(member), otp, is_resend=True)
    except Exception:
        otp_events.labels(action="resent", outcome="email_failed").inc()
        raise

    log_otp_activity(engine, ACTION_RESENT, member)
    otp_events.labels(action="resent", outcome="success").inc()

    used_now = resends_used(engine, username)
    remaining = config.OTP_MAX_RESENDS - 1 if used_now is None else config.OTP_MAX_RESENDS - used_now

    logger.info("otp_resent", username=member["username"], attempts_remaining=max(0, remaining))
    return max(0, remaining)


def send_admin_otp(email: str, otp: str) -> str:
    """
    Email ``otp`` to an administrator address.

    Returns:
        str: The address masked for display
    """
    try:
        send_otp_email(email, "Administrator", otp, is_resend=False)
    except Exception:
        otp_events.labels(action="sent", outcome="email_failed").inc()
        raise
    otp_events.labels(action="sent", outcome="success").inc()
    logger.info("admin_otp_sent", email=mask_email_prefix(email))
    return mask_email_prefix(email)


def log_logout(
    engine: Engine,
    username: Optional[str],
    member_id: Optional[int],
    user_agent: Optional[str] = None,
) -> bool:
    """
    Record a manual sign-out for a known team member.

    Nothing is written unless a member id is given or can be resolved from
    ``username``. Failures are logged and swallowed.

    Returns:
        bool: True when an activity row was written
    """
    if not username and not member_id:
        return False

    try:
        with engine.begin() as conn:
            if not member_id and username:
                member_id = get_member_id(conn, username)
            if not member_id:
                logger.info("logout_member_unresolved", username=username)
                return False
            insert_activity(
                conn,
                action=ACTION_LOGOUT,
                resource_type="auth",
                resource_id=member_id,
                details={
                    "username": username or "unknown",
                    "logout_method": "manual",
                    "timestamp": utc_now().isoformat(),
                    "user_agent": user_agent or "unknown",
                },
            )
    except Exception as e:
        logger.warning("activity_log_failed", action=ACTION_LOGOUT, username=username, error=str(e))
        return False
    return True
