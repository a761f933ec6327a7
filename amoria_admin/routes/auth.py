"""
Back-office sign-in endpoints.

The admin UI owns the one-time code: it generates it, posts it here to be
emailed, and later asks ``verify-otp`` only to validate its shape. These
routes never hold a session.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from amoria_admin import config
from amoria_admin.dependencies import get_db_engine
from amoria_admin.errors import (
    MISSING_TABLES_MESSAGE,
    EmailError,
    error_response,
    is_missing_table_error,
)
from amoria_admin.metrics import db_errors, otp_events
from amoria_admin.routes._message_helpers import success_response
from amoria_admin.schemas.auth import EmailOtpPayload, LogoutPayload, UsernameOtpPayload
from amoria_admin.services.otp import (
    ADMIN_PROFILE,
    MemberNotFoundError,
    ResendLimitExceeded,
    is_valid_email,
    is_valid_otp,
    log_logout,
    mask_email,
    request_member_otp,
    resend_member_otp,
    send_admin_otp,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

MEMBER_NOT_FOUND_MESSAGE = "Username not found or account is inactive"


def server_error(event: str, e: Exception) -> JSONResponse:
    """Log ``e`` and answer 500, naming missing tables explicitly."""
    db_errors.labels(route="auth").inc()
    logger.exception(event, error=str(e))
    if is_missing_table_error(e):
        return error_response(500, MISSING_TABLES_MESSAGE, e)
    return error_response(500, "Internal server error", e)


@router.post("/check-username")
def check_username(
    payload: UsernameOtpPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Email the supplied OTP to an active team member.

    Returns:
        JSONResponse: ``{success, maskedEmail, email, message}``
    """
    if not payload.username:
        return error_response(400, "Username is required")
    if not payload.otp:
        return error_response(400, "OTP is required")

    try:
        member = request_member_otp(engine, payload.username, payload.otp)
    except MemberNotFoundError:
        logger.info("otp_username_not_found", username=payload.username.lower())
        return error_response(404, MEMBER_NOT_FOUND_MESSAGE)
    except EmailError as e:
        logger.error("otp_email_failed", username=payload.username.lower(), error=str(e))
        return error_response(500, "Failed to send OTP email. Please try again.", e)
    except Exception as e:
        return server_error("check_username_failed", e)

    return success_response(
        maskedEmail=mask_email(member["email"]),
        email=member["email"],
        message="OTP sent successfully",
    )


@router.post("/send-otp")
def send_otp(payload: EmailOtpPayload) -> JSONResponse:
    """
    Email the supplied OTP to an administrator address.

    Returns:
        JSONResponse: ``{success, message, maskedEmail, email, expirationMinutes}``
    """
    if not payload.email or not payload.otp:
        return error_response(400, "Email and OTP are required")
    if not is_valid_email(payload.email):
        return error_response(400, "Invalid email format")

    try:
        masked = send_admin_otp(payload.email, payload.otp)
    except EmailError as e:
        logger.error("admin_otp_email_failed", error=str(e))
        return error_response(500, "Failed to send OTP email. Please try again.", e)
    except Exception as e:
        return server_error("send_otp_failed", e)

    return success_response(
        "OTP sent successfully",
        maskedEmail=masked,
        email=payload.email,
        expirationMinutes=config.OTP_EXPIRATION_MINUTES,
    )


@router.post("/resend-otp")
def resend_otp(
    payload: UsernameOtpPayload,
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """
    Resend the OTP, at most three times per fifteen minutes per username.

    Returns:
        JSONResponse: ``{success, message, attemptsRemaining}`` or 429
    """
    if not payload.username or not payload.otp:
        return error_response(400, "Username and OTP are required")

    try:
        remaining = resend_member_otp(engine, payload.username, payload.otp)
    except ResendLimitExceeded:
        return error_response(
            429,
            f"Too many resend attempts. Please wait {config.OTP_RESEND_WINDOW_MINUTES} "
            "minutes before trying again.",
        )
    except MemberNotFoundError:
        return error_response(404, MEMBER_NOT_FOUND_MESSAGE)
    except EmailError as e:
        logger.error("otp_resend_email_failed", username=payload.username.lower(), error=str(e))
        return error_response(500, "Failed to resend OTP email. Please try again.", e)
    except Exception as e:
        return server_error("resend_otp_failed", e)

    return success_response("OTP resent successfully", attemptsRemaining=remaining)


@router.post("/verify-otp")
def verify_otp(payload: EmailOtpPayload) -> JSONResponse:
    """Check the email and code are well formed and return the admin profile."""
    if not payload.email or not payload.otp:
        message = "Email and OTP are required"
    elif not is_valid_email(payload.email):
        message = "Invalid email format"
    elif not is_valid_otp(payload.otp):
        message = "Invalid OTP format. Must be 6 digits."
    else:
        message = None

    if message:
        otp_events.labels(action="verified", outcome="invalid").inc()
        return error_response(400, message)

    otp_events.labels(action="verified", outcome="success").inc()
    logger.info("otp_verified", email=payload.email.split("@")[-1])
    return success_response("OTP verified successfully", user={**ADMIN_PROFILE, "email": payload.email})


@router.post("/logout")
def logout(
    request: Request,
    payload: Optional[LogoutPayload] = Body(None),
    engine: Engine = Depends(get_db_engine),
) -> JSONResponse:
    """Record the sign-out when the member is known; always answers success."""
    if payload:
        log_logout(engine, payload.username, payload.user_id, request.headers.get("user-agent"))
    return success_response("Logged out successfully")
