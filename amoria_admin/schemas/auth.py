from typing import Optional

from pydantic import BaseModel, Field


class UsernameOtpPayload(BaseModel):
    """Schema for check-username and resend-otp: a team member and the code to relay."""

    username: Optional[str] = Field(None, description="Team member username (case-insensitive)")
    otp: Optional[str] = Field(None, description="Code generated by the admin UI")
    email: Optional[str] = Field(None, description="Ignored; kept for client compatibility")


class EmailOtpPayload(BaseModel):
    """Schema for send-otp and verify-otp against an administrator address."""

    email: Optional[str] = None
    otp: Optional[str] = None


class LogoutPayload(BaseModel):
    username: Optional[str] = None
    user_id: Optional[int] = Field(None, alias="userId")
