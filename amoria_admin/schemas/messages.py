from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageStatusPayload(BaseModel):
    """
    Schema for changing the status of a contact message or support ticket.

    All fields are optional so a missing id answers 400 from the handler.
    """

    model_config = ConfigDict(populate_by_name=True)

    message_id: Optional[int] = Field(None, alias="messageId", description="contact_us row id")
    status: Optional[str] = Field(None, description="new, replied or closed")
    admin_reply: Optional[str] = Field(None, alias="adminReply", description="Reply text for 'replied'")


class MessageReplyPayload(BaseModel):
    """Schema for emailing a reply to the author of a message."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: Optional[int] = Field(None, alias="messageId")
    to: Optional[str] = Field(None, description="Recipient email address")
    subject: Optional[str] = None
    message: Optional[str] = Field(None, description="Reply body; stored as admin_reply")
    admin_id: Optional[str] = Field(None, alias="adminId", description="Replying admin (logged only)")

    def missing_fields(self) -> list[str]:
        required = {"messageId": self.message_id, "to": self.to, "subject": self.subject, "message": self.message}
        return [name for name, value in required.items() if not value]
