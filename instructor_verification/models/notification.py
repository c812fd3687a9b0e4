"""
Outbox of notification requests handed to the delivery collaborator
"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum, JSON
from sqlalchemy.sql import func
import enum
import uuid

from instructor_verification.database import Base


class NotificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationRequest(Base):
    """A notification the engine wants delivered to a user"""
    __tablename__ = "notification_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(50), nullable=False, index=True)
    # Values: 'welcome', 'application_rejected', 'more_info_requested', 'interview_scheduled'
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(JSON, default=dict)
    status = Column(Enum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False, index=True)
    error_message = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    dispatched_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<NotificationRequest {self.kind} -> {self.user_id}>"
