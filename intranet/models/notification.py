"""
Notification models - per-user notifications and reusable message templates
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class Notification(Base):
    """
    Notifications table - one row per recipient and channel
    """
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    channel = Column(String(20), nullable=False, default="push")  # push, whatsapp, email
    priority = Column(String(20), default="normal")
    module = Column(String(50))
    reference_id = Column(String(64))
    unit_code = Column(String(30))
    status = Column(String(20), default="pending", nullable=False)  # pending, sent, failed
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(TIMESTAMP)
    sent_at = Column(TIMESTAMP)
    delivery_report = Column(JSONType)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Notification(user_id={self.user_id}, type={self.type}, status={self.status})>"


class NotificationTemplate(Base):
    """
    Notification templates table - {{variable}} placeholders filled at dispatch time
    """
    __tablename__ = "notification_templates"

    id = Column(String(100), primary_key=True)  # e.g. mandatory_content_reminder
    title = Column(String(255), nullable=False)
    message_template = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
