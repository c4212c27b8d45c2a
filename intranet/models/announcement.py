"""
Announcement models - published communications with likes and views
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base
from datetime import datetime
import uuid


class Announcement(Base):
    """
    Announcements table - the "Comunicados" feed
    """
    __tablename__ = "announcements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(String(20), default="normal")  # normal, alta, urgente
    target_audience = Column(String(20), default="ambos")
    media_url = Column(Text)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    author_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Announcement(id={self.id}, title={self.title})>"


class AnnouncementLike(Base):
    """One like per (announcement, user)"""
    __tablename__ = "announcement_likes"
    __table_args__ = (UniqueConstraint("announcement_id", "user_id", name="uq_announcement_like"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    announcement_id = Column(UUID(as_uuid=True), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())


class AnnouncementView(Base):
    """One view record per (announcement, user)"""
    __tablename__ = "announcement_views"
    __table_args__ = (UniqueConstraint("announcement_id", "user_id", name="uq_announcement_view"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    announcement_id = Column(UUID(as_uuid=True), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    viewed_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
