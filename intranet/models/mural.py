"""
Mural model - moderated social posts
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base
from datetime import datetime
import uuid


class MuralPost(Base):
    """
    Mural posts table - pending until a moderator approves or rejects them
    """
    __tablename__ = "mural_posts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    author_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    category_id = Column(String(50), index=True)
    content = Column(Text, nullable=False)
    image_url = Column(Text)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)  # pending, approved, rejected
    approval_source = Column(String(20))  # manual
    moderated_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    moderated_at = Column(TIMESTAMP)
    rejection_reason = Column(Text)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<MuralPost(id={self.id}, status={self.status})>"
