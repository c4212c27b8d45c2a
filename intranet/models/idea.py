"""
Idea models - suggestion box with AI categorisation and votes
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class Idea(Base):
    """
    Ideas table - submissions awaiting curation
    """
    __tablename__ = "ideas"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    ai_category = Column(String(100))
    target_audience = Column(String(20), default="ambos")
    media_urls = Column(JSONType)
    unit_code = Column(String(30))
    status = Column(String(20), default="pending", nullable=False)
    submitted_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Idea(id={self.id}, title={self.title}, status={self.status})>"


class IdeaVote(Base):
    """One vote per (idea, user); re-voting updates the row"""
    __tablename__ = "ideas_votes"
    __table_args__ = (UniqueConstraint("idea_id", "user_id", name="uq_idea_vote"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    idea_id = Column(UUID(as_uuid=True), ForeignKey("ideas.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    vote = Column(Boolean, nullable=False)
    comment = Column(Text)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
