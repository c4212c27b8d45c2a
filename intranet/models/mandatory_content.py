"""
Mandatory content models - content items, signed confirmations and reminders
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class MandatoryContent(Base):
    """
    Mandatory contents table - videos or texts every user in the audience must confirm
    """
    __tablename__ = "mandatory_contents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    type = Column(String(10), nullable=False)  # video, text
    content_url = Column(Text)
    content_text = Column(Text)
    quiz_questions = Column(JSONType)  # {"questions": [{question, options, correct_answer, explanation}]}
    target_audience = Column(String(20), nullable=False, default="ambos")  # colaboradores, franqueados, ambos
    active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MandatoryContent(id={self.id}, title={self.title}, type={self.type})>"


class MandatoryContentSignature(Base):
    """
    Signatures table - append-only audit of confirmed mandatory contents
    """
    __tablename__ = "mandatory_content_signatures"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content_id = Column(UUID(as_uuid=True), ForeignKey("mandatory_contents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    confirmed = Column(Boolean, default=True, nullable=False)
    confirmation_text = Column(Text, nullable=False)
    ip_address = Column(String(64), default="unknown")
    success = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<MandatoryContentSignature(content_id={self.content_id}, user_id={self.user_id}, score={self.score})>"


class MandatoryContentReminder(Base):
    """
    Reminders table - one row per reminder dispatched for a pending content
    """
    __tablename__ = "mandatory_content_reminders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    content_id = Column(UUID(as_uuid=True), ForeignKey("mandatory_contents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    channel = Column(String(20))  # whatsapp, push
    message_template = Column(Text)
    delivered = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<MandatoryContentReminder(content_id={self.content_id}, user_id={self.user_id}, channel={self.channel})>"
