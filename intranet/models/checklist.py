"""
Checklist models - operational store checklists and submitted responses
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class Checklist(Base):
    """
    Checklists table - questions are [{id, text, type}] (type: boolean, photo, text)
    """
    __tablename__ = "checklists"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(String(30), nullable=False)  # abertura, fechamento, vitrine, limpeza
    questions = Column(JSONType, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Checklist(id={self.id}, title={self.title}, type={self.type})>"


class ChecklistResponse(Base):
    """
    Checklist responses table - answers keyed by question id
    """
    __tablename__ = "checklist_responses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    checklist_id = Column(UUID(as_uuid=True), ForeignKey("checklists.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    unit_code = Column(String(30))
    responses = Column(JSONType, nullable=False)
    status = Column(String(20), default="completed")
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
