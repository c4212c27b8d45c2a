"""
Survey models - climate/opinion surveys and their responses
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class Survey(Base):
    """
    Surveys table - questions are [{question, type, options}] (type: multiple_choice, scale, text)
    """
    __tablename__ = "surveys"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    questions = Column(JSONType, nullable=False)
    target_audience = Column(String(20), default="ambos")  # role name or ambos
    audience_units = Column(JSONType)  # empty or null means every unit
    anonymous = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Survey(id={self.id}, title={self.title})>"


class SurveyResponse(Base):
    """
    Survey responses table - answers keyed by question index
    """
    __tablename__ = "survey_responses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    survey_id = Column(UUID(as_uuid=True), ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"))  # null on anonymous surveys
    respondent_hash = Column(String(64), index=True)  # lets anonymous surveys refuse a second answer
    unit_code = Column(String(30))
    answers = Column(JSONType, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
