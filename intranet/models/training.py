"""
Training models - trainings, per-user progress, certificates and training paths
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base, JSONType
from datetime import datetime
import uuid


class Training(Base):
    """
    Trainings table - modules are [{id, title, type, quiz?}]
    """
    __tablename__ = "trainings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(50))
    duration_minutes = Column(Integer)
    modules = Column(JSONType)
    certificate_enabled = Column(Boolean, default=False, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Training(id={self.id}, title={self.title})>"


class TrainingProgress(Base):
    """
    Training progress table - one row per (training, user)
    """
    __tablename__ = "training_progress"
    __table_args__ = (UniqueConstraint("training_id", "user_id", name="uq_training_progress"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    training_id = Column(UUID(as_uuid=True), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    modules_completed = Column(JSONType)
    progress_percentage = Column(Integer, default=0, nullable=False)
    score = Column(Integer, default=0)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(TIMESTAMP)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)


class TrainingCertificate(Base):
    """Issued when a certificate-enabled training reaches 100%"""
    __tablename__ = "training_certificates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    training_id = Column(UUID(as_uuid=True), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    certificate_code = Column(String(64), unique=True, nullable=False)
    issued_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())


class TrainingPath(Base):
    """
    Training paths table - ordered journeys through several trainings
    """
    __tablename__ = "training_paths"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())


class TrainingPathItem(Base):
    """
    Training path items table - unlock_after points at another item of the same path
    """
    __tablename__ = "training_path_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    path_id = Column(UUID(as_uuid=True), ForeignKey("training_paths.id", ondelete="CASCADE"), nullable=False, index=True)
    training_id = Column(UUID(as_uuid=True), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    unlock_after = Column(UUID(as_uuid=True), ForeignKey("training_path_items.id", ondelete="SET NULL"))
