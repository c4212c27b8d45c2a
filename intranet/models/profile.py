"""
Profile model - intranet users as resolved by the identity provider
"""
from sqlalchemy import Column, String, Boolean, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base
from datetime import datetime
import uuid


class Profile(Base):
    """
    Profiles table - one row per authenticated user
    """
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), index=True)
    phone = Column(String(32))
    role = Column(String(30), nullable=False, default="colaborador")  # admin, gestor_setor, franqueado, colaborador
    unit_code = Column(String(30), index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Profile(id={self.id}, name={self.full_name}, role={self.role})>"
