"""
Setting model - stringified key/value rows edited from the admin console
"""
from sqlalchemy import Column, String, Text, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base
from datetime import datetime
import uuid


class Setting(Base):
    """
    Settings table - feature flags and limits consumed by server-side jobs
    """
    __tablename__ = "settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text)
    description = Column(Text)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Setting(key={self.key}, value={self.value})>"
