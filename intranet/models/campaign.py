"""
Campaign models - goal-based gamified campaigns and their results
"""
from sqlalchemy import Column, String, Text, Boolean, Date, TIMESTAMP, DECIMAL, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from intranet.database import Base
from datetime import datetime
import uuid


class Campaign(Base):
    """
    Campaigns table - a goal value measured in a unit (vendas, pecas, ...)
    """
    __tablename__ = "campaigns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(String(50))
    goal_value = Column(DECIMAL(12, 2), nullable=False, default=0)
    goal_unit = Column(String(30))
    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Campaign(id={self.id}, title={self.title}, goal={self.goal_value})>"


class CampaignResult(Base):
    """
    Campaign results table - contributions towards a campaign goal
    """
    __tablename__ = "campaign_results"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    campaign_id = Column(UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"))
    unit_code = Column(String(30))
    value = Column(DECIMAL(12, 2), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, server_default=func.now())
