"""
Referral model: a prospect captured by a marketer before formal intake.
"""

from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from careflow.db.base import Base
from careflow.utils.timeutils import utcnow


class Referral(Base):
    """
    Referral record.

    Only the core columns are relational; everything else the marketer captured
    is serialized as JSON in `notes` and parsed into ReferralDetails on read.
    """

    __tablename__ = "referrals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    referred_by = Column(String(255), nullable=True)
    referral_date = Column(Date, nullable=True)
    referral_source = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    client = relationship("Client", back_populates="referrals")
