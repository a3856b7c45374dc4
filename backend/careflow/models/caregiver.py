"""
Caregiver model. A row with no client_id is a standalone (pool) caregiver.
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, Text, ForeignKey, Index, Enum as SQLEnum, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from careflow.db.base import Base
from careflow.utils.timeutils import utcnow


class CaregiverStatus(str, enum.Enum):
    """Caregiver status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClientCaregiver(Base):
    """Caregiver assigned to a client, or waiting in the standalone pool."""

    __tablename__ = "client_caregivers"
    __table_args__ = (
        # At most one active caregiver per client. Enum columns store member names.
        Index(
            "uq_client_caregivers_one_active",
            "client_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)

    full_name = Column(String(255), nullable=False)
    relationship_to_client = Column("relationship", String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    lives_in_home = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    status = Column(SQLEnum(CaregiverStatus), nullable=False, default=CaregiverStatus.ACTIVE, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True, default=utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    # Onboarding checklist
    viventium_onboarding_completed = Column(Boolean, nullable=False, default=False)
    caregiver_fingerprinted = Column(Boolean, nullable=False, default=False)
    background_results_uploaded = Column(Boolean, nullable=False, default=False)
    drivers_license_submitted = Column(Boolean, nullable=False, default=False)
    ssn_or_birth_certificate_submitted = Column(Boolean, nullable=False, default=False)
    tb_test_completed = Column(Boolean, nullable=False, default=False)
    cpr_first_aid_completed = Column(Boolean, nullable=False, default=False)
    pca_cert_including_2_of_3 = Column(Boolean, nullable=False, default=False)
    drivers_license_expires_at = Column(Date, nullable=True)
    tb_test_issued_at = Column(Date, nullable=True)
    cpr_issued_at = Column(Date, nullable=True)
    onboarding_finalized = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    client = relationship("Client", back_populates="caregivers")
