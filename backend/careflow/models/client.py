"""
Client model: a person receiving care, tracked through the onboarding pipeline.
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, Numeric, Text, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from careflow.db.base import Base
from careflow.utils.timeutils import utcnow


class ClientPhase(str, enum.Enum):
    """Pipeline phase, in pipeline order."""
    INTAKE = "intake"
    ONBOARDING = "onboarding"
    SERVICE_INITIATION = "service_initiation"


class ClientStatus(str, enum.Enum):
    """Client status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Client(Base):
    """Client record with per-phase checklists."""

    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    organization_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Identity
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    client_name = Column(String(255), nullable=True)

    # Contact
    email = Column(String(255), nullable=True)
    phone_numbers = Column(JSON, nullable=False, default=list)
    client_phone = Column(String(50), nullable=True)

    # Informal caregiver captured at intake
    caregiver_name = Column(String(255), nullable=True)
    caregiver_relationship = Column(String(100), nullable=True)
    caregiver_phone = Column(String(50), nullable=True)
    caregiver_lives_in_home = Column(Boolean, nullable=True)

    # Demographics
    sex = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    medicaid_or_ssn = Column(String(50), nullable=True)

    # Address
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)
    county = Column(String(100), nullable=True, index=True)
    location = Column(String(100), nullable=True)

    # Program and service details
    company = Column(String(100), nullable=True)
    program = Column(String(100), nullable=True, index=True)
    frequency = Column(String(100), nullable=True)
    cost_share_amount = Column(Numeric(10, 2), nullable=False, default=0)

    # Medical
    physician = Column(String(255), nullable=True)
    diagnosis = Column(Text, nullable=True)

    # Services and benefits
    services_needed = Column(JSON, nullable=False, default=dict)
    receives_benefits = Column(String(50), nullable=True)
    benefits_pay_date = Column(String(50), nullable=True)

    # Provenance
    heard_about_us = Column(String(255), nullable=True)
    additional_info = Column(Text, nullable=True)
    referral_date = Column(Date, nullable=True)
    referred_by = Column(String(255), nullable=True)
    referral_source = Column(String(255), nullable=True)
    intake_date = Column(Date, nullable=True)
    # Source referral id; the referral row itself is removed on conversion
    referral_id = Column(UUID(as_uuid=True), nullable=True)
    marketer_id = Column(UUID(as_uuid=True), ForeignKey("marketers.id", ondelete="SET NULL"), nullable=True, index=True)
    director_of_marketing = Column(String(255), nullable=True)
    cm_company_id = Column(UUID(as_uuid=True), ForeignKey("cm_companies.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)

    # Lifecycle
    current_phase = Column(SQLEnum(ClientPhase), nullable=False, default=ClientPhase.INTAKE, index=True)
    status = Column(SQLEnum(ClientStatus), nullable=False, default=ClientStatus.ACTIVE, index=True)

    # Intake checklist
    initial_assessment_required = Column(Boolean, nullable=False, default=False)
    clinical_dates_entered = Column(Boolean, nullable=False, default=False)
    reassessment_date_entered = Column(Boolean, nullable=False, default=False)
    initial_assessment_completed = Column(Boolean, nullable=False, default=False)
    client_documents_populated = Column(Boolean, nullable=False, default=False)

    # Caregiver onboarding checklist
    viventium_onboarding_completed = Column(Boolean, nullable=False, default=False)
    caregiver_fingerprinted = Column(Boolean, nullable=False, default=False)
    background_results_uploaded = Column(Boolean, nullable=False, default=False)
    drivers_license_submitted = Column(Boolean, nullable=False, default=False)
    ssn_or_birth_certificate_submitted = Column(Boolean, nullable=False, default=False)
    tb_test_completed = Column(Boolean, nullable=False, default=False)
    cpr_first_aid_completed = Column(Boolean, nullable=False, default=False)
    pca_cert_including_2_of_3 = Column(Boolean, nullable=False, default=False)

    # Service initiation checklist
    edwp_created_and_sent = Column(Boolean, nullable=False, default=False)
    edwp_transmittal_completed = Column(Boolean, nullable=False, default=False)
    manager_ccd = Column(Boolean, nullable=False, default=False)
    schedule_created_and_extended_until_aed = Column(Boolean, nullable=False, default=False)
    training_or_care_start_date = Column(Date, nullable=True)

    # Clinical tracking
    clinical_lead_completed = Column(Boolean, nullable=False, default=False)
    clinical_scheduler_completed = Column(Boolean, nullable=False, default=False)
    clinical_third_completed = Column(Boolean, nullable=False, default=False)

    # Phase finalization
    intake_finalized = Column(Boolean, nullable=False, default=False)
    onboarding_finalized = Column(Boolean, nullable=False, default=False)
    service_initiation_finalized = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    caregivers = relationship(
        "ClientCaregiver",
        back_populates="client",
        order_by="ClientCaregiver.started_at.desc()",
    )
    marketer = relationship("Marketer", back_populates="clients")
    cm_company = relationship("CmCompany", back_populates="clients")
    client_notes = relationship(
        "ClientNote",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="ClientNote.created_at.desc()",
    )
    referrals = relationship("Referral", back_populates="client")
