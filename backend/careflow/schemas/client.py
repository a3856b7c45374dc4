"""
Client Pydantic schemas for request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from careflow.models.client import ClientPhase, ClientStatus
from careflow.schemas.caregiver import CaregiverResponse
from careflow.schemas.client_note import ClientNoteResponse
from careflow.schemas.referral import ReferralResponse


def split_name(full_name: Optional[str]) -> Tuple[str, str]:
    """
    Split a display name into (first, last).
    First whitespace-delimited token is the first name; the rest is the last name.
    """
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def normalize_cost_share(value: Any) -> float:
    """Coerce cost share to a non-negative number; blanks and junk become 0."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
        if not value:
            return 0.0
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0.0
    if not amount.is_finite() or amount < 0:
        return 0.0
    return float(amount)


def normalize_phone_numbers(value: Any) -> List[str]:
    """Coerce phone numbers to a list of non-empty strings."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value).strip()]


class ClientFields(BaseModel):
    """Editable client attributes (all optional)."""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    client_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone_numbers: Optional[List[str]] = None
    client_phone: Optional[str] = Field(None, max_length=50)
    caregiver_name: Optional[str] = Field(None, max_length=255)
    caregiver_relationship: Optional[str] = Field(None, max_length=100)
    caregiver_phone: Optional[str] = Field(None, max_length=50)
    caregiver_lives_in_home: Optional[bool] = None
    sex: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None
    medicaid_or_ssn: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    county: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=100)
    program: Optional[str] = Field(None, max_length=100)
    frequency: Optional[str] = Field(None, max_length=100)
    cost_share_amount: Optional[float] = None
    physician: Optional[str] = Field(None, max_length=255)
    diagnosis: Optional[str] = None
    services_needed: Optional[Dict[str, Any]] = None
    receives_benefits: Optional[str] = Field(None, max_length=50)
    benefits_pay_date: Optional[str] = Field(None, max_length=50)
    heard_about_us: Optional[str] = Field(None, max_length=255)
    additional_info: Optional[str] = None
    referral_date: Optional[date] = None
    referred_by: Optional[str] = Field(None, max_length=255)
    referral_source: Optional[str] = Field(None, max_length=255)
    intake_date: Optional[date] = None
    marketer_id: Optional[UUID] = None
    director_of_marketing: Optional[str] = Field(None, max_length=255)
    cm_company_id: Optional[UUID] = None
    notes: Optional[str] = None
    status: Optional[ClientStatus] = None
    training_or_care_start_date: Optional[date] = None
    clinical_lead_completed: Optional[bool] = None
    clinical_scheduler_completed: Optional[bool] = None
    clinical_third_completed: Optional[bool] = None

    @field_validator("cost_share_amount", mode="before")
    @classmethod
    def _normalize_cost_share(cls, value: Any) -> float:
        return normalize_cost_share(value)

    @field_validator("phone_numbers", mode="before")
    @classmethod
    def _normalize_phone_numbers(cls, value: Any) -> List[str]:
        return normalize_phone_numbers(value)

    @field_validator("date_of_birth", "referral_date", "intake_date", "training_or_care_start_date", mode="before")
    @classmethod
    def _blank_date(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ClientCreate(ClientFields):
    """Schema for creating a client directly (outside referral conversion)."""
    client_name: str = Field(..., min_length=1, max_length=255)


class ClientUpdate(ClientFields):
    """
    Schema for updating a client.
    Checklists and phase go through their dedicated operations.
    """
    pass


class ClientChecklistState(BaseModel):
    """Checklist, phase and finalization state of a client."""
    current_phase: ClientPhase = ClientPhase.INTAKE
    status: ClientStatus = ClientStatus.ACTIVE
    initial_assessment_required: bool = False
    clinical_dates_entered: bool = False
    reassessment_date_entered: bool = False
    initial_assessment_completed: bool = False
    client_documents_populated: bool = False
    viventium_onboarding_completed: bool = False
    caregiver_fingerprinted: bool = False
    background_results_uploaded: bool = False
    drivers_license_submitted: bool = False
    ssn_or_birth_certificate_submitted: bool = False
    tb_test_completed: bool = False
    cpr_first_aid_completed: bool = False
    pca_cert_including_2_of_3: bool = False
    edwp_created_and_sent: bool = False
    edwp_transmittal_completed: bool = False
    manager_ccd: bool = False
    schedule_created_and_extended_until_aed: bool = False
    intake_finalized: bool = False
    onboarding_finalized: bool = False
    service_initiation_finalized: bool = False


class ClientResponse(ClientChecklistState, ClientFields):
    """Schema for client response."""
    id: UUID
    organization_id: UUID
    created_by: Optional[UUID] = None
    referral_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientListResponse(BaseModel):
    """Schema for client list response."""
    items: List[ClientResponse]
    total: int


class ChecklistUpdate(BaseModel):
    """Toggle a single checklist item."""
    field: str = Field(..., min_length=1)
    value: bool


class PhaseChangeRequest(BaseModel):
    """Target phase for finalize / correction operations."""
    phase: ClientPhase


class ClientDeleteRequest(BaseModel):
    """Typed confirmation required for a hard delete."""
    confirmation: str


class PhaseStatus(BaseModel):
    """Completion of one phase checklist."""
    phase: ClientPhase
    label: str
    total: int
    completed: int
    is_current: bool
    is_completed: bool
    is_finalized: bool


class PhaseProgressResponse(BaseModel):
    """Pipeline progress for a client."""
    phases: List[PhaseStatus]
    completed_tasks: int
    total_tasks: int
    completion_rate: int
    next_phase: Optional[ClientPhase] = None
    can_advance: bool


class MarketerInfo(BaseModel):
    """Embedded marketer info for client detail."""
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class CmCompanyInfo(BaseModel):
    """Embedded case-management company info for client detail."""
    id: UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


class ClientDetailResponse(ClientResponse):
    """Client with caregivers, marketer, CM company, notes and referrals."""
    caregivers: List[CaregiverResponse] = []
    marketer: Optional[MarketerInfo] = None
    cm_company: Optional[CmCompanyInfo] = None
    client_notes: List[ClientNoteResponse] = []
    referrals: List[ReferralResponse] = []

    class Config:
        from_attributes = True

