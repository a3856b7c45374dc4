"""
Referral Pydantic schemas.

Referral capture is free-form on the wire and serialized into the `notes`
column; ReferralDetails is the typed shape it is parsed into on every read.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

# Pre-onboarding work a marketer may complete before intake
PRE_ONBOARDING_FIELDS = (
    "viventium_onboarding_completed",
    "caregiver_fingerprinted",
    "background_results_uploaded",
    "drivers_license_submitted",
    "ssn_or_birth_certificate_submitted",
    "tb_test_completed",
    "cpr_first_aid_completed",
    "pca_cert_including_2_of_3",
)

REFERRAL_CORE_FIELDS = ("client_id", "referred_by", "referral_date", "referral_source")


class ReferralDetails(BaseModel):
    """Typed view of everything a marketer captured on a referral."""
    referral_name: Optional[str] = None
    phone: Optional[str] = None
    county: Optional[str] = None
    requested_program: Optional[str] = None

    # Marketer identity
    marketer_id: Optional[UUID] = None
    marketer_name: Optional[str] = None
    marketer_email: Optional[str] = None
    marketer_phone: Optional[str] = None

    # Demographics
    sex: Optional[str] = None
    referral_dob: Optional[date] = None
    medicaid_or_ssn: Optional[str] = None

    # Address
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    # Medical
    physician: Optional[str] = None
    diagnosis: Optional[str] = None

    # Services and benefits
    services_needed: Dict[str, Any] = Field(default_factory=dict)
    receives_benefits: Optional[str] = None
    benefits_pay_date: Optional[str] = None

    # Source
    heard_about_us: Optional[str] = None
    additional_info: Optional[str] = None

    # Informal caregiver
    caregiver_name: Optional[str] = None
    caregiver_relationship: Optional[str] = None
    caregiver_phone: Optional[str] = None
    caregiver_lives_in_home: Optional[bool] = None

    # Pre-onboarding checklist
    viventium_onboarding_completed: bool = False
    caregiver_fingerprinted: bool = False
    background_results_uploaded: bool = False
    drivers_license_submitted: bool = False
    ssn_or_birth_certificate_submitted: bool = False
    tb_test_completed: bool = False
    cpr_first_aid_completed: bool = False
    pca_cert_including_2_of_3: bool = False

    class Config:
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _blanks_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data


def parse_referral_notes(raw: Optional[str]) -> ReferralDetails:
    """
    Parse the serialized capture stored in `referrals.notes`.
    Plain-text notes are kept as additional_info.
    """
    if not raw:
        return ReferralDetails()
    try:
        payload = json.loads(raw)
    except ValueError:
        return ReferralDetails(additional_info=raw)
    if not isinstance(payload, dict):
        return ReferralDetails(additional_info=raw)
    return ReferralDetails.model_validate(payload)


def serialize_referral_details(details: ReferralDetails) -> str:
    """Serialize captured details for the `notes` column."""
    return details.model_dump_json(exclude_defaults=True)


class ReferralCreate(ReferralDetails):
    """Schema for a marketer's referral submission."""
    referral_name: str = Field(..., max_length=255)
    client_id: Optional[UUID] = None
    referred_by: Optional[str] = Field(None, max_length=255)
    referral_date: Optional[date] = None
    referral_source: Optional[str] = Field(None, max_length=255)


class ReferralUpdate(ReferralDetails):
    """Schema for updating a referral; provided fields merge into the capture."""
    client_id: Optional[UUID] = None
    referred_by: Optional[str] = Field(None, max_length=255)
    referral_date: Optional[date] = None
    referral_source: Optional[str] = Field(None, max_length=255)


class ReferralResponse(ReferralDetails):
    """Referral with its capture flattened next to the core columns."""
    id: UUID
    organization_id: UUID
    client_id: Optional[UUID] = None
    referred_by: Optional[str] = None
    referral_date: Optional[date] = None
    referral_source: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        extra = "ignore"

    @model_validator(mode="before")
    @classmethod
    def _from_record(cls, data: Any) -> Any:
        # ORM rows carry the capture serialized in `notes`
        if isinstance(data, dict) or not hasattr(data, "notes"):
            return data
        details = parse_referral_notes(data.notes)
        return {
            **details.model_dump(),
            "id": data.id,
            "organization_id": data.organization_id,
            "client_id": data.client_id,
            "referred_by": data.referred_by,
            "referral_date": data.referral_date,
            "referral_source": data.referral_source,
            "created_at": data.created_at,
            "updated_at": data.updated_at,
        }


class ReferralListResponse(BaseModel):
    """Schema for referral list response."""
    items: List[ReferralResponse]
    total: int


class IntakeForm(BaseModel):
    """
    Values entered on the intake form when converting a referral.
    These take precedence over the referral's captured values.
    """
    client_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone_numbers: Optional[List[str]] = None
    client_phone: Optional[str] = Field(None, max_length=50)
    caregiver_name: Optional[str] = Field(None, max_length=255)
    caregiver_relationship: Optional[str] = Field(None, max_length=100)
    caregiver_phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=100)
    program: Optional[str] = Field(None, max_length=100)
    frequency: Optional[str] = Field(None, max_length=100)
    cost_share_amount: Optional[Any] = None
    location: Optional[str] = Field(None, max_length=100)
    director_of_marketing: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
