"""
Caregiver Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import date, datetime
from uuid import UUID

from careflow.models.caregiver import CaregiverStatus


class CaregiverBase(BaseModel):
    """Base caregiver schema with contact fields."""
    full_name: str = Field(..., max_length=255)
    relationship_to_client: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    lives_in_home: bool = False
    notes: Optional[str] = None


class CaregiverCreate(CaregiverBase):
    """Schema for creating a caregiver (standalone or under a client)."""
    started_at: Optional[datetime] = None

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class CaregiverUpdate(BaseModel):
    """
    Schema for updating caregiver details and onboarding checklist.
    Assignment and status changes go through the assignment operations.
    """
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    relationship_to_client: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    lives_in_home: Optional[bool] = None
    notes: Optional[str] = None
    viventium_onboarding_completed: Optional[bool] = None
    caregiver_fingerprinted: Optional[bool] = None
    background_results_uploaded: Optional[bool] = None
    drivers_license_submitted: Optional[bool] = None
    ssn_or_birth_certificate_submitted: Optional[bool] = None
    tb_test_completed: Optional[bool] = None
    cpr_first_aid_completed: Optional[bool] = None
    pca_cert_including_2_of_3: Optional[bool] = None
    drivers_license_expires_at: Optional[date] = None
    tb_test_issued_at: Optional[date] = None
    cpr_issued_at: Optional[date] = None


class CaregiverResponse(CaregiverBase):
    """Schema for caregiver response."""
    id: UUID
    organization_id: UUID
    client_id: Optional[UUID] = None
    status: CaregiverStatus
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    viventium_onboarding_completed: bool = False
    caregiver_fingerprinted: bool = False
    background_results_uploaded: bool = False
    drivers_license_submitted: bool = False
    ssn_or_birth_certificate_submitted: bool = False
    tb_test_completed: bool = False
    cpr_first_aid_completed: bool = False
    pca_cert_including_2_of_3: bool = False
    drivers_license_expires_at: Optional[date] = None
    tb_test_issued_at: Optional[date] = None
    cpr_issued_at: Optional[date] = None
    onboarding_finalized: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CaregiverListResponse(BaseModel):
    """Schema for caregiver list response."""
    items: List[CaregiverResponse]
    total: int


class CaregiverAssignRequest(BaseModel):
    """Assign a caregiver to a client. `confirm` acknowledges replacing the active caregiver."""
    client_id: UUID
    confirm: bool = False


class CaregiverDeactivateRequest(BaseModel):
    """Optional explicit end time for a deactivation."""
    ended_at: Optional[datetime] = None


class AssignmentResult(BaseModel):
    """
    Outcome of an assignment attempt.
    `conflict` means nothing was written; the caller must confirm to proceed.
    """
    status: Literal["assigned", "conflict"]
    caregiver: CaregiverResponse
    client_id: UUID
    conflicting_caregiver: Optional[CaregiverResponse] = None
    replaced_caregiver_id: Optional[UUID] = None
