"""
Phase policy: pure gate evaluation for the client onboarding pipeline.

Nothing in this module touches the database. Callers pass any client-shaped
record (ORM instance, pydantic model or mapping); fields that are missing
are treated as not done.
"""

from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, Union

from careflow.models.client import ClientPhase


PHASE_ORDER: Tuple[ClientPhase, ...] = (
    ClientPhase.INTAKE,
    ClientPhase.ONBOARDING,
    ClientPhase.SERVICE_INITIATION,
)

PHASE_LABELS: Dict[ClientPhase, str] = {
    ClientPhase.INTAKE: "Client Intake",
    ClientPhase.ONBOARDING: "Caregiver Onboarding",
    ClientPhase.SERVICE_INITIATION: "Services Initiated",
}

INTAKE_CHECKLIST: Tuple[str, ...] = (
    "initial_assessment_required",
    "clinical_dates_entered",
    "reassessment_date_entered",
    "initial_assessment_completed",
    "client_documents_populated",
)

ONBOARDING_CHECKLIST: Tuple[str, ...] = (
    "viventium_onboarding_completed",
    "caregiver_fingerprinted",
    "background_results_uploaded",
    "drivers_license_submitted",
    "ssn_or_birth_certificate_submitted",
    "tb_test_completed",
    "cpr_first_aid_completed",
    "pca_cert_including_2_of_3",
)

SERVICE_INITIATION_CHECKLIST: Tuple[str, ...] = (
    "edwp_created_and_sent",
    "edwp_transmittal_completed",
    "manager_ccd",
    "schedule_created_and_extended_until_aed",
)

PHASE_CHECKLISTS: Dict[ClientPhase, Tuple[str, ...]] = {
    ClientPhase.INTAKE: INTAKE_CHECKLIST,
    ClientPhase.ONBOARDING: ONBOARDING_CHECKLIST,
    ClientPhase.SERVICE_INITIATION: SERVICE_INITIATION_CHECKLIST,
}

# Fields that gate leaving a phase. The terminal phase has no gate.
ADVANCE_GATES: Dict[ClientPhase, Tuple[str, ...]] = {
    ClientPhase.INTAKE: INTAKE_CHECKLIST,
    ClientPhase.ONBOARDING: ONBOARDING_CHECKLIST,
}

CHECKLIST_FIELDS: Dict[str, ClientPhase] = {
    field: phase
    for phase, fields in PHASE_CHECKLISTS.items()
    for field in fields
}


PhaseLike = Union[ClientPhase, str]


def coerce_phase(phase: PhaseLike) -> ClientPhase:
    """Accept a ClientPhase or its string value."""
    if isinstance(phase, ClientPhase):
        return phase
    return ClientPhase(phase)


def _read(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def next_phase(phase: PhaseLike) -> Optional[ClientPhase]:
    """Return the phase after `phase`, or None for the terminal phase."""
    index = PHASE_ORDER.index(coerce_phase(phase))
    if index + 1 < len(PHASE_ORDER):
        return PHASE_ORDER[index + 1]
    return None


def missing_items(record: Any, phase: PhaseLike) -> List[str]:
    """List the gate fields of `phase` that are not yet true on the record."""
    gate = ADVANCE_GATES.get(coerce_phase(phase), ())
    return [field for field in gate if not bool(_read(record, field))]


def can_advance(record: Any, phase: PhaseLike) -> bool:
    """
    True iff every gate field for `phase` is true on the record.

    The terminal phase never advances. A missing field counts as false.
    """
    phase = coerce_phase(phase)
    if phase not in ADVANCE_GATES or next_phase(phase) is None:
        return False
    return not missing_items(record, phase)


def is_ready_to_finalize(record: Any, phase: PhaseLike) -> bool:
    """
    True when every checklist item of the phase is done.
    Service initiation also needs a training/care start date.
    """
    phase = coerce_phase(phase)
    all_checked = all(bool(_read(record, field)) for field in PHASE_CHECKLISTS[phase])
    if phase == ClientPhase.SERVICE_INITIATION:
        return all_checked and bool(_read(record, "training_or_care_start_date"))
    return all_checked


def phase_progress(record: Any) -> Dict[str, Any]:
    """Per-phase completion counts plus overall completion percentage."""
    current = _read(record, "current_phase")
    current = coerce_phase(current) if current else None

    phases = []
    total_tasks = 0
    completed_tasks = 0
    for phase in PHASE_ORDER:
        fields = PHASE_CHECKLISTS[phase]
        completed = sum(1 for field in fields if bool(_read(record, field)))
        total_tasks += len(fields)
        completed_tasks += completed
        phases.append({
            "phase": phase,
            "label": PHASE_LABELS[phase],
            "total": len(fields),
            "completed": completed,
            "is_current": phase == current,
            "is_completed": completed == len(fields),
            "is_finalized": bool(_read(record, f"{phase.value}_finalized")),
        })

    completion_rate = round(completed_tasks * 100 / total_tasks) if total_tasks else 0
    return {
        "phases": phases,
        "completed_tasks": completed_tasks,
        "total_tasks": total_tasks,
        "completion_rate": completion_rate,
        "next_phase": next_phase(current) if current else None,
        "can_advance": can_advance(record, current) if current else False,
    }
