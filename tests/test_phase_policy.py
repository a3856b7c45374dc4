"""
Phase gate evaluation tests.
"""

from datetime import date

import pytest

from careflow.models.client import ClientPhase
from careflow.services import phase_policy
from careflow.services.phase_policy import (
    INTAKE_CHECKLIST,
    ONBOARDING_CHECKLIST,
    SERVICE_INITIATION_CHECKLIST,
    can_advance,
    is_ready_to_finalize,
    missing_items,
    next_phase,
    phase_progress,
)


def _all_true(fields):
    return {field: True for field in fields}


def test_next_phase_order():
    assert next_phase(ClientPhase.INTAKE) == ClientPhase.ONBOARDING
    assert next_phase("onboarding") == ClientPhase.SERVICE_INITIATION
    assert next_phase(ClientPhase.SERVICE_INITIATION) is None


def test_intake_gate_requires_every_item():
    record = _all_true(INTAKE_CHECKLIST)
    assert can_advance(record, ClientPhase.INTAKE)

    for field in INTAKE_CHECKLIST:
        partial = dict(record, **{field: False})
        assert not can_advance(partial, ClientPhase.INTAKE), field


def test_onboarding_gate_requires_every_item():
    record = _all_true(ONBOARDING_CHECKLIST)
    assert can_advance(record, ClientPhase.ONBOARDING)

    for field in ONBOARDING_CHECKLIST:
        partial = dict(record, **{field: False})
        assert not can_advance(partial, ClientPhase.ONBOARDING), field


def test_missing_field_fails_closed():
    record = _all_true(INTAKE_CHECKLIST)
    del record["client_documents_populated"]
    assert not can_advance(record, ClientPhase.INTAKE)
    assert missing_items(record, ClientPhase.INTAKE) == ["client_documents_populated"]


def test_terminal_phase_never_advances():
    record = _all_true(INTAKE_CHECKLIST + ONBOARDING_CHECKLIST + SERVICE_INITIATION_CHECKLIST)
    assert not can_advance(record, ClientPhase.SERVICE_INITIATION)


def test_gate_ignores_other_phases():
    record = _all_true(ONBOARDING_CHECKLIST)
    assert not can_advance(record, ClientPhase.INTAKE)


def test_works_on_attribute_records():
    class Record:
        pass

    record = Record()
    for field in INTAKE_CHECKLIST:
        setattr(record, field, True)
    assert can_advance(record, ClientPhase.INTAKE)
    record.clinical_dates_entered = False
    assert not can_advance(record, ClientPhase.INTAKE)


def test_policy_does_not_mutate_record():
    record = _all_true(INTAKE_CHECKLIST)
    snapshot = dict(record)
    can_advance(record, ClientPhase.INTAKE)
    phase_progress(dict(record, current_phase="intake"))
    assert record == snapshot


def test_service_initiation_finalize_needs_start_date():
    record = _all_true(SERVICE_INITIATION_CHECKLIST)
    assert not is_ready_to_finalize(record, ClientPhase.SERVICE_INITIATION)
    record["training_or_care_start_date"] = date(2026, 1, 5)
    assert is_ready_to_finalize(record, ClientPhase.SERVICE_INITIATION)


def test_phase_progress_counts():
    record = dict(_all_true(INTAKE_CHECKLIST), current_phase="onboarding", intake_finalized=True)
    record["tb_test_completed"] = True

    progress = phase_progress(record)

    assert progress["total_tasks"] == 17
    assert progress["completed_tasks"] == 6
    assert progress["completion_rate"] == round(6 * 100 / 17)
    assert progress["next_phase"] == ClientPhase.SERVICE_INITIATION
    assert progress["can_advance"] is False
    intake, onboarding, service = progress["phases"]
    assert intake["is_completed"] and intake["is_finalized"]
    assert onboarding["is_current"] and onboarding["completed"] == 1
    assert not service["is_current"]


@pytest.mark.parametrize("phase", list(phase_policy.PHASE_ORDER))
def test_every_phase_has_a_label_and_checklist(phase):
    assert phase_policy.PHASE_LABELS[phase]
    assert phase_policy.PHASE_CHECKLISTS[phase]
