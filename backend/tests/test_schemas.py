from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from app.schemas.case import (
    AuditAction,
    AuditEvent,
    Case,
    CaseStatus,
    DecisionSubmittedEvent,
    DecisionType,
    FieldEditEvent,
)
from app.services.case_generator import CaseGenerator


def _example_payload() -> dict:
    return CaseGenerator(seed=1).example_case().model_dump()


def test_audit_events_are_discriminated_by_action():
    adapter = TypeAdapter(AuditEvent)
    edit = adapter.validate_python(
        {
            "action": "FIELD_EDIT",
            "timestamp": "2024-01-15T09:30:00Z",
            "user": "reviewer",
            "field_id": "ef",
            "old_value": "25%",
            "new_value": "20%",
            "reason": "repeat echo",
        }
    )
    decision = adapter.validate_python(
        {
            "action": "DECISION_SUBMITTED",
            "timestamp": "2024-01-15T09:30:00Z",
            "user": "reviewer",
            "decision": "DENIED",
            "is_override": True,
            "reason": "Clinical judgment",
        }
    )
    assert isinstance(edit, FieldEditEvent)
    assert isinstance(decision, DecisionSubmittedEvent)
    assert decision.action == AuditAction.DECISION_SUBMITTED
    assert not hasattr(edit, "decision")


def test_field_edit_event_requires_its_fields():
    with pytest.raises(ValidationError):
        TypeAdapter(AuditEvent).validate_python(
            {"action": "FIELD_EDIT", "timestamp": "2024-01-15T09:30:00Z", "user": "reviewer"}
        )


def test_case_round_trips_through_json():
    case = CaseGenerator(seed=1).example_case()
    assert Case.model_validate_json(case.model_dump_json()) == case


def test_extraction_must_cite_existing_page():
    payload = _example_payload()
    payload["extractions"][1]["source"]["page"] = 8
    with pytest.raises(ValidationError, match="page 8"):
        Case.model_validate(payload)


def test_extraction_must_cite_existing_document():
    payload = _example_payload()
    payload["extractions"][0]["source"]["doc_id"] = "DOC-9"
    with pytest.raises(ValidationError, match="unknown document"):
        Case.model_validate(payload)


def test_recommendation_evidence_must_exist():
    payload = _example_payload()
    payload["ai_recommendation"]["evidence_field_ids"] = ["ef", "lvef"]
    with pytest.raises(ValidationError, match="lvef"):
        Case.model_validate(payload)


def test_duplicate_field_ids_rejected():
    payload = _example_payload()
    payload["extractions"][1]["field_id"] = "dx"
    with pytest.raises(ValidationError, match="Duplicate"):
        Case.model_validate(payload)


def test_confidence_is_bounded():
    payload = _example_payload()
    payload["extractions"][0]["confidence"] = 1.2
    with pytest.raises(ValidationError):
        Case.model_validate(payload)


def test_case_is_frozen():
    case = CaseGenerator(seed=1).example_case()
    with pytest.raises(ValidationError):
        case.status = CaseStatus.APPROVED


def test_decision_maps_to_status():
    assert DecisionType.NEEDS_INFO.as_status() == CaseStatus.NEEDS_INFO
    assert CaseStatus.DENIED.is_terminal
    assert not CaseStatus.NEEDS_INFO.is_terminal


def test_low_confidence_threshold():
    case = CaseGenerator(seed=1).example_case()
    assert case.get_extraction("dx").is_low_confidence
    assert not case.get_extraction("ef").is_low_confidence
    assert case.get_extraction("missing") is None
