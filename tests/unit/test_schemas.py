import pytest
from pydantic import ValidationError

from fieldscribe.models.enums import AiType, ResponseStyle, AssessmentStatus
from fieldscribe.schemas import (
    TranscribeRequest, AssessmentCreate, TemplateUpdate, ProcessTemplateRequest, StatusMessage,
)


def test_transcribe_request_accepts_camel_case():
    body = TranscribeRequest.model_validate({"audioUrl": "https://cdn.example.com/a.mp3", "assessmentId": "01ABC"})
    assert body.audio_url == "https://cdn.example.com/a.mp3"
    assert body.assessment_id == "01ABC"


def test_transcribe_request_requires_both_fields():
    with pytest.raises(ValidationError):
        TranscribeRequest.model_validate({"audioUrl": "https://cdn.example.com/a.mp3"})
    with pytest.raises(ValidationError):
        TranscribeRequest.model_validate({"audioUrl": "", "assessmentId": "01ABC"})


def test_assessment_create_defaults_to_expert_style():
    body = AssessmentCreate(company_id="c", template_id="t")
    assert body.response_style is ResponseStyle.EXPERT


def test_assessment_create_rejects_unknown_style():
    with pytest.raises(ValidationError):
        AssessmentCreate(company_id="c", template_id="t", response_style="poetic")


def test_template_update_ai_type():
    assert TemplateUpdate(ai_type="meeting").ai_type is AiType.MEETING
    with pytest.raises(ValidationError):
        TemplateUpdate(ai_type="finance")


def test_process_template_webhook_body():
    body = ProcessTemplateRequest.model_validate({"record": {"id": "01T", "original_file_url": "templates/a.jpg"}})
    assert body.record.id == "01T"


def test_status_message_shape():
    msg = StatusMessage(event="status_update", assessment_id="01A", data={"status": "analyzing"})
    assert msg.model_dump() == {
        "event": "status_update", "assessment_id": "01A", "template_id": "", "data": {"status": "analyzing"},
    }


@pytest.mark.parametrize("raw,expected", [("meeting", AiType.MEETING), (" Inspection ", AiType.INSPECTION),
                                          ("", AiType.SAFETY), (None, AiType.SAFETY), ("other", AiType.SAFETY)])
def test_ai_type_parse_falls_back_to_safety(raw, expected):
    assert AiType.parse(raw) is expected


def test_response_style_parse_falls_back_to_expert():
    assert ResponseStyle.parse("summary") is ResponseStyle.SUMMARY
    assert ResponseStyle.parse("unknown") is ResponseStyle.EXPERT


def test_terminal_statuses():
    assert AssessmentStatus.COMPLETED.is_terminal
    assert AssessmentStatus.FAILED.is_terminal
    assert not AssessmentStatus.ANALYZING.is_terminal
