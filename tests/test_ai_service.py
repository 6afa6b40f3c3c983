import httpx
import openai
import pytest

from dietcraft.core.app_config import AppConfig
from dietcraft.models import ClientProfile
from dietcraft.services.ai_service import (
    AIService,
    PlanGenerationError,
    build_user_prompt,
    classify_error,
    contains_unsafe_phrases,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(error_cls, status, body=None):
    return error_cls("upstream said no", response=httpx.Response(status, request=REQUEST), body=body)


@pytest.fixture
def client_profile():
    return ClientProfile(
        full_name="Maria Lopez",
        age="34",
        gender="female",
        allergies=["peanuts", " ", "shellfish"],
        goals="Gradual weight loss"
    )


@pytest.fixture
def service(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    svc = AIService(config=AppConfig())
    svc.client = object()
    return svc


# --- Prompt ---

def test_prompt_includes_profile(client_profile):
    prompt = build_user_prompt(client_profile, "Prefers Mediterranean food")

    assert "- Name: Maria Lopez" in prompt
    assert "- Age: 34" in prompt
    assert "- Allergies: peanuts, shellfish" in prompt
    assert "- Goals: Gradual weight loss" in prompt
    assert "Prefers Mediterranean food" in prompt


def test_prompt_fills_missing_fields():
    prompt = build_user_prompt(ClientProfile(full_name="Sam"), None)

    assert "- Height: Not specified" in prompt
    assert "- Medical Conditions: None specified" in prompt
    assert "No additional notes provided." in prompt


@pytest.mark.parametrize("text,expected", [
    ("This will CURE your diabetes", True),
    ("We cannot diagnose anything here", True),
    ("Eat more vegetables", False),
    ("", False),
])
def test_contains_unsafe_phrases(text, expected):
    assert contains_unsafe_phrases(text) is expected


# --- Error Classification ---

def test_classify_auth_error():
    error = classify_error(status_error(openai.AuthenticationError, 401))
    assert error.error_code == "AI_AUTH_FAILED"
    assert error.status_code == 500


def test_classify_rate_limit():
    error = classify_error(status_error(openai.RateLimitError, 429))
    assert error.error_code == "AI_RATE_LIMITED"
    assert error.status_code == 429
    assert error.message == "AI service is temporarily busy. Please try again later."


def test_classify_content_filter():
    error = classify_error(status_error(openai.BadRequestError, 400, body={"code": "content_filter"}))
    assert error.error_code == "AI_CONTENT_BLOCKED"
    assert error.status_code == 400


def test_plain_bad_request_is_generic():
    error = classify_error(status_error(openai.BadRequestError, 400, body={"code": "invalid_value"}))
    assert error.error_code == "AI_GENERATION_FAILED"


def test_bad_request_mentioning_safety_is_generic():
    error = classify_error(openai.BadRequestError(
        "Invalid value for 'safety_identifier'",
        response=httpx.Response(400, request=REQUEST),
        body={"code": "invalid_value"}
    ))
    assert error.error_code == "AI_GENERATION_FAILED"


def test_content_filter_named_in_message():
    error = classify_error(openai.BadRequestError(
        "The response was filtered (content_filter)",
        response=httpx.Response(400, request=REQUEST),
        body=None
    ))
    assert error.error_code == "AI_CONTENT_BLOCKED"


def test_classify_timeout():
    error = classify_error(openai.APITimeoutError(request=REQUEST))
    assert error.error_code == "AI_TIMEOUT"
    assert error.status_code == 504


def test_classify_unknown_error_keeps_details_internal():
    error = classify_error(ValueError("socket exploded"))
    assert error.error_code == "AI_GENERATION_FAILED"
    assert "socket" not in error.message
    assert error.details == "socket exploded"


# --- Generation ---

def test_not_configured(monkeypatch, client_profile):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    svc = AIService(config=AppConfig())

    with pytest.raises(PlanGenerationError) as exc:
        svc.generate_plan(client_profile)
    assert exc.value.error_code == "AI_NOT_CONFIGURED"
    assert svc.status() == {"configured": False, "model": "gpt-4o"}


def test_generate_returns_text(monkeypatch, service, client_profile):
    calls = []

    def fake_complete(system_prompt, user_prompt):
        calls.append(user_prompt)
        return "DAY 1\nBreakfast: Oats; 1 cup", "stop"

    monkeypatch.setattr(service, "_complete", fake_complete)

    assert service.generate_plan(client_profile, "notes").startswith("DAY 1")
    assert "Maria Lopez" in calls[0]


def test_upstream_failure_is_classified(monkeypatch, service, client_profile):
    def fake_complete(system_prompt, user_prompt):
        raise status_error(openai.RateLimitError, 429)

    monkeypatch.setattr(service, "_complete", fake_complete)

    with pytest.raises(PlanGenerationError) as exc:
        service.generate_plan(client_profile)
    assert exc.value.error_code == "AI_RATE_LIMITED"
    assert isinstance(exc.value.__cause__, openai.RateLimitError)


@pytest.mark.parametrize("text,finish_reason,code", [
    ("partial", "content_filter", "AI_CONTENT_BLOCKED"),
    ("   ", "stop", "AI_GENERATION_FAILED"),
    ("This will cure everything", "stop", "UNSAFE_CONTENT"),
])
def test_rejected_completions(monkeypatch, service, client_profile, text, finish_reason, code):
    monkeypatch.setattr(service, "_complete", lambda system_prompt, user_prompt: (text, finish_reason))

    with pytest.raises(PlanGenerationError) as exc:
        service.generate_plan(client_profile)
    assert exc.value.error_code == code
