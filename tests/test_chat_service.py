import pytest

from src.ideacrafter.services.chat_service import (
    GENERIC_FAILURE,
    ChatService,
    CompletionError,
    ValidationFailure,
    categorize_provider_error,
    parse_completion_request,
)

from .utils import FakeChatModels, make_client


def _body(**overrides):
    body = {
        "history": [{"role": "user", "content": "Help me plan a seed round"}],
        "userId": "user-1",
        "userType": "entrepreneur",
        "options": {"persona": "Strategist", "tone": "Balanced", "temperature": 0.7},
    }
    body.update(overrides)
    return body


@pytest.mark.parametrize(
    "overrides,status,message",
    [
        ({"userId": None}, 401, "User not logged in"),
        ({"userId": ""}, 401, "User not logged in"),
        ({"history": "nope"}, 400, "History must be an array"),
        ({"history": [{"role": "user"}]}, 400, "Invalid message structure in history"),
        ({"history": [{"role": "user", "content": ""}]}, 400, "Invalid message structure in history"),
        ({"history": ["hi"]}, 400, "Invalid message structure in history"),
        ({"history": [{"role": "system", "content": "x"}]}, 400, "Invalid role in history messages"),
        ({"userType": "admin"}, 400, "Invalid userType"),
        ({"options": {"temperature": 1.5}}, 400, "Temperature must be a number between 0 and 1"),
        ({"options": {"temperature": -0.1}}, 400, "Temperature must be a number between 0 and 1"),
        ({"options": {"temperature": "hot"}}, 400, "Temperature must be a number between 0 and 1"),
        ({"options": {"temperature": True}}, 400, "Temperature must be a number between 0 and 1"),
        ({"options": {"temperature": float("nan")}}, 400, "Temperature must be a number between 0 and 1"),
        ({"options": {"temperature": float("inf")}}, 400, "Temperature must be a number between 0 and 1"),
    ],
)
def test_parse_rejects_invalid_bodies(overrides, status, message):
    with pytest.raises(ValidationFailure) as exc:
        parse_completion_request(_body(**overrides))
    assert exc.value.status_code == status
    assert exc.value.message == message


def test_parse_applies_defaults():
    req = parse_completion_request({"userId": "user-1", "conversationId": "  "})
    assert req.history == []
    assert req.user_type == "entrepreneur"
    assert req.conversation_id is None
    assert req.options.persona == "Strategist"
    assert req.options.tone == "Balanced"
    assert req.options.temperature == 0.7


def test_temperature_bounds_are_inclusive():
    assert parse_completion_request(_body(options={"temperature": 0})).options.temperature == 0.0
    assert parse_completion_request(_body(options={"temperature": 1})).options.temperature == 1.0


@pytest.mark.parametrize(
    "text,status,category",
    [
        ("Invalid API key provided", 500, "configuration"),
        ("Rate limit reached for requests", 429, "rate_limit"),
        ("The model `llama` is decommissioned", 503, "model_unavailable"),
        ("connection reset by peer", 500, "generic"),
    ],
)
def test_categorize_provider_error(text, status, category):
    err = categorize_provider_error(RuntimeError(text))
    assert err.status_code == status
    assert err.category == category


def test_api_key_rule_wins_over_model_rule():
    err = categorize_provider_error(RuntimeError("model call failed: bad API key"))
    assert err.category == "configuration"
    assert err.message == "API configuration error. Please check your API key."


def test_first_turn_generates_title_and_new_id():
    models = FakeChatModels(tokens=["Start with angels."], title="Seed Round Planning")
    service = ChatService(make_client(models), id_factory=lambda: "conv-123")
    res = service.complete(parse_completion_request(_body()))
    assert res.conversation_id == "conv-123"
    assert res.text == "Start with angels."
    assert res.title == "Seed Round Planning"
    assert len(models.invoked) == 1


def test_follow_up_turn_keeps_id_and_skips_title():
    models = FakeChatModels(tokens=["Sure."])
    service = ChatService(make_client(models))
    res = service.complete(parse_completion_request(_body(conversationId="conv-9")))
    assert res.conversation_id == "conv-9"
    assert res.title == "Untitled Chat"
    assert models.invoked == []


def test_provider_failure_becomes_completion_error():
    service = ChatService(make_client(FakeChatModels(error=RuntimeError("something odd"))))
    with pytest.raises(CompletionError) as exc:
        service.complete(parse_completion_request(_body()))
    assert exc.value.status_code == 500
    assert exc.value.message == GENERIC_FAILURE
