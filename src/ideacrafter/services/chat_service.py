"""Completion endpoint logic: request validation, reply + title generation,
and translation of provider failures into user-facing categories.

Validation happens before any provider call; a rejected request never reaches
the model. Provider errors are bucketed by substring of the error text and are
never retried here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import uuid

from ..domain.chat_models import (
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    DEFAULT_TITLE,
    HistoryTurn,
)
from ..observability.metrics import COMPLETION_ERRORS
from .completion_client import CompletionClient
from .prompt_composer import DEFAULT_PERSONA, DEFAULT_TONE


logger = logging.getLogger("ideacrafter.chat")

VALID_ROLES = ("user", "assistant")
VALID_USER_TYPES = ("entrepreneur", "investor")
DEFAULT_TEMPERATURE = 0.7

GENERIC_FAILURE = "Something went wrong while generating the response. Please try again."

# (needle, category, status, user-facing message); first match wins
_PROVIDER_ERROR_RULES: List[Tuple[str, str, int, str]] = [
    ("api key", "configuration", 500, "API configuration error. Please check your API key."),
    ("rate limit", "rate_limit", 429, "Rate limit exceeded. Please try again later."),
    ("model", "model_unavailable", 503, "AI model temporarily unavailable. Please try again."),
]


class ValidationFailure(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompletionError(Exception):
    """A provider failure mapped to a user-facing category."""

    def __init__(self, category: str, status_code: int, message: str) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = status_code
        self.message = message


def categorize_provider_error(exc: BaseException) -> CompletionError:
    text = str(exc).lower()
    for needle, category, status_code, message in _PROVIDER_ERROR_RULES:
        if needle in text:
            return CompletionError(category, status_code, message)
    return CompletionError("generic", 500, GENERIC_FAILURE)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_completion_request(payload: Any) -> CompletionRequest:
    """Validate a raw JSON body; raises ValidationFailure with the reason."""
    if not isinstance(payload, dict):
        raise ValidationFailure("Invalid request body")

    user_id = payload.get("userId")
    if not user_id or not isinstance(user_id, str):
        raise ValidationFailure("User not logged in", status_code=401)

    history = payload.get("history", [])
    if not isinstance(history, list):
        raise ValidationFailure("History must be an array")
    for turn in history:
        if not isinstance(turn, dict):
            raise ValidationFailure("Invalid message structure in history")
        role, content = turn.get("role"), turn.get("content")
        if not role or not content or not isinstance(role, str) or not isinstance(content, str):
            raise ValidationFailure("Invalid message structure in history")
    if any(turn["role"] not in VALID_ROLES for turn in history):
        raise ValidationFailure("Invalid role in history messages")

    user_type = payload.get("userType") or "entrepreneur"
    if user_type not in VALID_USER_TYPES:
        raise ValidationFailure("Invalid userType")

    options = payload.get("options") or {}
    if not isinstance(options, dict):
        raise ValidationFailure("Options must be an object")
    temperature = options.get("temperature", DEFAULT_TEMPERATURE)
    if not _is_number(temperature) or not 0 <= temperature <= 1:
        raise ValidationFailure("Temperature must be a number between 0 and 1")
    persona = options.get("persona")
    tone = options.get("tone")

    conversation_id = payload.get("conversationId")
    if not isinstance(conversation_id, str) or not conversation_id.strip():
        conversation_id = None

    return CompletionRequest(
        conversation_id=conversation_id,
        history=[HistoryTurn(role=t["role"], content=t["content"]) for t in history],
        user_id=user_id,
        user_type=user_type,
        options=CompletionOptions(
            persona=persona if isinstance(persona, str) and persona else DEFAULT_PERSONA,
            tone=tone if isinstance(tone, str) and tone else DEFAULT_TONE,
            temperature=float(temperature),
        ),
    )


@dataclass
class ChatService:
    client: CompletionClient
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4())

    def complete(self, request: CompletionRequest) -> CompletionResponse:
        history: List[Dict[str, str]] = [{"role": t.role, "content": t.content} for t in request.history]
        try:
            text = self.client.generate_reply(history, request.options, user_type=request.user_type)
            conversation_id: Optional[str] = request.conversation_id
            title = DEFAULT_TITLE
            if not conversation_id:
                first_user = next((t["content"] for t in history if t["role"] == "user"), None)
                title = self.client.generate_title(first_user, text)
                conversation_id = self.id_factory()
        except Exception as exc:
            err = categorize_provider_error(exc)
            COMPLETION_ERRORS.labels(category=err.category).inc()
            logger.error(
                "completion_failed category=%s user_id=%s err=%s",
                err.category,
                request.user_id,
                exc,
            )
            raise err from exc

        logger.info(
            "completion_ok user_id=%s conversation_id=%s new=%s",
            request.user_id,
            conversation_id,
            request.conversation_id is None,
        )
        return CompletionResponse(conversation_id=conversation_id, text=text, title=title)
