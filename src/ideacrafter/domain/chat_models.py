from __future__ import annotations

from datetime import UTC, datetime
from typing import List, Optional, Literal
import uuid

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["user", "assistant"]
UserType = Literal["entrepreneur", "investor"]

DEFAULT_TITLE = "Untitled Chat"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


class Message(BaseModel):
    id: str = Field(default_factory=_new_id)
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class Conversation(BaseModel):
    conversation_id: Optional[str] = None
    title: str = DEFAULT_TITLE
    messages: List[Message] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utcnow)

    def has_user_turn(self) -> bool:
        return any(m.role == "user" for m in self.messages)


class ConversationSummary(BaseModel):
    conversation_id: str
    title: str
    updated_at: datetime
    message_count: int = 0
    preview: str = ""


class ConversationSave(BaseModel):
    conversation_id: Optional[str] = None
    title: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)


class HistoryTurn(BaseModel):
    role: Role
    content: str


class CompletionOptions(BaseModel):
    persona: str = "Strategist"
    tone: str = "Balanced"
    temperature: float = 0.7


class CompletionRequest(BaseModel):
    """Body of the completion endpoint; camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    history: List[HistoryTurn] = Field(default_factory=list)
    user_id: str = Field(alias="userId")
    user_type: UserType = Field(default="entrepreneur", alias="userType")
    options: CompletionOptions = Field(default_factory=CompletionOptions)


class CompletionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    text: str
    title: str


TITLE_PREVIEW_CHARS = 50


def derive_title(messages: List[Message]) -> str:
    """Title from the first user message, truncated for the conversation list."""
    first = next((m.content for m in messages if m.role == "user"), None)
    if not first:
        return DEFAULT_TITLE
    return first[:TITLE_PREVIEW_CHARS] + ("..." if len(first) > TITLE_PREVIEW_CHARS else "")
