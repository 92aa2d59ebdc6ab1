"""Accessors for the collaborators built once in ``create_app``."""

from __future__ import annotations

from fastapi import Request

from ..config import Settings
from ..infrastructure.conversation_store import ConversationStore
from ..infrastructure.profile_store import ProfileStore
from ..services.chat_service import ChatService
from ..services.search_service import SearchService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service
