from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .chat_models import UserType


class Profile(BaseModel):
    id: str
    user_type: UserType = "entrepreneur"
    full_name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    industry: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None


class ConversationStarter(BaseModel):
    title: str
    description: str
    prompt: str


class AssistantBootstrap(BaseModel):
    profile: Profile
    welcome_message: str
    starters: List[ConversationStarter]
    follow_ups: List[str]
    personas: List[str] = Field(default_factory=list)
    tones: List[str] = Field(default_factory=list)
