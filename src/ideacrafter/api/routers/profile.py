from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...domain.profile_models import AssistantBootstrap, Profile
from ...infrastructure.conversation_store import StoreError
from ...infrastructure.profile_store import ProfileStore
from ...security.auth import User, get_current_user
from ...services.assistant_copy import QUICK_FOLLOW_UPS, conversation_starters, welcome_message
from ...services.prompt_composer import PERSONA_PROMPTS, TONE_PROMPTS
from ..dependencies import get_profile_store


router = APIRouter(tags=["profile"])


def _load_profile(user: User, profiles: ProfileStore) -> Profile:
    try:
        profile = profiles.get_profile(user.id)
    except StoreError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("/profile", response_model=Profile)
def get_profile(user: User = Depends(get_current_user), profiles: ProfileStore = Depends(get_profile_store)) -> Profile:
    return _load_profile(user, profiles)


@router.get("/assistant/bootstrap", response_model=AssistantBootstrap)
def assistant_bootstrap(
    user: User = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
) -> AssistantBootstrap:
    profile = _load_profile(user, profiles)
    return AssistantBootstrap(
        profile=profile,
        welcome_message=welcome_message(profile.user_type, profile.full_name),
        starters=conversation_starters(profile.user_type),
        follow_ups=list(QUICK_FOLLOW_UPS),
        personas=list(PERSONA_PROMPTS),
        tones=list(TONE_PROMPTS),
    )
