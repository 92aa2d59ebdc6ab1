from __future__ import annotations

from threading import RLock
from typing import Dict, Optional, Protocol
import logging

from ..config import Settings
from ..domain.profile_models import Profile
from .conversation_store import describe_store_error


logger = logging.getLogger("ideacrafter.store")


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> Optional[Profile]: ...


class InMemoryProfileStore:
    def __init__(self, profiles: Optional[Dict[str, Profile]] = None) -> None:
        self._profiles: Dict[str, Profile] = dict(profiles or {})
        self._lock = RLock()

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._lock:
            return self._profiles.get(user_id)

    def put_profile(self, profile: Profile) -> Profile:
        with self._lock:
            self._profiles[profile.id] = profile
            return profile


class SupabaseProfileStore:
    def __init__(self, client, table: str = "profiles") -> None:
        self._client = client
        self._table = table

    def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            res = self._client.table(self._table).select("*").eq("id", user_id).limit(1).execute()
        except Exception as exc:
            raise describe_store_error(exc, self._table) from exc
        rows = res.data or []
        if not rows:
            return None
        row = rows[0]
        if row.get("user_type") not in ("entrepreneur", "investor"):
            row = {**row, "user_type": "entrepreneur"}
        return Profile.model_validate(row)


def build_profile_store(settings: Settings) -> ProfileStore:
    if settings.store_impl == "supabase" and settings.supabase_configured:
        from .conversation_store_supabase import create_supabase_client

        return SupabaseProfileStore(create_supabase_client(settings))
    return InMemoryProfileStore()
