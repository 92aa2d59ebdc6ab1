from __future__ import annotations

"""Runtime configuration read from the environment.

Env vars:
- GROQ_API_KEY, GROQ_BASE_URL, GROQ_MODEL (hosted completion provider)
- SUPABASE_URL, SUPABASE_KEY (hosted Postgres for conversations/profiles)
- SUPABASE_JWT_SECRET (verifies access tokens issued by Supabase Auth)
- IDEACRAFTER_STORE_IMPL ("memory" or "supabase"; default picks supabase when configured)
- GOOGLE_API_KEY, GOOGLE_CSE_ID (optional web search provider)
- IDEACRAFTER_CORS_ORIGINS (comma separated)
- IDEACRAFTER_PUBLIC_MODE (allow anonymous access for demos)
"""

from dataclasses import dataclass, field
from typing import List, Optional
import os


DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: tuple[str, ...]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    groq_api_key: Optional[str] = None
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    groq_model: str = DEFAULT_GROQ_MODEL
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_jwt_secret: str = "dev-secret-change-me"
    store_impl: str = "memory"
    google_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    public_mode: bool = False

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def web_search_configured(self) -> bool:
        return bool(self.google_api_key and self.google_cse_id)

    @staticmethod
    def from_env() -> "Settings":
        supabase_url = os.getenv("SUPABASE_URL") or None
        supabase_key = os.getenv("SUPABASE_KEY") or None
        default_impl = "supabase" if supabase_url and supabase_key else "memory"
        return Settings(
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_base_url=os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL),
            groq_model=os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL),
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", "dev-secret-change-me"),
            store_impl=(os.getenv("IDEACRAFTER_STORE_IMPL") or default_impl).lower(),
            google_api_key=os.getenv("GOOGLE_API_KEY") or None,
            google_cse_id=os.getenv("GOOGLE_CSE_ID") or None,
            cors_origins=_env_list("IDEACRAFTER_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
            public_mode=_env_flag("IDEACRAFTER_PUBLIC_MODE"),
        )
