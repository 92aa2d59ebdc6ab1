from __future__ import annotations

"""Authentication utilities: verification of Supabase-issued access tokens.

Sign-in and sign-up happen against Supabase Auth directly; this backend only
verifies the resulting HS256 JWT and exposes the caller as a ``User``.

Env vars:
- SUPABASE_JWT_SECRET (required in prod; default for dev)
- IDEACRAFTER_PUBLIC_MODE (accept anonymous callers as a guest user)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import logging
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from ..config import Settings


logger = logging.getLogger("ideacrafter.auth")
bearer_scheme = HTTPBearer(auto_error=False)

AUDIENCE = "authenticated"
GUEST_USER_ID = "guest"


@dataclass
class JwtConfig:
    secret: str
    algorithm: str = "HS256"
    audience: str = AUDIENCE
    expires_min: int = 60

    @staticmethod
    def from_settings(settings: Settings) -> "JwtConfig":
        return JwtConfig(secret=settings.supabase_jwt_secret)


class User(BaseModel):
    id: str
    email: Optional[str] = None
    role: str = "authenticated"


def create_access_token(user: User, cfg: JwtConfig) -> str:
    """Mint a token shaped like Supabase's; used by local tooling and tests."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "aud": cfg.audience,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=cfg.expires_min)).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.algorithm)


def decode_token(token: str, cfg: JwtConfig) -> User:
    try:
        data = jwt.decode(token, cfg.secret, algorithms=[cfg.algorithm], audience=cfg.audience)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    sub = data.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return User(id=str(sub), email=data.get("email"), role=str(data.get("role") or "authenticated"))


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Resolve the caller from the bearer token.

    In public mode, callers without a usable token get a shared guest user.
    """
    settings: Settings = request.app.state.settings
    if creds is None or not creds.scheme or creds.scheme.lower() != "bearer":
        if settings.public_mode:
            return User(id=GUEST_USER_ID, role="anon")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return decode_token(creds.credentials, JwtConfig.from_settings(settings))
    except HTTPException:
        if settings.public_mode:
            logger.info("Ignoring invalid token in public mode")
            return User(id=GUEST_USER_ID, role="anon")
        raise


def get_optional_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[User]:
    """Caller from the bearer token when one is sent; None for anonymous calls."""
    if creds is None or not creds.scheme or creds.scheme.lower() != "bearer":
        return None
    settings: Settings = request.app.state.settings
    try:
        return decode_token(creds.credentials, JwtConfig.from_settings(settings))
    except HTTPException:
        if settings.public_mode:
            return None
        raise
