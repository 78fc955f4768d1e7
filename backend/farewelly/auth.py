# backend/farewelly/auth.py
"""
Bearer-token verification.

Sign-in happens at the external identity provider; it issues HS256 JWTs
whose ``sub`` claim is the profile e-mail address. This module only
verifies those tokens (and mints them for tooling and tests).
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings

logger = logging.getLogger(__name__)

bearer_token = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def _signing_key() -> str:
    return settings.secret_key.get_secret_value()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` with an ``exp`` claim; defaults to the configured lifetime."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, _signing_key(), algorithm=settings.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    return cast(
        Dict[str, Any],
        jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.algorithm],
            options={"verify_aud": False},
        ),
    )


def get_current_user_email(token: Optional[str] = Depends(bearer_token)) -> str:
    """Resolve the caller's e-mail from the bearer token or fail with 401."""
    if not token:
        raise _unauthorized("Not authenticated")
    try:
        claims = decode_access_token(token)
    except PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise _unauthorized("Could not validate credentials") from exc

    subject = claims.get("sub")
    if not subject:
        raise _unauthorized("Could not validate credentials")
    return str(subject)
