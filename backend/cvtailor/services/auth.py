"""
Authentication: bearer/cookie token verification and user provisioning.

Two token kinds are accepted depending on settings.auth_provider:
- local: HS256 tokens signed with settings.secret_key (create_access_token)
- firebase: RS256 Firebase ID tokens checked against Google's key set
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..models.user import User

logger = logging.getLogger(__name__)
settings = get_settings()

FIREBASE_JWKS_URL = "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"

security = HTTPBearer(auto_error=False)
_jwk_client: Optional[jwt.PyJWKClient] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def _get_jwk_client() -> jwt.PyJWKClient:
    global _jwk_client
    if _jwk_client is None:
        _jwk_client = jwt.PyJWKClient(FIREBASE_JWKS_URL)
    return _jwk_client


def _verify_firebase_token(token: str) -> dict:
    signing_key = _get_jwk_client().get_signing_key_from_jwt(token)
    return jwt.decode(
        token,
        signing_key.key,
        algorithms=["RS256"],
        audience=settings.firebase_project_id,
        issuer=f"https://securetoken.google.com/{settings.firebase_project_id}",
    )


async def decode_token(token: str) -> dict:
    """Verified claims of a token; raises jwt.PyJWTError when invalid."""
    if settings.auth_provider == "firebase":
        # PyJWKClient fetches keys with blocking I/O
        return await asyncio.to_thread(_verify_firebase_token, token)
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def get_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Token from the auth cookie, else from the Authorization header."""
    cookie = request.cookies.get(settings.auth_cookie_name)
    if cookie:
        return cookie
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the authenticated user, creating the record with the monthly
    free credits on first sight.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = get_token(request, credentials)
    if not token:
        raise unauthorized

    try:
        claims = await decode_token(token)
    except jwt.PyJWTError as e:
        logger.info(f"Rejected token: {e}")
        raise unauthorized

    uid = claims.get("sub") or claims.get("user_id")
    if not uid:
        raise unauthorized

    result = await db.execute(select(User).where(User.id == uid))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            id=uid,
            email=claims.get("email"),
            display_name=claims.get("name"),
            credits_free=settings.monthly_free_credits,
            credits_purchased=0,
            last_free_reset=datetime.now(timezone.utc),
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info(f"Provisioned user {uid} with {settings.monthly_free_credits} free credits")

    return user
