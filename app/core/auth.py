"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- Access/refresh token issue and verification
- FastAPI dependencies for protected routes

Access and refresh tokens are signed with different secrets and carry a
"type" claim, so one can never be used in place of the other.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import get_settings
from app.core.errors import Unauthenticated
from app.core.policy import Actor
from app.schemas.schemas import TokenPair, UserRole

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing header is reported by us, not FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    role: Optional[UserRole]


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against hash. Accounts without a password never match."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict, secret: str, expires_delta: timedelta) -> str:
    settings = get_settings()
    to_encode = claims.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta, "iat": datetime.utcnow()})
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, token_type: str) -> Optional[dict]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != token_type or not payload.get("sub"):
        return None
    return payload


def create_access_token(subject_id: str, role: Optional[str]) -> str:
    settings = get_settings()
    claims = {"sub": str(subject_id), "role": role, "type": ACCESS_TOKEN_TYPE}
    return _encode(
        claims,
        settings.jwt_secret_key,
        timedelta(minutes=settings.access_token_expire_minutes)
    )


def create_refresh_token(subject_id: str) -> str:
    settings = get_settings()
    claims = {"sub": str(subject_id), "type": REFRESH_TOKEN_TYPE}
    return _encode(
        claims,
        settings.jwt_refresh_secret_key,
        timedelta(days=settings.refresh_token_expire_days)
    )


def issue_tokens(subject_id: str, role: Optional[str]) -> TokenPair:
    """Issue a fresh access + refresh token pair for a user."""
    if isinstance(role, UserRole):
        role = role.value
    return TokenPair(
        access_token=create_access_token(subject_id, role),
        refresh_token=create_refresh_token(subject_id)
    )


def verify_access_token(token: str) -> Optional[TokenClaims]:
    """Return the claims of a valid access token, None otherwise."""
    payload = _decode(token, get_settings().jwt_secret_key, ACCESS_TOKEN_TYPE)
    if payload is None:
        return None
    role = payload.get("role")
    try:
        role = UserRole(role) if role else None
    except ValueError:
        return None
    return TokenClaims(subject_id=payload["sub"], role=role)


def verify_refresh_token(token: str) -> Optional[str]:
    """Return the subject id of a valid refresh token, None otherwise."""
    payload = _decode(token, get_settings().jwt_refresh_secret_key, REFRESH_TOKEN_TYPE)
    if payload is None:
        return None
    return payload["sub"]


def actor_from_token(token: Optional[str]) -> Optional[Actor]:
    """Resolve a bearer token to an Actor. Tokens without a role are not actors."""
    if not token:
        return None
    claims = verify_access_token(token)
    if claims is None or claims.role is None:
        return None
    return Actor(subject_id=claims.subject_id, role=claims.role)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Actor:
    """
    FastAPI dependency - Get current authenticated actor.

    Usage:
        @router.get("/protected")
        async def route(actor: Actor = Depends(get_current_actor)):
            return actor.subject_id
    """
    if credentials is None:
        raise Unauthenticated("Not authenticated, no token")
    actor = actor_from_token(credentials.credentials)
    if actor is None:
        raise Unauthenticated("Not authenticated, token failed")
    return actor
