"""
Auth Service

Flows:
- register / login with email + password
- refresh (rotates the stored refresh token) / logout (clears it)
- Google sign-in with a Google OAuth access token
- complete_oauth_signup: pick junior or company for a new Google identity

The refresh token last handed out is stored on the user; any other refresh
token for that user is rejected.

A Google identity that is not yet a user has no role. Nothing is stored for
it until the role is chosen, so every stored user is a valid profile variant.
"""

import logging
from typing import Optional

import httpx
from pymongo.database import Database

from app.core.auth import hash_password, issue_tokens, verify_password, verify_refresh_token
from app.core.config import get_settings
from app.core.errors import Conflict, NotFound, Unauthenticated, UpstreamError, ValidationFailed
from app.core.policy import Actor
from app.schemas.schemas import (
    CompleteOAuthSignupRequest, GoogleProfile, LoginRequest, RegisterRequest, TokenPair
)
from app.services.mongo_service import UserStore
from app.services.user_service import validate_profile

logger = logging.getLogger(__name__)

GOOGLE_TIMEOUT_SECONDS = 10.0


def _new_user_doc(**fields) -> dict:
    doc = {
        "bio": "",
        "skills": [],
        "profile_picture": "",
        "projects": [],
        "applications": []
    }
    doc.update(fields)
    return doc


class AuthService:
    def __init__(self, db: Database = None, http_client: Optional[httpx.Client] = None):
        self.users = UserStore(db)
        self.http_client = http_client

    def _issue(self, user: dict) -> dict:
        tokens: TokenPair = issue_tokens(user["id"], user["role"])
        self.users.set_refresh_token(user["id"], tokens.refresh_token)
        return {"user": user, "tokens": tokens}

    # ============================================================
    # PASSWORD AUTH
    # ============================================================

    def register(self, data: RegisterRequest) -> dict:
        email = data.email.lower()
        if self.users.get_by_email(email):
            raise Conflict("User already exists with this email")

        fields = data.model_dump(mode="json", exclude={"password"})
        fields["email"] = email
        doc = _new_user_doc(**fields)
        doc["password_hash"] = hash_password(data.password)

        user = self.users.insert(doc)
        logger.info("Registered %s user %s", user["role"], user["id"])
        return self._issue(user)

    def login(self, data: LoginRequest) -> dict:
        record = self.users.get_by_email(data.email, with_secrets=True)
        if not record or not verify_password(data.password, record.get("password_hash")):
            raise Unauthenticated("Invalid credentials", reason="invalid_credentials")

        user = self.users.get_by_id(record["id"])
        return self._issue(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        user_id = verify_refresh_token(refresh_token)
        if user_id is None:
            raise Unauthenticated("Invalid refresh token")
        if self.users.get_refresh_token(user_id) != refresh_token:
            raise Unauthenticated("Refresh token has been revoked")

        user = self.users.get_by_id(user_id)
        if not user:
            raise Unauthenticated("Invalid refresh token")
        return self._issue(user)["tokens"]

    def logout(self, actor: Actor) -> None:
        self.users.set_refresh_token(actor.subject_id, None)

    def me(self, actor: Actor) -> dict:
        user = self.users.get_by_id(actor.subject_id)
        if not user:
            raise NotFound("User not found")
        return user

    # ============================================================
    # GOOGLE SIGN-IN
    # ============================================================

    def fetch_google_profile(self, access_token: str) -> GoogleProfile:
        """Verify a Google access token by asking Google who it belongs to."""
        settings = get_settings()
        client = self.http_client or httpx.Client(timeout=GOOGLE_TIMEOUT_SECONDS)
        try:
            response = client.get(
                settings.google_userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError:
            logger.warning("Google userinfo request failed", exc_info=True)
            raise UpstreamError("Google sign-in is unavailable", reason="oauth_unavailable")
        finally:
            if self.http_client is None:
                client.close()

        if response.status_code in (400, 401, 403):
            raise Unauthenticated("Invalid Google access token")
        if response.status_code != 200:
            raise UpstreamError("Google sign-in is unavailable", reason="oauth_unavailable")

        info = response.json()
        if not info.get("sub") or not info.get("email"):
            raise ValidationFailed("Google account has no email address")

        return GoogleProfile(
            google_id=info["sub"],
            email=info["email"].lower(),
            name=info.get("name") or info["email"].split("@")[0],
            picture=info.get("picture")
        )

    def _find_google_user(self, profile: GoogleProfile) -> Optional[dict]:
        return self.users.get_by_google_id(profile.google_id) or self.users.get_by_email(profile.email)

    def google_sign_in(self, access_token: str) -> dict:
        """
        Existing user (by Google id or email): link the Google id and sign in.
        New identity: return the profile and ask for a role.
        """
        profile = self.fetch_google_profile(access_token)
        user = self._find_google_user(profile)

        if user is None:
            return {"needs_role_selection": True, "profile": profile}

        if user.get("google_id") != profile.google_id:
            user = self.users.update_fields(user["id"], {"google_id": profile.google_id})
        return self._issue(user)

    def complete_oauth_signup(self, data: CompleteOAuthSignupRequest) -> dict:
        """Assign a role to a Google identity. Only ever once."""
        profile = self.fetch_google_profile(data.access_token)
        role = data.details.role

        existing = self._find_google_user(profile)
        if existing is not None:
            if existing["role"] != role:
                raise Conflict("A role has already been assigned to this account")
            if existing.get("google_id") != profile.google_id:
                existing = self.users.update_fields(existing["id"], {"google_id": profile.google_id})
            return self._issue(existing)

        doc = _new_user_doc(
            name=profile.name,
            email=profile.email,
            google_id=profile.google_id,
            profile_picture=profile.picture or "",
            **data.details.model_dump(mode="json")
        )
        validate_profile(dict(doc, id="new"))

        user = self.users.insert(doc)
        logger.info("Completed Google signup for %s user %s", role, user["id"])
        return self._issue(user)
