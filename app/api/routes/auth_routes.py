"""
Authentication Routes

POST /auth/register - Register as junior or company
POST /auth/login - Login and get access + refresh tokens
POST /auth/refresh - Exchange a refresh token for a new pair
POST /auth/logout - Revoke the stored refresh token
GET /auth/me - Get current user info
POST /auth/google - Sign in with a Google access token
POST /auth/complete-signup - Choose a role for a new Google account
"""

from typing import Union

from fastapi import APIRouter, Depends

from app.api.deps import get_auth_service
from app.core.auth import get_current_actor
from app.core.policy import Actor
from app.schemas.schemas import (
    AuthResponse, CompleteOAuthSignupRequest, GoogleAuthRequest, LoginRequest,
    MessageResponse, OAuthPendingResponse, RefreshRequest, RegisterRequest,
    TokenPair, UserProfile
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """
    Register a new junior or company account.

    The body's `role` selects the variant and its required fields.
    """
    return service.register(request)


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """
    Login and receive access + refresh tokens.

    Include token in requests: Authorization: Bearer <access_token>
    """
    return service.login(request)


@router.post("/refresh", response_model=TokenPair)
async def refresh(request: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Rotate tokens. The old refresh token stops working."""
    return service.refresh(request.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    actor: Actor = Depends(get_current_actor),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(actor)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserProfile)
async def get_me(
    actor: Actor = Depends(get_current_actor),
    service: AuthService = Depends(get_auth_service)
):
    """Get current authenticated user's profile."""
    return service.me(actor)


@router.post("/google", response_model=Union[AuthResponse, OAuthPendingResponse])
async def google_sign_in(request: GoogleAuthRequest, service: AuthService = Depends(get_auth_service)):
    """
    Sign in with a Google OAuth access token.

    Known accounts get tokens. A new Google identity gets
    `needs_role_selection: true` and must call /auth/complete-signup.
    """
    return service.google_sign_in(request.access_token)


@router.post("/complete-signup", response_model=AuthResponse, status_code=201)
async def complete_signup(
    request: CompleteOAuthSignupRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Create the account for a Google identity with the chosen role."""
    return service.complete_oauth_signup(request)
