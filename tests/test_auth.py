"""
Token service and auth flow tests.
"""
import httpx
import pytest
from pydantic import TypeAdapter, ValidationError

from app.core.auth import (
    actor_from_token, hash_password, issue_tokens, verify_access_token,
    verify_password, verify_refresh_token
)
from app.core.errors import Conflict, Unauthenticated, UpstreamError
from app.schemas.schemas import (
    CompleteOAuthSignupRequest, LoginRequest, RegisterRequest, UserRole
)
from app.services.auth_service import AuthService

register_adapter = TypeAdapter(RegisterRequest)

JUNIOR_SIGNUP = {
    "role": "junior",
    "name": "Jane",
    "email": "Jane@Example.com",
    "password": "secret123",
    "experience_level": "beginner",
}


# ============================================================
# TOKENS
# ============================================================

def test_issue_and_verify_round_trip():
    tokens = issue_tokens("abc", UserRole.company)

    claims = verify_access_token(tokens.access_token)
    assert claims.subject_id == "abc"
    assert claims.role == UserRole.company
    assert verify_refresh_token(tokens.refresh_token) == "abc"


def test_token_classes_are_not_interchangeable():
    tokens = issue_tokens("abc", "junior")
    assert verify_access_token(tokens.refresh_token) is None
    assert verify_refresh_token(tokens.access_token) is None


def test_garbage_token_is_invalid():
    assert verify_access_token("not-a-jwt") is None
    assert actor_from_token("not-a-jwt") is None
    assert actor_from_token(None) is None


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)


# ============================================================
# REGISTRATION / LOGIN / REFRESH
# ============================================================

def test_register_validates_role_variant():
    with pytest.raises(ValidationError):
        register_adapter.validate_python(dict(JUNIOR_SIGNUP, experience_level=None))
    with pytest.raises(ValidationError):
        register_adapter.validate_python(dict(JUNIOR_SIGNUP, role="admin"))
    with pytest.raises(ValidationError):
        register_adapter.validate_python({**JUNIOR_SIGNUP, "role": "company"})


def test_register_login_refresh_logout(db):
    service = AuthService(db)

    registered = service.register(register_adapter.validate_python(JUNIOR_SIGNUP))
    assert registered["user"]["email"] == "jane@example.com"
    assert "password_hash" not in registered["user"]

    with pytest.raises(Conflict):
        service.register(register_adapter.validate_python(JUNIOR_SIGNUP))

    with pytest.raises(Unauthenticated):
        service.login(LoginRequest(email="jane@example.com", password="nope"))

    logged_in = service.login(LoginRequest(email="jane@example.com", password="secret123"))
    old_refresh = logged_in["tokens"].refresh_token

    rotated = service.refresh(old_refresh)
    assert verify_refresh_token(rotated.refresh_token) == registered["user"]["id"]

    actor = actor_from_token(rotated.access_token)
    service.logout(actor)
    with pytest.raises(Unauthenticated):
        service.refresh(rotated.refresh_token)


def test_stale_refresh_token_is_rejected(db):
    service = AuthService(db)
    first = service.register(register_adapter.validate_python(JUNIOR_SIGNUP))["tokens"]
    # a different token is stored now
    service.users.set_refresh_token(
        verify_refresh_token(first.refresh_token), "another-token"
    )

    with pytest.raises(Unauthenticated):
        service.refresh(first.refresh_token)


# ============================================================
# GOOGLE SIGN-IN
# ============================================================

def google_client(status_code=200, payload=None):
    payload = payload or {
        "sub": "google-123",
        "email": "Gina@Example.com",
        "name": "Gina",
        "picture": "https://example.com/gina.png",
    }

    def handler(request):
        assert request.headers["Authorization"] == "Bearer google-token"
        return httpx.Response(status_code, json=payload)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_new_google_identity_needs_role(db):
    service = AuthService(db, http_client=google_client())

    result = service.google_sign_in("google-token")

    assert result["needs_role_selection"] is True
    assert result["profile"].email == "gina@example.com"
    assert db["users"].count_documents({}) == 0


def test_complete_signup_assigns_role_once(db):
    service = AuthService(db, http_client=google_client())
    request = CompleteOAuthSignupRequest.model_validate({
        "access_token": "google-token",
        "details": {"role": "company", "company_name": "Gina Co"},
    })

    created = service.complete_oauth_signup(request)
    assert created["user"]["role"] == "company"
    assert created["user"]["profile_picture"] == "https://example.com/gina.png"

    # same role again just signs in
    again = service.complete_oauth_signup(request)
    assert again["user"]["id"] == created["user"]["id"]

    with pytest.raises(Conflict):
        service.complete_oauth_signup(CompleteOAuthSignupRequest.model_validate({
            "access_token": "google-token",
            "details": {"role": "junior", "experience_level": "advanced"},
        }))

    signed_in = service.google_sign_in("google-token")
    assert signed_in["user"]["id"] == created["user"]["id"]


def test_google_links_existing_email_account(db):
    AuthService(db).register(register_adapter.validate_python(
        dict(JUNIOR_SIGNUP, email="gina@example.com")
    ))
    service = AuthService(db, http_client=google_client())

    result = service.google_sign_in("google-token")

    assert result["user"]["email"] == "gina@example.com"
    assert db["users"].find_one({"email": "gina@example.com"})["google_id"] == "google-123"


def test_complete_signup_links_existing_email_account(db):
    AuthService(db).register(register_adapter.validate_python(
        dict(JUNIOR_SIGNUP, email="gina@example.com")
    ))
    service = AuthService(db, http_client=google_client())

    result = service.complete_oauth_signup(CompleteOAuthSignupRequest.model_validate({
        "access_token": "google-token",
        "details": {"role": "junior", "experience_level": "beginner"},
    }))

    assert result["user"]["email"] == "gina@example.com"
    assert db["users"].count_documents({}) == 1
    assert db["users"].find_one({"email": "gina@example.com"})["google_id"] == "google-123"


def test_rejected_google_token(db):
    service = AuthService(db, http_client=google_client(status_code=401, payload={"error": "invalid"}))
    with pytest.raises(Unauthenticated):
        service.google_sign_in("google-token")


def test_google_outage(db):
    service = AuthService(db, http_client=google_client(status_code=503, payload={}))
    with pytest.raises(UpstreamError):
        service.google_sign_in("google-token")
