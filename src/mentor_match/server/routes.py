"""Account routes: register, login and profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger

from mentor_match.domain.models import User
from mentor_match.server.auth import create_token, get_current_user_id, hash_password, verify_password
from mentor_match.server.schemas import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
)
from mentor_match.server.user_store import EmailTakenError, UserStore

router = APIRouter(prefix="/api/users", tags=["users"])


def _users(request: Request) -> UserStore:
    return request.app.state.users


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(request: RegisterRequest, raw_request: Request):
    """Create an account and return it with a JWT."""
    users = _users(raw_request)
    try:
        user = users.create_user(request.name, request.email, hash_password(request.password))
    except EmailTakenError:
        raise HTTPException(status_code=400, detail="User already exists")

    logger.info("POST /api/users/register | user={}", user.id)
    return AuthResponse(user=user, token=create_token(user.id))


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, raw_request: Request):
    """Check credentials and return the account with a JWT."""
    credentials = _users(raw_request).get_credentials(request.email)
    if credentials is None:
        raise HTTPException(status_code=400, detail="User not found")

    user, password_hash = credentials
    if not verify_password(request.password, password_hash):
        logger.warning("POST /api/users/login | bad password for user={}", user.id)
        raise HTTPException(status_code=400, detail="Invalid credentials")

    logger.info("POST /api/users/login | user={}", user.id)
    return AuthResponse(user=user, token=create_token(user.id))


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    raw_request: Request,
    current_user_id: str | None = Depends(get_current_user_id),
):
    """Update the given profile fields; omitted fields are left unchanged."""
    target = request.user_id or current_user_id
    if not target:
        raise HTTPException(status_code=400, detail="userId is required")
    if current_user_id and target != current_user_id:
        raise HTTPException(status_code=403, detail="Cannot update another user's profile")

    fields = request.model_dump(mode="json", exclude={"user_id"}, exclude_none=True)
    user = _users(raw_request).update_profile(target, fields)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    logger.info("PUT /api/users/profile | user={} fields={}", target, sorted(fields))
    return ProfileUpdateResponse(message="Profile updated successfully", user=user)


@router.get("/profile/{user_id}", response_model=User)
async def get_profile(user_id: str, raw_request: Request):
    """Return a user's public profile."""
    user = _users(raw_request).get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
