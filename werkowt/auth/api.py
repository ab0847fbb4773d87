# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..config import settings
from .models import AuthResponse, LoginRequest, RegisterRequest, SessionResponse, UserPublic
from .security import (
    TOKEN_COOKIE_NAME,
    create_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    verify_password,
)
from .storage import create_user, get_profile, get_user_by_email, upsert_profile

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _user_public(row: Dict[str, Any], profile: Optional[Dict[str, Any]] = None) -> UserPublic:
    profile = profile if profile is not None else get_profile(row["id"])
    return UserPublic(
        id=row["id"],
        email=row["email"],
        username=(profile or {}).get("username"),
        created_at=row["created_at"],
    )


def _set_auth_cookie(resp: Response, token: str) -> None:
    max_age = int(settings.token_ttl_days) * 24 * 60 * 60
    resp.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=bool(settings.cookie_secure),
        samesite="lax",
        max_age=max_age,
        path="/",
    )


@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register(request: RegisterRequest, response: Response):
    if get_user_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = create_user(email=request.email, password_hash=hash_password(request.password))
    profile = upsert_profile(user)

    token = create_access_token(user_id=user["id"], email=user["email"])
    _set_auth_cookie(response, token)
    return AuthResponse(user=_user_public(user, profile), token=token)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(request: LoginRequest, response: Response):
    user = get_user_by_email(request.email)
    if not user or not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = upsert_profile(user)
    token = create_access_token(user_id=user["id"], email=user["email"])
    _set_auth_cookie(response, token)
    return AuthResponse(user=_user_public(user, profile), token=token)


@router.post("/logout", summary="Logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/session", response_model=SessionResponse, summary="Check the current session without failing")
def session(request: Request):
    user = get_optional_user(request)
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, user=_user_public(user))


@router.get("/me", response_model=UserPublic, summary="Get current user")
def me(user: dict = Depends(get_current_user)):
    return _user_public(user)
