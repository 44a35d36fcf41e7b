"""
SnipKeep Backend — Auth Route Handlers
=======================================

What:  POST /register, POST /login, POST /logout and GET /me.
How:   Thin wrappers around AuthService. Login sets the HTTP-only session
       cookie; logout deletes it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response

from snipkeep.config import Settings
from snipkeep.dependencies import (
    get_auth_service,
    get_session_token,
    get_settings,
    require_login,
)
from snipkeep.schemas.auth import Credentials, CurrentUser, ErrorResponse, SuccessResponse
from snipkeep.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/register",
    response_model=SuccessResponse,
    responses={400: {"description": "Missing fields or username exists", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: Credentials,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.register(body.username, body.password)
    return SuccessResponse()


@router.post(
    "/login",
    response_model=SuccessResponse,
    responses={400: {"description": "Invalid login", "model": ErrorResponse}},
    summary="Log in and receive a session cookie",
)
async def login(
    body: Credentials,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> SuccessResponse:
    """
    Check credentials and open a session.

    Cookie:
        HTTP-only, SameSite=Lax, max-age = session TTL (1 hour by default).
        The session itself expires at the same moment server-side.
    """
    token, _ = await auth.login(body.username, body.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse, summary="End the current session")
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> SuccessResponse:
    await auth.logout(token)
    response.delete_cookie(key=settings.session_cookie_name, httponly=True, samesite="lax")
    return SuccessResponse()


@router.get(
    "/me",
    response_model=CurrentUser,
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Identity of the logged-in user",
)
async def me(user: CurrentUser = Depends(require_login)) -> CurrentUser:
    return user
