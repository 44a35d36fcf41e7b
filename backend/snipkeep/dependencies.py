"""
SnipKeep Backend — FastAPI Dependencies
========================================

What:  Hands route handlers the services built by create_app(), and
       enforces login on protected routes.
How:   create_app() stores the settings and service instances on
       `app.state`; each getter reads them back from the current request.
"""

from typing import Optional

from fastapi import Depends, Request

from snipkeep.config import Settings
from snipkeep.schemas.auth import CurrentUser
from snipkeep.services.auth_service import AuthService
from snipkeep.services.snippet_service import SnippetService


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, Settings):
        raise RuntimeError("Application settings have not been initialised")
    return settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_snippet_service(request: Request) -> SnippetService:
    return request.app.state.snippet_service


def get_session_token(
    request: Request, settings: Settings = Depends(get_settings)
) -> Optional[str]:
    return request.cookies.get(settings.session_cookie_name)


async def require_login(
    token: Optional[str] = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """
    Resolve the session cookie to the logged-in user.

    Raises UnauthenticatedError (401) before the route body runs when the
    cookie is missing or its session has expired.
    """
    return await auth.resolve(token)
