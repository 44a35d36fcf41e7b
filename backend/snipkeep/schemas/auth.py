"""
SnipKeep Backend — Auth and Shared Response Schemas
====================================================

What:  Request bodies for register/login plus the small response shapes
       shared by every router (success flag, error body, health).
"""

from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """
    Body of POST /register and POST /login.

    Both fields are optional here so that a missing field reaches
    AuthService and is reported as "Missing fields." with a 400.
    """
    username: Optional[str] = None
    password: Optional[str] = None


class CurrentUser(BaseModel):
    """The identity bound to a live session. Never carries the password hash."""
    id: str
    username: str


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """
    What:  Error body returned by every exception handler.

    Example:
        {"error": "Invalid title", "request_id": "a1b2c3d4"}
    """
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    storage: str = Field(description="Data directory status: writable, unavailable")
    active_sessions: int = Field(description="Unexpired sessions held by this process")
    uptime_seconds: float = Field(description="Seconds since service started")
