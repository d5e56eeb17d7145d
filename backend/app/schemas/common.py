"""
Inkpost Backend — Shared Response Schemas
===========================================

What:  Message, error and health payloads used across routers.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain confirmation, e.g. after registration or deletion."""

    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        message: Human-readable description for display to users
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "message": "Invalid email or password.",
            "error": "validation_error",
            "request_id": "3f9a1c2e"
        }
    """
    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(default=None, description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Media directory: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
