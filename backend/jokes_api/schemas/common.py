"""
Jokes API Backend — Shared Response Schemas
=============================================

What:  Error and health payloads shared by every route module.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients branch on `error` (stable category) and show `message`.

    Example:
        {
            "error": "forbidden",
            "message": "You can only update your own jokes",
            "details": {"joke_id": 42},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error category")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional context (client errors only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health; `database` reflects a live SELECT 1 probe."""
    status: str = Field(description="OK or ERROR")
    database: str = Field(description="connected or disconnected")
    timestamp: datetime = Field(description="Server time of the probe (UTC)")
