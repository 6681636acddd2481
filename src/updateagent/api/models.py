"""Pydantic models for HTTP API responses."""

from typing import Optional
from pydantic import BaseModel, Field


class StateResponse(BaseModel):
    """GET /api/v1.0/state response.

    Example:
        {
            "code": 200,
            "msg": "success",
            "data": {"status": "installed"}
        }
    """

    code: int = Field(default=200, description="Application-level status code")
    msg: str = Field(default="success", description="Status message")
    data: dict = Field(..., description="Snapshot of the current state")


class SuccessResponse(BaseModel):
    """Success response for command endpoints."""

    code: int = Field(default=200, description="Application-level status code (200)")
    msg: str = Field(default="success", description="Success message")
    data: Optional[dict] = Field(None, description="Optional response data")

