"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: str = Field(..., description="Error message describing what went wrong")


class GenerationErrorDetail(BaseModel):
    """Error detail returned when the generation service fails."""
    kind: str = Field(..., description="Failure kind", examples=["policy_blocked", "no_image_returned", "upstream_error"])
    message: str = Field(..., description="Human readable explanation")
    reason: Optional[str] = Field(None, description="Block or finish reason reported by the model")


class GenerationErrorResponse(BaseModel):
    """Error body of a failed generation or segmentation request."""
    detail: GenerationErrorDetail


class SuccessResponse(BaseModel):
    """Standard success response model."""
    ok: bool = Field(True, description="Indicates the operation was successful")
    message: Optional[str] = Field(None, description="Optional success message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["retoucher"])
    version: str = Field(..., description="API version", examples=["0.1.0"])


class ProxyRequest(BaseModel):
    """Body accepted by the generation proxy, forwarded upstream."""
    model: Optional[str] = Field(None, description="Upstream model name", examples=["gemini-2.5-flash-image-preview"])
    contents: Optional[Any] = Field(None, description="Content parts (text and inline images)")
    config: Optional[dict[str, Any]] = Field(None, description="Generation config; SDK-only keys are dropped")
