"""
Generic response schemas
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Dict
from datetime import datetime

from app.models.base import utcnow


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Envelope for every MemberlyException rendered over HTTP"""
    success: bool = False
    error: ErrorDetail
    timestamp: datetime = Field(default_factory=utcnow)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime = Field(default_factory=utcnow)
    checks: Optional[Dict[str, bool]] = None
    version: Optional[str] = None


class WebhookAck(BaseModel):
    received: bool = True
