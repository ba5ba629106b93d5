"""
Base API Schemas.

Every JSON answer of the panel derives from ``BaseResponse``.
"""
from pydantic import BaseModel
from typing import Optional


class BaseResponse(BaseModel):
    """Base scheme for all API responses."""
    status: str = "ok"
    error_code: Optional[str] = None
    message: Optional[str] = None


class ConfirmRequest(BaseModel):
    confirmed: bool = False
