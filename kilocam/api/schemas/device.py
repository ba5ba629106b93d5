"""
API Schemas for the Device Domain (status, settings, clock, control).
"""

from typing import Optional
from pydantic import BaseModel, Field
from kilocam.api.schemas.base import BaseResponse


class DeviceStatusSchema(BaseModel):
    name: str
    storage: str
    time: str
    interval: int
    light_pwm: int
    light_dur: int
    summary: str


class DeviceStatusResponse(BaseResponse):
    device: Optional[DeviceStatusSchema] = None


class TimeSyncBody(BaseModel):
    # Omitted values fall back to the panel host's clock
    epoch: Optional[int] = Field(None, ge=0)
    tz_offset: Optional[int] = Field(None, ge=-720, le=840)


class MessageResponse(BaseResponse):
    """Device acknowledgement, passed through verbatim in ``message``."""
    pass
