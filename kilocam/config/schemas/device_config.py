from pydantic import Field
from .base import BaseConfigModel


class DeviceConfig(BaseConfigModel):
    # Default soft-AP address of the camera
    host: str = "192.168.4.1"
    port: int = Field(default=80, ge=1, le=65535)
    timeout: float = Field(default=10.0, gt=0)
