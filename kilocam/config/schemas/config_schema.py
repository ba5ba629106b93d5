from pydantic import Field
from .base import BaseConfigModel
from .server_config import ServerConfig
from .device_config import DeviceConfig
from .gallery_config import GalleryConfig


class ConfigSchema(BaseConfigModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    gallery: GalleryConfig = Field(default_factory=GalleryConfig)
