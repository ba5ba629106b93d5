from .base import BaseConfigModel
from .config_schema import ConfigSchema
from .server_config import ServerConfig
from .device_config import DeviceConfig
from .gallery_config import GalleryConfig
