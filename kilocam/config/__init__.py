from .manager import ConfigManager, config
from .schemas import ConfigSchema, DeviceConfig, GalleryConfig, ServerConfig
