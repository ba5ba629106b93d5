from pydantic import Field
from .base import BaseConfigModel


class GalleryConfig(BaseConfigModel):
    download_interval_ms: int = Field(default=500, ge=0)
    download_dir: str = "downloads"
