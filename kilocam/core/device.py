import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kilocam.config.schemas import DeviceConfig
from kilocam.core.paths import SEP, normalize_path

log = logging.getLogger(__name__)


# --- Errors ---


class DeviceError(Exception):
    """Base class for failures talking to the camera."""

    error_code = "DEVICE_ERROR"


class DeviceUnavailableError(DeviceError):
    """The device could not be reached (network down, refused, timed out)."""

    error_code = "DEVICE_UNAVAILABLE"

    def __init__(self, endpoint: str, reason: Any):
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"Device unreachable ({endpoint}): {reason}")


class DeviceRequestError(DeviceError):
    """The device answered, but reported a failure or sent something unusable."""

    def __init__(self, endpoint: str, status: Optional[int], text: str):
        self.endpoint = endpoint
        self.status = status
        self.text = text
        super().__init__(text or f"{endpoint} failed with status {status}")


# --- Wire models ---


class DeviceStatus(BaseModel):
    """Snapshot returned by ``/status``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    storage_summary: str = Field(alias="storage")
    current_time: str = Field(alias="time")
    interval_seconds: int = Field(alias="interval")
    light_pwm: int = Field(alias="lightPwm")
    light_warmup_ms: int = Field(alias="lightDur")


class DirectoryEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int = 0
    is_dir: bool = Field(default=False, alias="isDir")

    @field_validator("name")
    @classmethod
    def _single_segment(cls, v: str) -> str:
        if not v or SEP in v:
            raise ValueError(f"entry name must be a single path segment: {v!r}")
        return v


class SettingsUpdate(BaseModel):
    """Settings pushed with ``/save-config``; ranges are checked before sending."""

    interval: int = Field(ge=1)
    light_pwm: int = Field(ge=1000, le=2000)
    light_dur: int = Field(ge=0, le=60000)
    name: Optional[str] = Field(default=None, min_length=1, max_length=32)

    def to_query(self) -> Dict[str, Any]:
        params = {}
        if self.name is not None:
            params["name"] = self.name
        params.update(interval=self.interval, lightPwm=self.light_pwm, lightDur=self.light_dur)
        return params


class TimeSyncRequest(BaseModel):
    epoch: int = Field(ge=0)
    # Minutes east of UTC (UTC-12 .. UTC+14)
    tz_offset: int = Field(ge=-720, le=840)


class ControlAction(str, Enum):
    START = "start"
    SHUTDOWN = "shutdown"
    LIGHT = "light"


class DeviceResponse(BaseModel):
    status: int
    content_type: str = "application/octet-stream"
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


# --- Client ---


class KiloCamClient:
    """Typed wrapper around the camera's HTTP API. Every call is one GET request."""

    def __init__(self, config: DeviceConfig):
        self.config = config

    @property
    def base_url(self) -> str:
        host = self.config.host
        port = self.config.port
        if port == 80:
            return f"http://{host}"
        return f"http://{host}:{port}"

    def _url(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        url = f"{self.base_url}{urllib.parse.quote(endpoint)}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> DeviceResponse:
        url = self._url(endpoint, params)
        req = urllib.request.Request(url, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as res:
                return DeviceResponse(
                    status=res.getcode(),
                    content_type=res.headers.get("Content-Type", "application/octet-stream"),
                    body=res.read(),
                )
        except urllib.error.HTTPError as e:
            text = e.read().decode("utf-8", errors="replace") if e.fp else ""
            log.warning("%s returned %s: %s", endpoint, e.code, text)
            raise DeviceRequestError(endpoint, e.code, text) from e
        except (urllib.error.URLError, OSError) as e:
            log.warning("%s unreachable: %s", endpoint, e)
            raise DeviceUnavailableError(endpoint, getattr(e, "reason", e)) from e

    def _get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        res = self._get(endpoint, params)
        try:
            return json.loads(res.body)
        except ValueError as e:
            raise DeviceRequestError(endpoint, res.status, f"Invalid JSON from device: {e}") from e

    def is_available(self) -> bool:
        try:
            self._get("/status")
            return True
        except DeviceError:
            return False

    def get_status(self) -> DeviceStatus:
        raw = self._get_json("/status")
        try:
            return DeviceStatus.model_validate(raw)
        except ValidationError as e:
            raise DeviceRequestError("/status", 200, f"Malformed status: {e}") from e

    def set_time(self, request: TimeSyncRequest) -> str:
        return self._get("/set-time", {"time": request.epoch, "tz": request.tz_offset}).text

    def control(self, action: ControlAction) -> str:
        return self._get("/control", {"action": ControlAction(action).value}).text

    def capture(self) -> DeviceResponse:
        return self._get("/capture")

    def save_config(self, update: SettingsUpdate) -> str:
        return self._get("/save-config", update.to_query()).text

    def list_directory(self, path: str) -> List[DirectoryEntry]:
        raw = self._get_json("/list", {"path": path})
        if not isinstance(raw, list):
            raise DeviceRequestError("/list", 200, "Listing is not a JSON array")
        try:
            return [DirectoryEntry.model_validate(item) for item in raw]
        except ValidationError as e:
            raise DeviceRequestError("/list", 200, f"Malformed listing: {e}") from e

    def delete(self, path: str) -> str:
        """Delete a file, or a directory and everything below it."""
        return self._get("/delete", {"path": path}).text

    def fetch_file(self, path: str) -> DeviceResponse:
        # Files are served from the web root at their storage path
        return self._get(normalize_path(path))
