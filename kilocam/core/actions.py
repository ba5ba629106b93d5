import base64
import logging
import threading
from typing import Callable, Optional

from pydantic import BaseModel

from kilocam.core.device import ControlAction, KiloCamClient

log = logging.getLogger(__name__)

# Receives the prompt text, returns True when the operator agrees.
Confirm = Callable[[str], bool]

START_PROMPT = "Start New Collection Run? This will create a new directory and start the loop."
SHUTDOWN_PROMPT = "Shutdown (Deep Sleep)? You will need to use the magnet to wake it."


class ConfirmationRequired(Exception):
    """Raised when a destructive action was not confirmed by the operator."""

    error_code = "CONFIRMATION_REQUIRED"

    def __init__(self, prompt: str):
        self.prompt = prompt
        super().__init__(prompt)


def require_confirmation(confirm: Optional[Confirm], prompt: str):
    if confirm is None or not confirm(prompt):
        log.info("Declined: %s", prompt)
        raise ConfirmationRequired(prompt)


class CapturedPhoto(BaseModel):
    content: bytes
    content_type: str = "image/jpeg"

    def as_data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


class DeviceActionController:
    """One-shot device commands. Start and shutdown need the operator's consent."""

    def __init__(self, client: KiloCamClient):
        self.client = client
        self._lock = threading.Lock()
        self._last_photo: Optional[CapturedPhoto] = None

    @property
    def last_photo(self) -> Optional[CapturedPhoto]:
        with self._lock:
            return self._last_photo

    def start_collection(self, confirm: Optional[Confirm]) -> str:
        require_confirmation(confirm, START_PROMPT)
        log.info("Starting collection run")
        return self.client.control(ControlAction.START)

    def shutdown(self, confirm: Optional[Confirm]) -> str:
        require_confirmation(confirm, SHUTDOWN_PROMPT)
        log.info("Sending device to deep sleep")
        return self.client.control(ControlAction.SHUTDOWN)

    def toggle_light(self) -> str:
        return self.client.control(ControlAction.LIGHT)

    def take_photo(self) -> CapturedPhoto:
        res = self.client.capture()
        content_type = res.content_type if res.content_type.startswith("image/") else "image/jpeg"
        photo = CapturedPhoto(content=res.body, content_type=content_type)
        with self._lock:
            self._last_photo = photo
        log.info("Captured test photo (%d bytes)", len(photo.content))
        return photo
