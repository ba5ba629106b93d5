"""
Status, settings and clock synchronisation with the camera.

The three are deliberately independent: saving settings or setting the
clock never triggers a status refresh.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

from kilocam.core.device import (
    DeviceError,
    DeviceStatus,
    KiloCamClient,
    SettingsUpdate,
    TimeSyncRequest,
)

log = logging.getLogger(__name__)


def local_time_sync(now: Optional[datetime] = None) -> TimeSyncRequest:
    """
    Epoch seconds and UTC offset (minutes east of UTC) of the local wall clock.

    A naive ``now`` is interpreted in the host's local zone.
    """
    if now is None:
        now = datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()

    offset = now.utcoffset()
    tz_minutes = int(offset.total_seconds() // 60) if offset is not None else 0
    return TimeSyncRequest(epoch=int(now.timestamp()), tz_offset=tz_minutes)


class StatusPoller:
    """Fetches ``/status`` on demand and keeps the last good snapshot."""

    def __init__(self, client: KiloCamClient):
        self.client = client
        self._lock = threading.Lock()
        self._snapshot: Optional[DeviceStatus] = None

    @property
    def snapshot(self) -> Optional[DeviceStatus]:
        with self._lock:
            return self._snapshot

    def refresh(self) -> DeviceStatus:
        """Fetch a new snapshot. On failure the previous one is kept and the error raised."""
        try:
            status = self.client.get_status()
        except DeviceError as e:
            log.warning("Status refresh failed, keeping previous snapshot: %s", e)
            raise

        with self._lock:
            self._snapshot = status
        return status


class SettingsSynchronizer:
    def __init__(self, client: KiloCamClient):
        self.client = client

    def save(self, update: SettingsUpdate) -> str:
        """Push all settings in one request; returns the device's reply verbatim."""
        log.info("Saving settings: %s", update.model_dump(exclude_none=True))
        return self.client.save_config(update)

    def save_from_form(self, form: Dict[str, Any]) -> str:
        return self.save(SettingsUpdate.model_validate(form))


class TimeSynchronizer:
    def __init__(self, client: KiloCamClient):
        self.client = client

    def sync(self, request: Optional[TimeSyncRequest] = None) -> str:
        if request is None:
            request = local_time_sync()
        log.info("Setting device clock to %s (tz %+d min)", request.epoch, request.tz_offset)
        return self.client.set_time(request)
