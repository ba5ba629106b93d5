"""
Paced "download all" for a device directory.

Files are fetched one after another with a fixed minimum gap between the
start of consecutive downloads, so the camera is never asked for a burst of
files at once.
"""

import logging
import os
import threading
import time
import uuid
from pathlib import Path
from typing import Callable, Dict, List, Optional

from kilocam.core.actions import Confirm, require_confirmation
from kilocam.core.device import DeviceError, KiloCamClient
from kilocam.core.events import EventManager
from kilocam.core.paths import join_path, normalize_path

log = logging.getLogger(__name__)


class NothingToDownload(Exception):
    error_code = "NOTHING_TO_DOWNLOAD"

    def __init__(self, path: str):
        self.path = path
        super().__init__("No files to download.")


def download_all_prompt(path: str) -> str:
    return f"Download all files in {path}? This will start multiple downloads."


class DownloadQueue:
    """Files of one "download all" action, consumed in listing order."""

    def __init__(self, source_dir: str, paths: List[str]):
        self.id = uuid.uuid4().hex[:8]
        self.source_dir = source_dir
        self.paths = list(paths)
        self.completed: List[str] = []
        self.failed: Dict[str, str] = {}
        self.fired_at: List[float] = []
        self._discarded = threading.Event()
        self._done = threading.Event()

    @property
    def discarded(self) -> bool:
        return self._discarded.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def remaining(self) -> int:
        return len(self.paths) - len(self.fired_at)

    def discard(self):
        """Drop every download that has not fired yet."""
        self._discarded.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.source_dir,
            "total": len(self.paths),
            "completed": len(self.completed),
            "failed": len(self.failed),
            "remaining": self.remaining,
            "discarded": self.discarded,
        }


class BulkDownloader:
    def __init__(
        self,
        client: KiloCamClient,
        download_dir: str,
        interval: float = 0.5,
        events: Optional[EventManager] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.download_dir = download_dir
        self.interval = interval
        self.events = events
        self._clock = clock
        self._lock = threading.Lock()
        self._active: List[DownloadQueue] = []

    @property
    def active(self) -> List[DownloadQueue]:
        with self._lock:
            return list(self._active)

    def prepare(self, dir_path: str, confirm: Optional[Confirm]) -> DownloadQueue:
        """Confirm, list ``dir_path`` and queue every file in it (subdirectories are skipped)."""
        dir_path = normalize_path(dir_path)
        require_confirmation(confirm, download_all_prompt(dir_path))

        entries = self.client.list_directory(dir_path)
        files = [join_path(dir_path, e.name) for e in entries if not e.is_dir]
        if not files:
            raise NothingToDownload(dir_path)
        return DownloadQueue(dir_path, files)

    def download_all(self, dir_path: str, confirm: Optional[Confirm], background: bool = True) -> DownloadQueue:
        queue = self.prepare(dir_path, confirm)
        log.info("Queued %d file(s) from %s", len(queue.paths), dir_path)

        with self._lock:
            self._active.append(queue)

        if background:
            threading.Thread(target=self.run, args=(queue,), daemon=True).start()
        else:
            self.run(queue)
        return queue

    def discard_all(self):
        for queue in self.active:
            queue.discard()

    def run(self, queue: DownloadQueue):
        last_fired = None
        try:
            for path in queue.paths:
                if last_fired is not None and not self._wait_until(queue, last_fired + self.interval):
                    break
                if queue.discarded:
                    break

                last_fired = self._clock()
                queue.fired_at.append(last_fired)
                self._fire(queue, path)
        finally:
            with self._lock:
                if queue in self._active:
                    self._active.remove(queue)
            queue._done.set()
            if queue.discarded:
                log.info("Download queue %s discarded with %d pending", queue.id, queue.remaining)
            self._publish("download_complete", queue.to_dict())

    def _wait_until(self, queue: DownloadQueue, due: float) -> bool:
        """Sleep until ``due``; False when the queue was discarded meanwhile."""
        while True:
            delay = due - self._clock()
            if delay <= 0:
                return True
            if queue._discarded.wait(delay):
                return False

    def _fire(self, queue: DownloadQueue, path: str):
        try:
            res = self.client.fetch_file(path)
            target = self.local_path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(res.body)
            queue.completed.append(path)
            log.info("Downloaded %s -> %s", path, target)
        except (DeviceError, OSError, ValueError) as e:
            # Downloads are independent: one failure does not stop the rest
            queue.failed[path] = str(e)
            log.warning("Download failed for %s: %s", path, e)

        self._publish("download_progress", dict(queue.to_dict(), file=path))

    def local_path(self, device_path: str) -> Path:
        root = Path(self.download_dir).resolve()
        target = (root / normalize_path(device_path).lstrip("/")).resolve()
        if os.path.commonpath([root, target]) != str(root):
            raise ValueError(f"Path escapes the download directory: {device_path}")
        return target

    def _publish(self, event_type: str, data: dict):
        if self.events is not None:
            self.events.publish(event_type, data)
