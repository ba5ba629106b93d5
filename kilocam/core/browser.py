"""
Directory browser over the camera's flat ``/list`` endpoint.

Navigation state is an explicit ``NavigationState`` value. Every load bumps
its generation, so a listing that arrives after the operator moved on is
recognised by comparing the generation captured at request time with the
current one, and is discarded instead of rendered.
"""

import logging
import threading
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from kilocam.core.actions import Confirm, require_confirmation
from kilocam.core.device import DeviceError, DeviceRequestError, DirectoryEntry, KiloCamClient
from kilocam.core.formatting import sort_entries
from kilocam.core.paths import SEP, is_root, join_path, normalize_path, parent_path

log = logging.getLogger(__name__)


class DeleteFailedError(DeviceRequestError):
    error_code = "DELETE_FAILED"

    def __init__(self, path: str, status: Optional[int], detail: str = ""):
        self.path = path
        text = f"Delete failed: {path}"
        if detail:
            text += f" ({detail})"
        super().__init__("/delete", status, text)


class PartialDeleteError(DeleteFailedError):
    """A recursive delete failed after removing part of the directory."""

    error_code = "DELETE_PARTIAL"

    def __init__(self, path: str, status: Optional[int], removed: int, remaining: int):
        self.removed = removed
        self.remaining = remaining
        super().__init__(path, status, f"partially removed, {removed} removed, {remaining} remaining")


class NavigationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = SEP
    generation: int = 0

    @property
    def can_go_up(self) -> bool:
        return not is_root(self.path)


class Listing(BaseModel):
    path: str
    entries: List[DirectoryEntry]
    # True when the listing arrived after navigation moved elsewhere
    stale: bool = False

    def full_path(self, entry: DirectoryEntry) -> str:
        return join_path(self.path, entry.name)


def delete_prompt(path: str, is_dir: bool) -> str:
    kind = "Directory (Recursive!)" if is_dir else "File"
    return f"Delete {kind}: {path}?"


class DirectoryBrowser:
    def __init__(self, client: KiloCamClient):
        self.client = client
        self._lock = threading.Lock()
        self._state = NavigationState()
        self._listing = Listing(path=SEP, entries=[])

    @property
    def state(self) -> NavigationState:
        with self._lock:
            return self._state

    @property
    def listing(self) -> Listing:
        """Rows currently displayed (possibly from an earlier path after a failed load)."""
        with self._lock:
            return self._listing

    def reset(self):
        with self._lock:
            self._state = NavigationState(generation=self._state.generation + 1)
            self._listing = Listing(path=SEP, entries=[])

    def load(self, path: str) -> Listing:
        """
        Navigate to ``path`` and fetch its listing.

        On a device failure the path still changes but the displayed rows are
        kept and the error propagates, unless navigation has moved on, in
        which case a stale listing is returned instead.
        """
        path = normalize_path(path)
        with self._lock:
            issued = NavigationState(path=path, generation=self._state.generation + 1)
            self._state = issued

        try:
            entries = self.client.list_directory(path)
        except DeviceError as e:
            with self._lock:
                superseded = self._state.generation != issued.generation
            if not superseded:
                raise
            log.info("Ignoring failed listing for %s (now at %s): %s", path, self.state.path, e)
            return Listing(path=path, entries=[], stale=True)

        listing = Listing(path=path, entries=sort_entries(entries))

        with self._lock:
            if self._state.generation != issued.generation:
                log.info(
                    "Discarding stale listing for %s (now at %s)", path, self._state.path
                )
                return listing.model_copy(update={"stale": True})
            self._listing = listing
        return listing

    def refresh(self) -> Listing:
        return self.load(self.state.path)

    def open(self, name: str) -> Listing:
        """Open a directory row of the listing currently displayed."""
        if not name or SEP in name:
            raise ValueError(f"Not a directory name: {name!r}")
        return self.load(join_path(self.listing.path, name))

    def up(self) -> Listing:
        return self.load(parent_path(self.state.path))

    def delete(self, path: str, is_dir: bool, confirm: Optional[Confirm]) -> Listing:
        """
        Delete a file, or a directory recursively, then re-list the current directory.

        Raises ``DeleteFailedError`` (nothing re-listed) or ``PartialDeleteError``
        when a directory was only partly removed (current directory re-listed).
        """
        path = normalize_path(path)
        if is_root(path):
            raise ValueError("Refusing to delete the storage root")
        require_confirmation(confirm, delete_prompt(path, is_dir))

        before = self._child_count(path) if is_dir else None

        try:
            self.client.delete(path)
        except DeviceRequestError as e:
            if before:
                after = self._child_count(path)
                if after is not None and after < before:
                    log.warning("Partial delete of %s: %d of %d left", path, after, before)
                    try:
                        self.refresh()
                    except DeviceError as relist_err:
                        log.warning("Re-list after partial delete failed: %s", relist_err)
                    raise PartialDeleteError(path, e.status, before - after, after) from e
            log.warning("Delete failed for %s: %s", path, e)
            raise DeleteFailedError(path, e.status, e.text) from e

        log.info("Deleted %s%s", path, " (recursive)" if is_dir else "")
        try:
            return self.refresh()
        except DeviceError as e:
            log.warning("Re-list after delete failed: %s", e)
            return self.listing

    def _child_count(self, path: str) -> Optional[int]:
        try:
            return len(self.client.list_directory(path))
        except DeviceError:
            return None
