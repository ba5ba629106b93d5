import io
import json
import urllib.error
import urllib.parse
from unittest.mock import patch

import pytest

from kilocam.config.schemas import DeviceConfig
from kilocam.core.device import KiloCamClient

JPEG = b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"


class FakeResponse:
    def __init__(self, status, body, content_type):
        self.status = status
        self._body = body
        self.headers = {"Content-Type": content_type}

    def getcode(self):
        return self.status

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeDevice:
    """In-memory camera answering the device API. Directories are dicts, files are bytes."""

    def __init__(self):
        self.tree = {
            "config.txt": b"interval=300",
            "2024-01-01": {
                "img_000.jpg": JPEG,
                "images": {"img_001.jpg": JPEG, "img_002.jpg": JPEG},
                "log.txt": b"boot ok",
            },
            "notes.txt": b"hello",
            "2024-01-02": {"empty": {}},
        }
        self.status = {
            "name": "camOne",
            "storage": "12.3MB / 3.7GB",
            "time": "2024-06-01 12:00:00",
            "interval": 300,
            "lightPwm": 1500,
            "lightDur": 1000,
        }
        self.requests = []
        self.fail = {}
        self.unreachable = False
        self.partial_delete = False
        # path -> callable run while that /list request is in flight
        self.on_list = {}
        self.saved_config = None
        self.clock = None

    def node(self, path):
        node = self.tree
        for segment in [s for s in path.split("/") if s]:
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    def endpoints(self):
        return [endpoint for endpoint, _ in self.requests]

    def urlopen(self, req, timeout=None):
        url = req.full_url
        parts = urllib.parse.urlsplit(url)
        endpoint = urllib.parse.unquote(parts.path)
        params = dict(urllib.parse.parse_qsl(parts.query))
        self.requests.append((endpoint, params))

        if self.unreachable:
            raise urllib.error.URLError("Connection refused")
        if endpoint in self.fail:
            code, text = self.fail[endpoint]
            return self._error(url, code, text)

        handler = {
            "/status": self._status,
            "/set-time": self._set_time,
            "/control": self._control,
            "/capture": self._capture,
            "/save-config": self._save_config,
            "/list": self._list,
            "/delete": self._delete,
        }.get(endpoint)
        if handler is None:
            return self._file(url, endpoint)
        return handler(url, params)

    def _error(self, url, code, text):
        raise urllib.error.HTTPError(url, code, text, {}, io.BytesIO(text.encode("utf-8")))

    def _text(self, text):
        return FakeResponse(200, text.encode("utf-8"), "text/plain")

    def _status(self, url, params):
        return FakeResponse(200, json.dumps(self.status).encode("utf-8"), "application/json")

    def _set_time(self, url, params):
        self.clock = (int(params["time"]), int(params["tz"]))
        return self._text("Time Set")

    def _control(self, url, params):
        replies = {"start": "Collection Started", "shutdown": "Shutting down", "light": "Light ON"}
        if params.get("action") not in replies:
            return self._error(url, 400, "Unknown action")
        return self._text(replies[params["action"]])

    def _capture(self, url, params):
        return FakeResponse(200, JPEG, "image/jpeg")

    def _save_config(self, url, params):
        self.saved_config = params
        return self._text("Settings Saved")

    def _list(self, url, params):
        path = params.get("path", "/")
        hook = self.on_list.pop(path, None)
        if hook is not None:
            hook()
        node = self.node(path)
        if not isinstance(node, dict):
            return self._error(url, 404, "Dir not found")
        entries = [
            {"name": name, "size": 0 if isinstance(child, dict) else len(child), "isDir": isinstance(child, dict)}
            for name, child in node.items()
        ]
        return FakeResponse(200, json.dumps(entries).encode("utf-8"), "application/json")

    def _delete(self, url, params):
        path = params.get("path", "")
        segments = [s for s in path.split("/") if s]
        parent = self.node("/" + "/".join(segments[:-1]))
        if not segments or not isinstance(parent, dict) or segments[-1] not in parent:
            return self._error(url, 404, "Not found")

        target = parent[segments[-1]]
        if self.partial_delete and isinstance(target, dict) and target:
            target.pop(next(iter(target)))
            return self._error(url, 500, "Delete failed")

        del parent[segments[-1]]
        return self._text("Deleted")

    def _file(self, url, path):
        node = self.node(path)
        if not isinstance(node, bytes):
            return self._error(url, 404, "Not found")
        content_type = "image/jpeg" if path.endswith(".jpg") else "application/octet-stream"
        return FakeResponse(200, node, content_type)


@pytest.fixture
def device():
    fake = FakeDevice()
    with patch("kilocam.core.device.urllib.request.urlopen", side_effect=fake.urlopen):
        yield fake


@pytest.fixture
def client(device):
    return KiloCamClient(DeviceConfig())
