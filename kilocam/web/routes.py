from flask import Blueprint, Response, jsonify, render_template, request
import logging

from kilocam.config import config
from kilocam.core.actions import DeviceActionController
from kilocam.core.browser import DirectoryBrowser
from kilocam.core.device import KiloCamClient
from kilocam.core.downloads import BulkDownloader
from kilocam.core.events import event_manager
from kilocam.core.sync import SettingsSynchronizer, StatusPoller, TimeSynchronizer

log = logging.getLogger(__name__)

web = Blueprint("web", __name__)

# Shared services: one panel drives one camera for one operator
device_client = KiloCamClient(config.device)
status_poller = StatusPoller(device_client)
settings_sync = SettingsSynchronizer(device_client)
time_sync = TimeSynchronizer(device_client)
actions = DeviceActionController(device_client)
browser = DirectoryBrowser(device_client)
downloader = BulkDownloader(
    device_client,
    config.gallery.download_dir,
    interval=config.gallery.download_interval_ms / 1000,
    events=event_manager,
)


def cleanup_resources():
    """Drop pending downloads when the panel goes away."""
    pending = downloader.active
    if pending:
        log.info("Discarding %d pending download queue(s)", len(pending))
    downloader.discard_all()


@web.route("/api/stream")
def stream():
    remote_addr = request.remote_addr

    def generator():
        log.info("SSE connection from %s", remote_addr)
        q = event_manager.subscribe()
        try:
            while True:
                yield q.get()
        except GeneratorExit:
            log.info("SSE client disconnected: %s", remote_addr)
        finally:
            event_manager.unsubscribe(q)

    response = Response(generator(), mimetype="text/event-stream")
    response.headers["Cache-Control"] = "no-cache"
    response.headers["X-Accel-Buffering"] = "no"
    return response


@web.route("/api/heartbeat", methods=["GET"])
def heartbeat():
    return jsonify({"status": "alive"})


@web.route("/", methods=["GET"])
def index():
    return render_template("index.html", device_url=device_client.base_url)
