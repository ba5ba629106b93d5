"""
API Implementation for the Device Domain.
"""

from flask import Blueprint, Response, jsonify, request

from kilocam.api.errors import HANDLED_ERRORS, error_response
from kilocam.api.schemas.base import ConfirmRequest
from kilocam.core.events import event_manager
from kilocam.services.device_service import (
    capture_handler,
    control_handler,
    get_status_handler,
    save_settings_handler,
    status_schema,
    sync_time_handler,
)
from kilocam.web.routes import actions, settings_sync, status_poller, time_sync

device_bp = Blueprint("device_api", __name__)


@device_bp.route("/api/status", methods=["GET"])
def get_status():
    try:
        result = get_status_handler(status_poller)
    except HANDLED_ERRORS as e:
        # Previous values stay on the page
        last = status_schema(status_poller.snapshot)
        return error_response(e, {"device": last.model_dump() if last else None})

    event_manager.publish("status_update", result.device.model_dump())
    return jsonify(result.model_dump())


@device_bp.route("/api/settings", methods=["POST"])
def save_settings():
    try:
        return jsonify(save_settings_handler(settings_sync, request.get_json(silent=True) or {}).model_dump())
    except HANDLED_ERRORS as e:
        return error_response(e)


@device_bp.route("/api/time/sync", methods=["POST"])
def sync_time():
    try:
        return jsonify(sync_time_handler(time_sync, request.get_json(silent=True)).model_dump())
    except HANDLED_ERRORS as e:
        return error_response(e)


@device_bp.route("/api/control/<action>", methods=["POST"])
def control(action):
    try:
        body = ConfirmRequest(**(request.get_json(silent=True) or {}))
        result = control_handler(actions, action, body.confirmed)
        return jsonify(result.model_dump())
    except HANDLED_ERRORS as e:
        return error_response(e)


@device_bp.route("/api/capture", methods=["POST"])
def capture():
    try:
        photo = capture_handler(actions)
    except HANDLED_ERRORS as e:
        return error_response(e)
    return _photo_response(photo)


@device_bp.route("/api/capture/latest", methods=["GET"])
def latest_capture():
    photo = actions.last_photo
    if photo is None:
        return jsonify({"status": "error", "error_code": "NOT_FOUND", "message": "No photo captured yet"}), 404
    return _photo_response(photo)


def _photo_response(photo):
    response = Response(photo.content, mimetype=photo.content_type)
    response.headers["Cache-Control"] = "no-store"
    return response
