"""
API Implementation for the Files Domain.
"""

from flask import Blueprint, Response, jsonify, request
from pydantic import ValidationError

from kilocam.api.errors import HANDLED_ERRORS, error_response, handle_validation_error
from kilocam.api.schemas.files import DeleteRequest, DownloadAllRequest, NavigateRequest, OpenRequest
from kilocam.core.paths import basename
from kilocam.services.files_service import (
    current_listing_handler,
    delete_handler,
    discard_downloads_handler,
    download_all_handler,
    navigate_handler,
    open_handler,
    up_handler,
)
from kilocam.web.routes import browser, device_client, downloader

files_bp = Blueprint("files_api", __name__)


def _current_state():
    state = browser.state
    return {"path": state.path, "can_go_up": state.can_go_up}


@files_bp.route("/api/files", methods=["GET"])
def list_current():
    try:
        return jsonify(current_listing_handler(browser).model_dump())
    except HANDLED_ERRORS as e:
        return error_response(e, _current_state())


@files_bp.route("/api/files/navigate", methods=["POST"])
def navigate():
    try:
        data = NavigateRequest(**(request.get_json(silent=True) or {}))
        return jsonify(navigate_handler(browser, data.path).model_dump())
    except ValidationError as e:
        return handle_validation_error(e)
    except HANDLED_ERRORS as e:
        return error_response(e, _current_state())


@files_bp.route("/api/files/open", methods=["POST"])
def open_directory():
    try:
        data = OpenRequest(**(request.get_json(silent=True) or {}))
        return jsonify(open_handler(browser, data.name).model_dump())
    except ValidationError as e:
        return handle_validation_error(e)
    except HANDLED_ERRORS as e:
        return error_response(e, _current_state())


@files_bp.route("/api/files/up", methods=["POST"])
def go_up():
    try:
        return jsonify(up_handler(browser).model_dump())
    except HANDLED_ERRORS as e:
        return error_response(e, _current_state())


@files_bp.route("/api/files/delete", methods=["POST"])
def delete_item():
    try:
        data = DeleteRequest(**(request.get_json(silent=True) or {}))
        return jsonify(delete_handler(browser, data.path, data.is_dir, data.confirmed).model_dump())
    except ValidationError as e:
        return handle_validation_error(e)
    except HANDLED_ERRORS as e:
        return error_response(e, _current_state())


@files_bp.route("/api/files/download_all", methods=["POST"])
def download_all():
    try:
        data = DownloadAllRequest(**(request.get_json(silent=True) or {}))
        return jsonify(download_all_handler(downloader, data.path, data.confirmed).model_dump())
    except ValidationError as e:
        return handle_validation_error(e)
    except HANDLED_ERRORS as e:
        return error_response(e)


@files_bp.route("/api/files/download_all", methods=["DELETE"])
def discard_downloads():
    return jsonify(discard_downloads_handler(downloader).model_dump())


@files_bp.route("/api/files/raw", methods=["GET"])
def raw_file():
    path = request.args.get("path")
    if not path:
        return jsonify({"status": "error", "error_code": "BAD_REQUEST", "message": "No path"}), 400
    try:
        res = device_client.fetch_file(path)
    except HANDLED_ERRORS as e:
        return error_response(e)

    response = Response(res.body, mimetype=res.content_type)
    if request.args.get("download"):
        response.headers["Content-Disposition"] = f'attachment; filename="{basename(path)}"'
    return response
