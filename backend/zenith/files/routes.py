from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from ..common.acl import current_user
from ..common.errors import ValidationError
from ..common.params import parse_optional_id, require_string
from . import service


files_bp = Blueprint("files", __name__, url_prefix="/files")


@files_bp.post("/upload")
@jwt_required()
def upload_file():
    user = current_user()

    upload = request.files.get("file")
    if upload is None:
        raise ValidationError("No file uploaded.", code="INVALID_FILE")

    folder_id = parse_optional_id(request.form.get("folder_id"), "folder_id")
    record = service.create_file(
        user,
        upload,
        folder_id,
        store=current_app.extensions["object_store"],
        notifier=current_app.extensions["connection_registry"],
        max_size=current_app.config["MAX_UPLOAD_SIZE_BYTES"],
    )

    return jsonify({"message": "File uploaded successfully", "file": record.to_dict()}), 201


@files_bp.patch("/<string:file_id>")
@jwt_required()
def rename_file(file_id: str):
    user = current_user()

    payload = request.get_json(silent=True) or {}
    name = require_string(payload, "name", "File name is required.")
    record = service.rename_file(user, file_id, name)

    return jsonify({"message": "File renamed successfully", "file": record.to_dict()})


@files_bp.delete("/<string:file_id>")
@jwt_required()
def trash_file(file_id: str):
    user = current_user()
    service.trash_file(user, file_id)
    return jsonify({"message": "File moved to trash."})


@files_bp.patch("/<string:file_id>/restore")
@jwt_required()
def restore_file(file_id: str):
    user = current_user()
    record = service.restore_file(user, file_id)
    return jsonify({"message": "File restored successfully", "file": record.to_dict()})


@files_bp.delete("/<string:file_id>/permanent")
@jwt_required()
def purge_file(file_id: str):
    user = current_user()
    service.purge_file(user, file_id, store=current_app.extensions["object_store"])
    return jsonify({"message": "File permanently deleted."})
