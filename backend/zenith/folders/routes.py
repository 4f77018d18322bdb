from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from ..common.acl import current_user
from ..common.params import parse_optional_id, require_string
from . import service


folders_bp = Blueprint("folders", __name__, url_prefix="/folders")


@folders_bp.post("")
@jwt_required()
def create_folder():
    user = current_user()

    payload = request.get_json(silent=True) or {}
    name = require_string(payload, "name", "Folder name is required.")
    parent_id = parse_optional_id(payload.get("parent_id"), "parent_id")
    folder = service.create_folder(user, name, parent_id)

    return jsonify({"message": "Folder created successfully", "folder": folder.to_dict()}), 201


@folders_bp.patch("/<string:folder_id>")
@jwt_required()
def rename_folder(folder_id: str):
    user = current_user()

    payload = request.get_json(silent=True) or {}
    name = require_string(payload, "name", "Folder name is required.")
    folder = service.rename_folder(user, folder_id, name)

    return jsonify({"message": "Folder renamed successfully", "folder": folder.to_dict()})


@folders_bp.delete("/<string:folder_id>")
@jwt_required()
def trash_folder(folder_id: str):
    user = current_user()
    service.trash_folder(user, folder_id)
    return jsonify({"message": "Folder moved to trash."})


@folders_bp.patch("/<string:folder_id>/restore")
@jwt_required()
def restore_folder(folder_id: str):
    user = current_user()
    folder = service.restore_folder(user, folder_id)
    return jsonify({"message": "Folder restored successfully", "folder": folder.to_dict()})


@folders_bp.delete("/<string:folder_id>/permanent")
@jwt_required()
def purge_folder(folder_id: str):
    user = current_user()
    deleted_files = service.purge_folder(user, folder_id, store=current_app.extensions["object_store"])
    return jsonify({"message": "Folder and its contents permanently deleted.", "deleted_files": deleted_files})


@folders_bp.get("/<string:folder_id>/breadcrumbs")
@jwt_required()
def breadcrumbs(folder_id: str):
    user = current_user()
    return jsonify(service.breadcrumbs(user, folder_id))
