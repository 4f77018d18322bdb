from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, send_file, url_for
from flask_jwt_extended import jwt_required

from ..common.acl import current_user, readable_file
from ..common.errors import NotFoundOrForbidden
from ..common.params import require_string
from ..models import File
from . import service


shares_bp = Blueprint("shares", __name__)
objects_bp = Blueprint("objects", __name__)


@shares_bp.post("/files/<string:file_id>/share")
@jwt_required()
def share_file(file_id: str):
    owner = current_user()

    payload = request.get_json(silent=True) or {}
    email = require_string(payload, "email", "Valid email and role are required.")
    role = service.parse_role(payload.get("role"))
    permission = service.share_file(owner, file_id, email, role)

    return jsonify({"message": "File shared successfully", "permission": permission.to_dict()}), 201


@shares_bp.get("/files/<string:file_id>/permissions")
@jwt_required()
def list_permissions(file_id: str):
    owner = current_user()
    permissions = service.list_permissions(owner, file_id)
    return jsonify([permission.with_grantee() for permission in permissions])


@shares_bp.patch("/permissions/<string:permission_id>")
@jwt_required()
def update_permission(permission_id: str):
    owner = current_user()

    payload = request.get_json(silent=True) or {}
    role = service.parse_role(payload.get("role"))
    permission = service.update_permission(owner, permission_id, role)

    return jsonify({"message": "Permission updated successfully", "permission": permission.to_dict()})


@shares_bp.delete("/permissions/<string:permission_id>")
@jwt_required()
def revoke_permission(permission_id: str):
    owner = current_user()
    service.revoke_permission(owner, permission_id)
    return jsonify({"message": "Permission removed successfully."})


@shares_bp.get("/files/<string:file_id>/shareable-link")
@jwt_required()
def shareable_link(file_id: str):
    user = current_user()
    record = readable_file(user, file_id)

    store = current_app.extensions["object_store"]
    token = store.sign(record.storage_path)
    return jsonify(
        {
            "signedUrl": url_for("objects.download_object", token=token, _external=True),
            "expires_in": current_app.config["SIGNED_URL_EXPIRES_SECONDS"],
        }
    )


@objects_bp.get("/objects/<string:token>")
def download_object(token: str):
    store = current_app.extensions["object_store"]
    storage_path = store.unsign(token, max_age=current_app.config["SIGNED_URL_EXPIRES_SECONDS"])

    record = File.query.filter_by(storage_path=storage_path).one_or_none()
    if record is None:
        raise NotFoundOrForbidden("File not found.", code="FILE_NOT_FOUND")

    return send_file(
        store.resolve(storage_path),
        as_attachment=False,
        download_name=record.name,
        mimetype=record.mime_type,
    )
