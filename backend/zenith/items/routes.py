from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from ..common.acl import current_user
from ..common.params import parse_int, parse_optional_id
from . import service


items_bp = Blueprint("items", __name__)

MAX_BROWSE_LIMIT = 500


@items_bp.get("/browse")
@jwt_required()
def browse():
    user = current_user()

    parent_id = parse_optional_id(request.args.get("folderId"), "folderId")
    limit = parse_int(
        request.args.get("limit"),
        "limit",
        default=current_app.config["BROWSE_PAGE_LIMIT"],
        minimum=1,
        maximum=MAX_BROWSE_LIMIT,
    )
    offset = parse_int(request.args.get("offset"), "offset", default=0)

    return jsonify(service.browse(user, parent_id, limit=limit, offset=offset))


@items_bp.get("/search")
@jwt_required()
def search():
    tokens = service.tokenize_query(request.args.get("q"))
    user = current_user()
    return jsonify(service.search(user, tokens))


@items_bp.get("/trash")
@jwt_required()
def trash():
    user = current_user()
    return jsonify(service.trashed(user))


@items_bp.get("/recent")
@jwt_required()
def recent():
    user = current_user()
    return jsonify(service.recent_files(user, limit=current_app.config["RECENT_FILES_LIMIT"]))


@items_bp.get("/shared-with-me")
@jwt_required()
def shared_with_me():
    user = current_user()
    return jsonify(service.shared_with_me(user))
