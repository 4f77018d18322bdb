from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy.exc import IntegrityError

from ..common.acl import current_user, owned_folder, readable_file
from ..common.errors import Conflict, ValidationError
from ..extensions import db
from ..items import service as items
from ..models import ResourceType, Star, User


stars_bp = Blueprint("stars", __name__, url_prefix="/stars")


def _parse_resource_type(value: object) -> ResourceType:
    for resource_type in ResourceType:
        if resource_type.value == value:
            return resource_type
    raise ValidationError("resourceType must be 'folder' or 'file'.", code="INVALID_RESOURCE_TYPE")


def _ensure_visible(user: User, resource_id: str, resource_type: ResourceType) -> None:
    # Folders are visible to their owner only; files also to grantees.
    if resource_type == ResourceType.FOLDER:
        owned_folder(user, resource_id, active_only=True)
    else:
        readable_file(user, resource_id)


@stars_bp.get("")
@jwt_required()
def list_stars():
    user = current_user()
    return jsonify(items.starred(user))


@stars_bp.post("")
@jwt_required()
def star():
    user = current_user()

    payload = request.get_json(silent=True) or {}
    resource_id = payload.get("resourceId")
    if not isinstance(resource_id, str) or not resource_id.strip() or not payload.get("resourceType"):
        raise ValidationError("Resource ID and type are required.")
    resource_type = _parse_resource_type(payload.get("resourceType"))
    _ensure_visible(user, resource_id, resource_type)

    entry = Star(user_id=user.id, resource_id=resource_id, resource_type=resource_type)
    try:
        db.session.add(entry)
        db.session.commit()
    except IntegrityError as error:
        db.session.rollback()
        raise Conflict("Item is already starred.", code="ALREADY_STARRED") from error

    return jsonify(entry.to_dict()), 201


@stars_bp.delete("")
@jwt_required()
def unstar():
    user = current_user()

    payload = request.get_json(silent=True) or {}
    resource_id = payload.get("resourceId")
    if not isinstance(resource_id, str) or not resource_id.strip():
        raise ValidationError("Resource ID is required.")

    Star.query.filter_by(user_id=user.id, resource_id=resource_id).delete(synchronize_session=False)
    db.session.commit()
    return jsonify({"message": "Item unstarred."})
