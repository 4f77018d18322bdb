from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..common.acl import file_permission, owned_file, owned_permission
from ..common.errors import Conflict, NotFoundOrForbidden, ValidationError
from ..extensions import db
from ..models import Permission, PermissionRole, Star, User


ALREADY_SHARED = "This file is already shared with the user."


def parse_role(value: object) -> PermissionRole:
    normalized = value.strip().lower() if isinstance(value, str) else ""
    for role in PermissionRole:
        if role.value == normalized:
            return role
    raise ValidationError("Role must be 'viewer' or 'editor'.", code="INVALID_ROLE")


def share_file(owner: User, file_id: str, email: str, role: PermissionRole) -> Permission:
    record = owned_file(owner, file_id)

    grantee = User.query.filter(func.lower(User.email) == email.strip().lower()).one_or_none()
    if grantee is None:
        raise NotFoundOrForbidden(f"User with email {email} not found.", code="USER_NOT_FOUND")
    if grantee.id == owner.id:
        raise ValidationError("You cannot share a file with yourself.", code="INVALID_SHARE")

    if file_permission(grantee, record.id) is not None:
        raise Conflict(ALREADY_SHARED, code="ALREADY_SHARED")

    permission = Permission(file_id=record.id, user_id=grantee.id, role=role)
    try:
        db.session.add(permission)
        db.session.commit()
    except IntegrityError as error:
        # A concurrent grant for the same pair won the unique constraint.
        db.session.rollback()
        raise Conflict(ALREADY_SHARED, code="ALREADY_SHARED") from error

    current_app.logger.info("File %s shared with %s as %s", record.id, grantee.id, role.value)
    return permission


def list_permissions(owner: User, file_id: str) -> list[Permission]:
    record = owned_file(owner, file_id)
    return Permission.query.filter_by(file_id=record.id).order_by(Permission.created_at.asc()).all()


def update_permission(owner: User, permission_id: str, role: PermissionRole) -> Permission:
    permission = owned_permission(owner, permission_id)
    permission.role = role
    db.session.commit()
    return permission


def revoke_permission(owner: User, permission_id: str) -> None:
    permission = owned_permission(owner, permission_id)
    Star.query.filter_by(user_id=permission.user_id, resource_id=permission.file_id).delete(synchronize_session=False)
    db.session.delete(permission)
    db.session.commit()
    current_app.logger.info("Permission %s revoked by %s", permission_id, owner.id)
