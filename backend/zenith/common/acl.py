from __future__ import annotations

from typing import Any

from flask_jwt_extended import get_jwt_identity

from ..extensions import db
from ..models import File, Folder, Permission, PermissionRole, User
from .errors import NotFoundOrForbidden, Unauthenticated


FILE_NOT_FOUND = "File not found or you do not have permission."
FOLDER_NOT_FOUND = "Folder not found or you do not have permission."


def current_user() -> User:
    identity = get_jwt_identity()
    if identity is None:
        raise Unauthenticated()

    user = db.session.get(User, str(identity))
    if user is None:
        raise Unauthenticated("Invalid session.")
    return user


def scope_query_to_owner(query: Any, model: type[File] | type[Folder], user: User):
    return query.filter(model.owner_id == user.id)


def owned_folder(user: User, folder_id: str, *, active_only: bool = False) -> Folder:
    query = scope_query_to_owner(Folder.query.filter(Folder.id == folder_id), Folder, user)
    if active_only:
        query = query.filter(Folder.is_deleted.is_(False))
    folder = query.one_or_none()
    if folder is None:
        raise NotFoundOrForbidden(FOLDER_NOT_FOUND)
    return folder


def owned_file(user: User, file_id: str, *, active_only: bool = False) -> File:
    query = scope_query_to_owner(File.query.filter(File.id == file_id), File, user)
    if active_only:
        query = query.filter(File.is_deleted.is_(False))
    record = query.one_or_none()
    if record is None:
        raise NotFoundOrForbidden(FILE_NOT_FOUND)
    return record


def file_permission(user: User, file_id: str) -> Permission | None:
    return Permission.query.filter_by(file_id=file_id, user_id=user.id).one_or_none()


def has_shared_access(user: User, file_id: str, action: str = "read") -> bool:
    permission = file_permission(user, file_id)
    if permission is None:
        return False
    if action == "read":
        return permission.role in (PermissionRole.VIEWER, PermissionRole.EDITOR)
    if action == "write":
        return permission.role.can_edit
    return False


def readable_file(user: User, file_id: str) -> File:
    """An active file the user owns or holds a permission on."""
    record = File.query.filter(File.id == file_id, File.is_deleted.is_(False)).one_or_none()
    if record is None:
        raise NotFoundOrForbidden(FILE_NOT_FOUND)
    if record.owner_id == user.id or has_shared_access(user, record.id, "read"):
        return record
    raise NotFoundOrForbidden(FILE_NOT_FOUND)


def owned_permission(user: User, permission_id: str) -> Permission:
    permission = (
        Permission.query.join(File, Permission.file_id == File.id)
        .filter(Permission.id == permission_id, File.owner_id == user.id)
        .one_or_none()
    )
    if permission is None:
        raise NotFoundOrForbidden("Permission not found or you do not have access.")
    return permission
