from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy import literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from ..common.acl import FOLDER_NOT_FOUND, owned_folder
from ..common.errors import NotFoundOrForbidden, UpstreamFailure
from ..common.storage import LocalObjectStore, validate_node_name
from ..extensions import db
from ..models import File, Folder, Permission, Star, User


# Upper bound for parent-chain walks; the store keeps the tree acyclic.
MAX_FOLDER_DEPTH = 256


def create_folder(user: User, name: str, parent_id: str | None) -> Folder:
    folder_name = validate_node_name(name, "Folder")
    if parent_id is not None:
        owned_folder(user, parent_id, active_only=True)

    folder = Folder(name=folder_name, owner_id=user.id, parent_id=parent_id)
    db.session.add(folder)
    db.session.commit()
    return folder


def trash_folder(user: User, folder_id: str) -> Folder:
    folder = owned_folder(user, folder_id)
    folder.move_to_trash()
    db.session.commit()
    return folder


def restore_folder(user: User, folder_id: str) -> Folder:
    folder = owned_folder(user, folder_id)
    folder.restore()
    db.session.commit()
    return folder


def rename_folder(user: User, folder_id: str, name: str) -> Folder:
    folder = owned_folder(user, folder_id)
    folder.rename(validate_node_name(name, "Folder"))
    db.session.commit()
    return folder


def breadcrumbs(user: User, folder_id: str) -> list[dict[str, Any]]:
    """Path from the root down to ``folder_id`` in one recursive query."""
    ancestors = (
        select(Folder.id, Folder.name, Folder.parent_id, literal(0).label("depth"))
        .where(Folder.id == folder_id, Folder.owner_id == user.id)
        .cte("ancestors", recursive=True)
    )
    parent = aliased(Folder)
    ancestors = ancestors.union_all(
        select(parent.id, parent.name, parent.parent_id, ancestors.c.depth + 1).where(
            parent.id == ancestors.c.parent_id,
            ancestors.c.depth < MAX_FOLDER_DEPTH,
        )
    )

    rows = db.session.execute(select(ancestors.c.id, ancestors.c.name).order_by(ancestors.c.depth.desc())).all()
    if not rows:
        raise NotFoundOrForbidden(FOLDER_NOT_FOUND)
    return [{"id": row.id, "name": row.name} for row in rows]


def subtree_folder_ids(user: User, folder_id: str) -> list[str]:
    subtree = (
        select(Folder.id).where(Folder.id == folder_id, Folder.owner_id == user.id).cte("subtree", recursive=True)
    )
    child = aliased(Folder)
    subtree = subtree.union(select(child.id).where(child.parent_id == subtree.c.id))
    return list(db.session.scalars(select(subtree.c.id)).all())


def purge_folder(user: User, folder_id: str, *, store: LocalObjectStore) -> int:
    """Delete a folder, its descendants and every file below it.

    Returns the number of files removed.
    """
    folder_ids = subtree_folder_ids(user, folder_id)
    if not folder_ids:
        raise NotFoundOrForbidden(FOLDER_NOT_FOUND)

    files = File.query.filter(File.folder_id.in_(folder_ids), File.owner_id == user.id).all()
    file_ids = [record.id for record in files]

    try:
        store.remove(record.storage_path for record in files)
    except OSError as error:
        current_app.logger.exception("Object store delete failed while purging folder %s", folder_id)
        raise UpstreamFailure("Failed to permanently delete folder.") from error

    try:
        if file_ids:
            Permission.query.filter(Permission.file_id.in_(file_ids)).delete(synchronize_session=False)
            File.query.filter(File.id.in_(file_ids)).delete(synchronize_session=False)
        Star.query.filter(Star.resource_id.in_([*folder_ids, *file_ids])).delete(synchronize_session=False)
        Folder.query.filter(Folder.id.in_(folder_ids)).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        current_app.logger.exception("Folder %s rows survived after their objects were deleted", folder_id)
        raise UpstreamFailure("Failed to permanently delete folder.") from error

    current_app.logger.info(
        "Folder %s purged by %s (%d folders, %d files)", folder_id, user.id, len(folder_ids), len(file_ids)
    )
    return len(file_ids)
