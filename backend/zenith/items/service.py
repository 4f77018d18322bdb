from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import and_, func, or_, select

from ..common.errors import NotFoundOrForbidden, ValidationError
from ..extensions import db
from ..models import File, Folder, Permission, ResourceType, Star, User


Resource = Folder | File


def serialize_item(resource: Resource, starred_ids: set[str] | frozenset[str] = frozenset()) -> dict[str, Any]:
    """Tag a folder or file row for merged listings."""
    payload = resource.to_dict()
    payload["type"] = resource.resource_type.value
    payload["item_id"] = resource.id
    payload["is_starred"] = resource.id in starred_ids
    return payload


def starred_ids_for(user: User, resource_ids: Iterable[str]) -> set[str]:
    ids = list(resource_ids)
    if not ids:
        return set()
    rows = db.session.query(Star.resource_id).filter(Star.user_id == user.id, Star.resource_id.in_(ids)).all()
    return {row.resource_id for row in rows}


def split_items(user: User, folders: list[Folder], files: list[File]) -> dict[str, list[dict[str, Any]]]:
    starred = starred_ids_for(user, [item.id for item in [*folders, *files]])
    return {
        "folders": [serialize_item(folder, starred) for folder in folders],
        "files": [serialize_item(record, starred) for record in files],
    }


def browse(user: User, parent_id: str | None, limit: int, offset: int) -> dict[str, list[dict[str, Any]]]:
    if parent_id is not None:
        parent = Folder.query.filter_by(id=parent_id, owner_id=user.id, is_deleted=False).one_or_none()
        if parent is None:
            raise NotFoundOrForbidden("Folder not found or you do not have permission.")

    folders = (
        Folder.query.filter(Folder.owner_id == user.id, Folder.parent_id == parent_id, Folder.is_deleted.is_(False))
        .order_by(Folder.name.asc())
        .all()
    )
    files = (
        File.query.filter(File.owner_id == user.id, File.folder_id == parent_id, File.is_deleted.is_(False))
        .order_by(File.name.asc())
        .all()
    )

    # One page over the combined list, folders first.
    page: list[Resource] = [*folders, *files][offset : offset + limit]
    return split_items(
        user,
        [item for item in page if isinstance(item, Folder)],
        [item for item in page if isinstance(item, File)],
    )


def tokenize_query(raw_query: str | None) -> list[str]:
    tokens = (raw_query or "").split()
    if not tokens:
        raise ValidationError("Search query is required.", code="INVALID_QUERY")
    return tokens


def _escape_like(token: str) -> str:
    return token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _name_match(model: type[Resource], tokens: list[str]):
    if db.engine.dialect.name == "postgresql":
        document = func.to_tsvector("simple", model.name)
        return document.op("@@")(func.plainto_tsquery("simple", " ".join(tokens)))
    return and_(*[model.name.ilike(f"%{_escape_like(token)}%", escape="\\") for token in tokens])


def search(user: User, tokens: list[str]) -> dict[str, list[dict[str, Any]]]:
    files = (
        File.query.filter(File.owner_id == user.id, File.is_deleted.is_(False), _name_match(File, tokens))
        .order_by(File.name.asc())
        .all()
    )
    folders = (
        Folder.query.filter(Folder.owner_id == user.id, Folder.is_deleted.is_(False), _name_match(Folder, tokens))
        .order_by(Folder.name.asc())
        .all()
    )
    return split_items(user, folders, files)


def trashed(user: User) -> dict[str, list[dict[str, Any]]]:
    folders = (
        Folder.query.filter(Folder.owner_id == user.id, Folder.is_deleted.is_(True))
        .order_by(Folder.deleted_at.desc())
        .all()
    )
    files = (
        File.query.filter(File.owner_id == user.id, File.is_deleted.is_(True)).order_by(File.deleted_at.desc()).all()
    )
    return split_items(user, folders, files)


def starred(user: User) -> dict[str, list[dict[str, Any]]]:
    stars = Star.query.filter_by(user_id=user.id).all()
    folder_ids = [star.resource_id for star in stars if star.resource_type == ResourceType.FOLDER]
    file_ids = [star.resource_id for star in stars if star.resource_type == ResourceType.FILE]

    folders = (
        Folder.query.filter(Folder.id.in_(folder_ids), Folder.owner_id == user.id, Folder.is_deleted.is_(False))
        .order_by(Folder.name.asc())
        .all()
        if folder_ids
        else []
    )
    files = (
        File.query.filter(
            File.id.in_(file_ids),
            File.is_deleted.is_(False),
            # Stars outlive revoked grants; visibility is rechecked here.
            or_(File.owner_id == user.id, File.id.in_(_shared_file_ids(user))),
        )
        .order_by(File.name.asc())
        .all()
        if file_ids
        else []
    )
    return split_items(user, folders, files)


def _shared_file_ids(user: User):
    return select(Permission.file_id).where(Permission.user_id == user.id)


def recent_files(user: User, limit: int) -> list[dict[str, Any]]:
    rows = (
        db.session.query(File, User.email)
        .join(User, File.owner_id == User.id)
        .filter(
            File.is_deleted.is_(False),
            or_(File.owner_id == user.id, File.id.in_(_shared_file_ids(user))),
        )
        .order_by(File.updated_at.desc(), File.created_at.desc())
        .limit(limit)
        .all()
    )
    starred_ids = starred_ids_for(user, [record.id for record, _ in rows])

    items: list[dict[str, Any]] = []
    for record, owner_email in rows:
        payload = serialize_item(record, starred_ids)
        payload["owner_email"] = owner_email
        items.append(payload)
    return items


def shared_with_me(user: User) -> dict[str, list[dict[str, Any]]]:
    rows = (
        db.session.query(File, Permission.role, User.email)
        .join(Permission, Permission.file_id == File.id)
        .join(User, File.owner_id == User.id)
        .filter(Permission.user_id == user.id, File.is_deleted.is_(False))
        .order_by(Permission.created_at.desc())
        .all()
    )
    starred_ids = starred_ids_for(user, [record.id for record, _, _ in rows])

    files: list[dict[str, Any]] = []
    for record, role, owner_email in rows:
        payload = serialize_item(record, starred_ids)
        payload["role"] = role.value
        payload["owner_email"] = owner_email
        files.append(payload)

    # Permissions exist on files only.
    return {"files": files, "folders": []}
