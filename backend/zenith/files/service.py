"""File lifecycle: upload, trash, restore, rename and permanent delete.

Upload and permanent delete touch two systems, the object store and the
resource store, without a shared transaction. Upload writes the object first
and removes it again if the metadata row cannot be written. Permanent delete
removes the object first; if the row delete then fails the row is left
pointing at missing bytes and the failure is logged.
"""

from __future__ import annotations

from pathlib import Path

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from ..common.acl import owned_file, owned_folder
from ..common.errors import APIError, UpstreamFailure, ValidationError
from ..common.realtime import ConnectionRegistry
from ..common.storage import LocalObjectStore, build_storage_path, validate_node_name
from ..extensions import db
from ..items.service import serialize_item
from ..models import File, Permission, Star, User


FILE_CREATED = "FILE_CREATED"


def _stream_size(upload: FileStorage) -> int:
    stream = upload.stream
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


def create_file(
    owner: User,
    upload: FileStorage,
    folder_id: str | None,
    *,
    store: LocalObjectStore,
    notifier: ConnectionRegistry,
    max_size: int,
) -> File:
    file_name = validate_node_name(Path(upload.filename or "").name, "File")

    if folder_id is not None:
        owned_folder(owner, folder_id, active_only=True)

    size = _stream_size(upload)
    if size <= 0:
        raise ValidationError("File is empty.", code="INVALID_FILE")
    if size > max_size:
        raise APIError(413, "UPLOAD_TOO_LARGE", "File exceeds max upload size.")

    storage_path = build_storage_path(owner.id, file_name)
    try:
        store.put(storage_path, upload.stream)
    except OSError as error:
        current_app.logger.exception("Object store write failed for %s", storage_path)
        raise UpstreamFailure("An error occurred during file upload.") from error

    record = File(
        name=file_name,
        owner_id=owner.id,
        folder_id=folder_id,
        storage_path=storage_path,
        mime_type=upload.mimetype or None,
        size=size,
    )
    try:
        db.session.add(record)
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        current_app.logger.exception("Metadata write failed for %s, removing stored object", storage_path)
        try:
            store.remove([storage_path])
        except OSError:
            current_app.logger.error("Rollback failed, orphaned object left at %s", storage_path)
        raise UpstreamFailure("An error occurred during file upload.") from error

    current_app.logger.info("File %s uploaded by %s (%d bytes)", record.id, owner.id, size)
    notifier.broadcast({"type": FILE_CREATED, "payload": serialize_item(record)})
    return record


def trash_file(user: User, file_id: str) -> File:
    record = owned_file(user, file_id)
    record.move_to_trash()
    db.session.commit()
    return record


def restore_file(user: User, file_id: str) -> File:
    record = owned_file(user, file_id)
    record.restore()
    db.session.commit()
    return record


def rename_file(user: User, file_id: str, name: str) -> File:
    record = owned_file(user, file_id)
    record.rename(validate_node_name(name, "File"))
    db.session.commit()
    return record


def purge_file(user: User, file_id: str, *, store: LocalObjectStore) -> None:
    record = owned_file(user, file_id)
    storage_path = record.storage_path

    try:
        store.remove([storage_path])
    except OSError as error:
        current_app.logger.exception("Object store delete failed for %s", storage_path)
        raise UpstreamFailure("Failed to permanently delete file.") from error

    try:
        Permission.query.filter_by(file_id=record.id).delete(synchronize_session=False)
        Star.query.filter_by(resource_id=record.id).delete(synchronize_session=False)
        db.session.delete(record)
        db.session.commit()
    except SQLAlchemyError as error:
        db.session.rollback()
        current_app.logger.exception("Row for file %s survived after its object %s was deleted", file_id, storage_path)
        raise UpstreamFailure("Failed to permanently delete file.") from error

    current_app.logger.info("File %s permanently deleted by %s", file_id, user.id)
