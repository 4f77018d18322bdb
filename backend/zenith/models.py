from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from .extensions import db


pwd_hasher = PasswordHasher()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class SubscriptionStatus(str, enum.Enum):
    FREE = "free"
    PRO = "pro"


class PermissionRole(str, enum.Enum):
    VIEWER = "viewer"
    EDITOR = "editor"

    @property
    def can_edit(self) -> bool:
        return self == PermissionRole.EDITOR


class ResourceType(str, enum.Enum):
    FOLDER = "folder"
    FILE = "file"


class ResourceState(str, enum.Enum):
    ACTIVE = "active"
    TRASHED = "trashed"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(320), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    subscription_status = db.Column(db.Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.FREE)
    stripe_customer_id = db.Column(db.String(255), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    def set_password(self, password: str) -> None:
        self.password_hash = pwd_hasher.hash(password)

    def verify_password(self, password: str) -> bool:
        try:
            return pwd_hasher.verify(self.password_hash, password)
        except VerifyMismatchError:
            return False

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "created_at": _isoformat(self.created_at),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "subscription_status": self.subscription_status.value,
            "created_at": _isoformat(self.created_at),
        }


class ResourceMixin:
    """Columns and soft-delete transitions shared by folders and files."""

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    @property
    def state(self) -> ResourceState:
        return ResourceState.TRASHED if self.is_deleted else ResourceState.ACTIVE

    def move_to_trash(self, when: datetime | None = None) -> None:
        # Re-trashing is allowed and re-stamps deleted_at.
        self.is_deleted = True
        self.deleted_at = when or utc_now()

    def restore(self) -> None:
        self.is_deleted = False
        self.deleted_at = None

    def rename(self, name: str) -> None:
        self.name = name
        self.updated_at = utc_now()

    def _resource_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "is_deleted": self.is_deleted,
            "deleted_at": _isoformat(self.deleted_at),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


class Folder(ResourceMixin, db.Model):
    __tablename__ = "folders"

    resource_type = ResourceType.FOLDER

    parent_id = db.Column(db.String(36), db.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)

    owner = db.relationship("User")

    def to_dict(self) -> dict[str, Any]:
        payload = self._resource_dict()
        payload["parent_id"] = self.parent_id
        return payload


class File(ResourceMixin, db.Model):
    __tablename__ = "files"

    resource_type = ResourceType.FILE

    folder_id = db.Column(db.String(36), db.ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    storage_path = db.Column(db.String(1024), unique=True, nullable=False)
    mime_type = db.Column(db.String(255), nullable=True)
    size = db.Column(db.BigInteger, nullable=False, default=0)

    owner = db.relationship("User")
    permissions = db.relationship("Permission", back_populates="file")

    def to_dict(self) -> dict[str, Any]:
        payload = self._resource_dict()
        payload.update(
            {
                "folder_id": self.folder_id,
                "storage_path": self.storage_path,
                "mime_type": self.mime_type,
                "size": self.size,
            }
        )
        return payload


class Permission(db.Model):
    __tablename__ = "permissions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    file_id = db.Column(db.String(36), db.ForeignKey("files.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = db.Column(db.Enum(PermissionRole), nullable=False, default=PermissionRole.VIEWER)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    file = db.relationship("File", back_populates="permissions")
    user = db.relationship("User")

    __table_args__ = (db.UniqueConstraint("file_id", "user_id", name="uq_permission_file_user"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "file_id": self.file_id,
            "user_id": self.user_id,
            "role": self.role.value,
            "created_at": _isoformat(self.created_at),
        }

    def with_grantee(self) -> dict[str, Any]:
        payload = self.to_dict()
        payload["email"] = self.user.email if self.user else None
        return payload


class Star(db.Model):
    __tablename__ = "stars"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_id = db.Column(db.String(36), nullable=False, index=True)
    resource_type = db.Column(db.Enum(ResourceType), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (db.UniqueConstraint("user_id", "resource_id", name="uq_star_user_resource"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "resource_id": self.resource_id,
            "resource_type": self.resource_type.value,
            "created_at": _isoformat(self.created_at),
        }
