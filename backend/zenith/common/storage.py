from __future__ import annotations

import os
import re
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Iterable
from uuid import uuid4

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .errors import APIError, NotFoundOrForbidden, ValidationError


INVALID_NAME_PATTERN = re.compile(r"[\\/\x00]")
RESERVED_NAMES = frozenset({".", ".."})
MAX_NAME_LENGTH = 255
SIGNED_OBJECT_SALT = "zenith-object-download-v1"


def validate_node_name(name: str, kind: str = "Item") -> str:
    """Trimmed folder or file name, safe to use as the last storage path segment."""
    cleaned = name.strip()
    problem = None
    if not cleaned:
        problem = "name is required"
    elif len(cleaned) > MAX_NAME_LENGTH:
        problem = f"name is longer than {MAX_NAME_LENGTH} characters"
    elif cleaned in RESERVED_NAMES or INVALID_NAME_PATTERN.search(cleaned):
        problem = "name may not be \".\", \"..\" or contain slashes"
    if problem is not None:
        raise ValidationError(f"{kind} {problem}.", code="INVALID_NAME", details={"name": name})
    return cleaned


def build_storage_path(owner_id: str, file_name: str) -> str:
    """Object key namespaced by owner, unique per upload."""
    return f"{owner_id}/{int(time.time() * 1000)}-{uuid4().hex[:8]}-{file_name}"


class LocalObjectStore:
    """Byte payloads on local disk, addressed by relative storage path."""

    def __init__(self, root: str | Path, secret_key: str) -> None:
        self.root = Path(root).resolve()
        self._serializer = URLSafeTimedSerializer(secret_key, salt=SIGNED_OBJECT_SALT)

    def _safe_resolve(self, relative_path: str) -> Path:
        candidate = (self.root / relative_path).resolve()
        if os.path.commonpath([str(self.root), str(candidate)]) != str(self.root):
            raise APIError(400, "INVALID_PATH", "Invalid storage path.")
        return candidate

    def put(self, relative_path: str, stream: BinaryIO) -> int:
        target_path = self._safe_resolve(relative_path)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        with target_path.open("wb") as output:
            shutil.copyfileobj(stream, output)
        return target_path.stat().st_size

    def remove(self, relative_paths: Iterable[str | None]) -> int:
        removed = 0
        for relative_path in relative_paths:
            if not relative_path:
                continue
            target_path = self._safe_resolve(relative_path)
            if target_path.exists():
                target_path.unlink()
                removed += 1
        return removed

    def exists(self, relative_path: str) -> bool:
        return self._safe_resolve(relative_path).exists()

    def resolve(self, relative_path: str) -> Path:
        path = self._safe_resolve(relative_path)
        if not path.exists():
            raise NotFoundOrForbidden("File data not found.", code="FILE_MISSING")
        return path

    def sign(self, relative_path: str) -> str:
        return self._serializer.dumps(relative_path)

    def unsign(self, token: str, max_age: int) -> str:
        try:
            return self._serializer.loads(token, max_age=max_age)
        except SignatureExpired as error:
            raise APIError(410, "LINK_EXPIRED", "This link has expired.") from error
        except BadSignature as error:
            raise NotFoundOrForbidden("Link not found.", code="LINK_NOT_FOUND") from error
