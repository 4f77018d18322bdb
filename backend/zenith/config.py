from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv


load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[2]
TRUTHY = frozenset({"1", "true", "yes", "on"})
DEFAULT_FRONTEND_ORIGIN = "http://localhost:3000"

# Config key -> environment variable that provides it.
REQUIRED_SETTINGS = {
    "SQLALCHEMY_DATABASE_URI": "DATABASE_URL",
    "JWT_SECRET_KEY": "JWT_SECRET_KEY",
    "STRIPE_SECRET_KEY": "STRIPE_SECRET_KEY",
    "STRIPE_PRICE_ID": "STRIPE_PRICE_ID",
}


def _env(name: str) -> str | None:
    """Trimmed environment value; blank counts as unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    return default if raw is None else raw.lower() in TRUTHY


def env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = _env(name)
    try:
        value = default if raw is None else int(raw)
    except ValueError:
        value = default
    return value if minimum is None else max(minimum, value)


def env_str(name: str, default: str = "") -> str:
    return _env(name) or default


def env_origins() -> list[str]:
    """Allowed frontend origins, also the base for checkout redirect URLs."""
    for name in ("FRONTEND_ORIGINS", "FRONTEND_ORIGIN"):
        origins = [origin.strip().rstrip("/") for origin in (_env(name) or "").split(",") if origin.strip()]
        if origins:
            return origins
    return [DEFAULT_FRONTEND_ORIGIN]


def missing_settings(config: Mapping[str, Any]) -> list[str]:
    """Environment variable names whose config values are absent or blank."""
    missing: list[str] = []
    for key, env_name in REQUIRED_SETTINGS.items():
        value = config.get(key)
        if value is None or not str(value).strip():
            missing.append(env_name)
    return missing


class Config:
    SQLALCHEMY_DATABASE_URI = env_str("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = env_str("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=env_int("ACCESS_TOKEN_EXPIRES_HOURS", 24, minimum=1))

    STRIPE_SECRET_KEY = env_str("STRIPE_SECRET_KEY")
    STRIPE_PRICE_ID = env_str("STRIPE_PRICE_ID")
    STRIPE_WEBHOOK_SECRET = env_str("STRIPE_WEBHOOK_SECRET")

    FRONTEND_ORIGINS = env_origins()
    FRONTEND_ORIGIN = FRONTEND_ORIGINS[0]
    STORAGE_ROOT = env_str("STORAGE_ROOT", str(BASE_DIR / "storage"))

    MAX_UPLOAD_SIZE_BYTES = env_int("MAX_UPLOAD_SIZE_BYTES", 10 * 1024 * 1024)
    MAX_CONTENT_LENGTH = env_int("MAX_CONTENT_LENGTH", 64 * 1024 * 1024)
    SIGNED_URL_EXPIRES_SECONDS = env_int("SIGNED_URL_EXPIRES_SECONDS", 3600)

    BROWSE_PAGE_LIMIT = env_int("BROWSE_PAGE_LIMIT", 100, minimum=1)
    RECENT_FILES_LIMIT = env_int("RECENT_FILES_LIMIT", 20, minimum=1)

    AUTO_CREATE_SCHEMA = env_bool("AUTO_CREATE_SCHEMA", True)

