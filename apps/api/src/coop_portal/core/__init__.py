"""
Core module - Configuration, database, security, storage, and utilities.
"""

from coop_portal.core.config import get_settings, settings
from coop_portal.core.database import Base, close_db, get_db, init_db
from coop_portal.core.permissions import Role
from coop_portal.core.redis import close_redis, get_redis, init_redis
from coop_portal.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from coop_portal.core.storage import StorageService, get_storage, init_storage

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Roles
    "Role",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    # Storage
    "StorageService",
    "get_storage",
    "init_storage",
]
