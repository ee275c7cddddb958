"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from council.auth import AdminGate, AdminSession
from council.config import BackendKind, Settings, get_settings
from council.content import CONTENT_TYPES, ContentType, get_content_type
from council.db import Database, DatabaseRecordStore
from council.records import BlobRecordStore, FileRecordStore, InMemoryRecordStore, RecordStore
from council.site_settings import ContactInfoService, SiteSettingsService
from council.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)

_registry: "StoreRegistry | None" = None
_storage_client: StorageClient | None = None
_database: Database | None = None
_admin_gate: AdminGate | None = None

_bearer = HTTPBearer(auto_error=False)


class StoreRegistry:
    """The live store for every content type, resolved once at startup."""

    def __init__(self, stores: Mapping[str, RecordStore]):
        self.stores = dict(stores)

    def store(self, name: str) -> RecordStore:
        return self.stores[name]

    def backend(self, name: str) -> str:
        return self.stores[name].backend

    def backends(self) -> Dict[str, str]:
        return {name: store.backend for name, store in self.stores.items()}


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.blob_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.blob_bucket,
            region=settings.blob_region or "",
            endpoint=settings.blob_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            prefix=settings.blob_prefix,
        )
    return _storage_client


def get_database() -> Database:
    """
    Return the shared engine; only called when some content type lives in
    the database, so a missing DATABASE_URL is a configuration error.
    """
    global _database
    if _database:
        return _database
    _database = Database(get_settings().database_url or "")
    return _database


def build_store(
    kind: BackendKind,
    content_type: ContentType,
    settings: Optional[Settings] = None,
    *,
    seed_defaults: bool = True,
) -> RecordStore:
    """
    Construct a store for ``content_type`` on backend ``kind``.

    Migration sources are built with ``seed_defaults=False`` so a missing
    legacy document reads as empty rather than as the built-in dataset.
    """
    settings = settings or get_settings()
    defaults = content_type.defaults if seed_defaults else None
    if kind == "memory":
        return InMemoryRecordStore(content_type, defaults)
    if kind == "file":
        return FileRecordStore(content_type, settings.data_dir, defaults)
    if kind == "blob":
        return BlobRecordStore(content_type, get_storage_client(), defaults)
    if kind == "database":
        return DatabaseRecordStore(content_type, get_database(), defaults)
    raise ValueError(f"Unknown storage backend: {kind}")


def get_registry() -> StoreRegistry:
    """
    Return a singleton registry so in-memory stores persist across requests.
    """
    global _registry
    if _registry:
        return _registry

    settings = get_settings()
    stores = {}
    for name, content_type in CONTENT_TYPES.items():
        kind = settings.current_backend(name)
        stores[name] = build_store(kind, content_type, settings)
        logger.info("Serving %s from %s backend", name, kind)
    _registry = StoreRegistry(stores)
    return _registry


def get_settings_service(
    registry: StoreRegistry = Depends(get_registry),
) -> SiteSettingsService:
    settings = get_settings()
    return SiteSettingsService(registry.store("settings"), settings.admin_email_list)


def get_contact_service(
    registry: StoreRegistry = Depends(get_registry),
) -> ContactInfoService:
    return ContactInfoService(registry.store("contact"))


def get_admin_gate() -> AdminGate:
    global _admin_gate
    if _admin_gate:
        return _admin_gate

    settings = get_settings()
    service = SiteSettingsService(
        get_registry().store("settings"), settings.admin_email_list
    )
    _admin_gate = AdminGate(settings.session_secret, service.admin_emails)
    return _admin_gate


def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    gate: AdminGate = Depends(get_admin_gate),
) -> AdminSession:
    """Bearer header first, then the session cookie."""
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(get_settings().session_cookie_name)
    return gate.authenticate(token)


def legacy_store(content_type_name: str, source: Optional[BackendKind] = None) -> RecordStore:
    settings = get_settings()
    kind = source or settings.legacy_backend
    return build_store(kind, get_content_type(content_type_name), settings, seed_defaults=False)


def reset_dependencies() -> None:
    """Drop cached singletons; tests call this after changing settings."""
    global _registry, _storage_client, _database, _admin_gate
    if _database is not None:
        _database.dispose()
    _registry = None
    _storage_client = None
    _database = None
    _admin_gate = None
    get_settings.cache_clear()
