"""
HTTP routes for the council CMS API.

Every CRUD content type gets the same public and admin routes from
``_register_content_routes``; the handful of one-off routes (leadership,
latest magazine, settings, admin emails, contact info, backup) are
declared explicitly and registered first so their fixed paths win over
``/{record_id}``.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from council.auth import AdminSession
from council.config import get_settings
from council.content import CRUD_TYPES, HACKATHONS, MAGAZINES, TEAM, ContentType
from council.dependencies import (
    StoreRegistry,
    get_contact_service,
    get_registry,
    get_settings_service,
    legacy_store,
    require_admin,
)
from council.display import project_contact_info, project_leadership
from council.errors import NotFound, StorageUnavailable, ValidationError
from council.migration import run_migration
from council.records import format_timestamp, utcnow
from council.schemas import (
    AdminEmailRequest,
    ContactInfoUpdateRequest,
    MigrateRequest,
    SettingUpdateRequest,
)
from council.site_settings import ContactInfoService, SiteSettingsService

logger = logging.getLogger(__name__)

router = APIRouter()


def _update_fields(content_type: ContentType, payload: BaseModel) -> tuple[dict, Optional[str]]:
    data = payload.model_dump(mode="json", exclude_unset=True)
    expected_updated_at = data.pop("expectedUpdatedAt", None)
    required = {
        name
        for name, field in content_type.create_schema.model_fields.items()
        if field.is_required()
    }
    # An explicit null may clear an optional field but never a required one.
    fields = {
        key: value for key, value in data.items() if value is not None or key not in required
    }
    return fields, expected_updated_at


def _hackathons_hidden(service: SiteSettingsService) -> bool:
    return not service.hackathons_visible()


def _unset_other_latest(registry: StoreRegistry, latest_id: str) -> None:
    store = registry.store(MAGAZINES.name)
    for record_id, record in store.get_all().items():
        if record_id != latest_id and record.get("isLatest"):
            store.update(record_id, {"isLatest": False})


# -- one-off public routes --------------------------------------------------


@router.get("/health")
def health(registry: StoreRegistry = Depends(get_registry)):
    return {"status": "ok", "backends": registry.backends()}


@router.get("/team/leadership")
def get_leadership(registry: StoreRegistry = Depends(get_registry)):
    return project_leadership(registry.store(TEAM.name).get_all().values())


@router.get("/magazines/latest")
def get_latest_magazine(registry: StoreRegistry = Depends(get_registry)):
    for magazine in registry.store(MAGAZINES.name).get_for_display():
        if magazine["isLatest"]:
            return magazine
    raise NotFound("Latest magazine")


@router.get("/settings")
def get_public_settings(service: SiteSettingsService = Depends(get_settings_service)):
    settings = service.get()
    return {"hackathonsVisible": bool(settings.get("hackathonsVisible", True))}


@router.get("/contact-info")
def get_public_contact_info(service: ContactInfoService = Depends(get_contact_service)):
    return project_contact_info([service.get()])[0]


# -- one-off admin routes ---------------------------------------------------


@router.get("/admin/settings")
def get_admin_settings(
    session: AdminSession = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    return service.get()


@router.put("/admin/settings")
def update_admin_settings(
    payload: SettingUpdateRequest,
    session: AdminSession = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    settings = service.update_setting(payload.setting, payload.value, session.email)
    return {"message": "Setting updated successfully", "settings": settings}


@router.get("/admin/admin-emails")
def list_admin_emails(
    session: AdminSession = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    return {"adminEmails": service.admin_emails()}


@router.post("/admin/admin-emails")
def add_admin_email(
    payload: AdminEmailRequest,
    session: AdminSession = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    emails = service.add_admin_email(payload.email, session.email)
    return {"message": "Admin email added successfully", "adminEmails": emails}


@router.delete("/admin/admin-emails/{email}")
def remove_admin_email(
    email: str,
    session: AdminSession = Depends(require_admin),
    service: SiteSettingsService = Depends(get_settings_service),
):
    emails = service.remove_admin_email(email, session.email)
    return {"message": "Admin email removed successfully", "adminEmails": emails}


@router.get("/admin/contact-info")
def get_admin_contact_info(
    session: AdminSession = Depends(require_admin),
    service: ContactInfoService = Depends(get_contact_service),
):
    return service.get()


@router.put("/admin/contact-info")
def update_admin_contact_info(
    payload: ContactInfoUpdateRequest,
    session: AdminSession = Depends(require_admin),
    service: ContactInfoService = Depends(get_contact_service),
):
    if payload.contactInfo is not None:
        contact_info = service.replace(payload.contactInfo.model_dump(), session.email)
    elif payload.field and "value" in payload.model_fields_set:
        contact_info = service.update_field(payload.field, payload.value, session.email)
    else:
        raise ValidationError("Invalid request body")
    return {"success": True, "contactInfo": contact_info}


@router.post("/admin/contact-info")
def reset_admin_contact_info(
    session: AdminSession = Depends(require_admin),
    service: ContactInfoService = Depends(get_contact_service),
):
    return {"success": True, "contactInfo": service.reset(session.email)}


@router.get("/admin/backup")
def export_backup(
    session: AdminSession = Depends(require_admin),
    registry: StoreRegistry = Depends(get_registry),
):
    """Every stored record of every content type as one JSON download."""
    try:
        backup = {name: store.get_all() for name, store in registry.stores.items()}
    except StorageUnavailable as exc:
        raise StorageUnavailable("Failed to create backup") from exc
    exported_at = format_timestamp(utcnow())
    backup["exportedAt"] = exported_at
    backup["exportedBy"] = session.email
    filename = f"tech-website-backup-{re.sub(r'[:.+]', '-', exported_at)}.json"
    logger.info("Backup exported by %s", session.email)
    return JSONResponse(
        content=backup,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/admin/magazines/{record_id}/set-latest")
def set_latest_magazine(
    record_id: str,
    session: AdminSession = Depends(require_admin),
    registry: StoreRegistry = Depends(get_registry),
):
    store = registry.store(MAGAZINES.name)
    if store.get_by_id(record_id) is None:
        raise NotFound(MAGAZINES.label, record_id)
    _unset_other_latest(registry, record_id)
    record = store.update(record_id, {"isLatest": True})
    logger.info("Magazine %s marked latest by %s", record_id, session.email)
    return record


# -- generic content routes -------------------------------------------------


def _register_content_routes(content_type: ContentType) -> None:
    name = content_type.name
    public_path = f"/{content_type.path}"
    admin_path = f"/admin/{content_type.path}"

    def list_public(
        category: Optional[str] = Query(None),
        registry: StoreRegistry = Depends(get_registry),
        service: SiteSettingsService = Depends(get_settings_service),
    ):
        if content_type is HACKATHONS and _hackathons_hidden(service):
            return []
        items = registry.store(name).get_for_display()
        if category and content_type.category_field:
            items = [
                item for item in items if str(item.get(content_type.category_field)) == category
            ]
        return items

    def get_public(
        record_id: str,
        registry: StoreRegistry = Depends(get_registry),
        service: SiteSettingsService = Depends(get_settings_service),
    ):
        if content_type is HACKATHONS and _hackathons_hidden(service):
            raise NotFound(content_type.label, record_id)
        record = registry.store(name).get_by_id(record_id)
        projected = content_type.project([record]) if record else []
        if not projected:
            raise NotFound(content_type.label, record_id)
        return projected[0]

    def list_admin(
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        return registry.store(name).get_all()

    def get_admin(
        record_id: str,
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        record = registry.store(name).get_by_id(record_id)
        if record is None:
            raise NotFound(content_type.label, record_id)
        return record

    def create(
        payload: BaseModel,
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        record = registry.store(name).create(payload.model_dump(mode="json"))
        if content_type is MAGAZINES and record.get("isLatest"):
            _unset_other_latest(registry, record["id"])
        logger.info("%s %s created by %s", content_type.label, record["id"], session.email)
        return record

    def update(
        record_id: str,
        payload: BaseModel,
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        fields, expected_updated_at = _update_fields(content_type, payload)
        record = registry.store(name).update(
            record_id, fields, expected_updated_at=expected_updated_at
        )
        if content_type is MAGAZINES and fields.get("isLatest"):
            _unset_other_latest(registry, record_id)
        logger.info("%s %s updated by %s", content_type.label, record_id, session.email)
        return record

    def delete(
        record_id: str,
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        registry.store(name).delete(record_id)
        logger.info("%s %s deleted by %s", content_type.label, record_id, session.email)
        return {"message": f"{content_type.label} deleted successfully", "success": True}

    def migrate(
        payload: Optional[MigrateRequest] = None,
        session: AdminSession = Depends(require_admin),
        registry: StoreRegistry = Depends(get_registry),
    ):
        payload = payload or MigrateRequest()
        source_kind = payload.source or get_settings().legacy_backend
        if source_kind == registry.backend(name):
            raise ValidationError(f"Source and target for {name} are both {source_kind}")
        try:
            source = legacy_store(name, source_kind)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        logger.info("Migration of %s requested by %s", name, session.email)
        report = run_migration(
            content_type,
            source,
            registry.store(name),
            mode=payload.mode,
            dry_run=payload.dryRun,
        )
        if report.dry_run:
            message = f"Dry run: {report.migrated} {content_type.plural} would be migrated"
        elif report.migrated:
            message = f"Successfully migrated {report.migrated} {content_type.plural}"
        else:
            message = f"No {content_type.plural} to migrate"
        return {"message": message, "migrated": report.any_migrated, "report": report.as_dict()}

    # Body models differ per content type, so they are bound here rather than in
    # the signatures.
    create.__annotations__["payload"] = content_type.create_schema
    update.__annotations__["payload"] = content_type.update_schema

    router.add_api_route(public_path, list_public, methods=["GET"], name=f"list_{name}")
    router.add_api_route(
        f"{public_path}/{{record_id}}", get_public, methods=["GET"], name=f"get_{name}"
    )
    router.add_api_route(
        f"{admin_path}/migrate", migrate, methods=["POST"], name=f"migrate_{name}"
    )
    router.add_api_route(admin_path, list_admin, methods=["GET"], name=f"admin_list_{name}")
    router.add_api_route(
        admin_path, create, methods=["POST"], status_code=201, name=f"admin_create_{name}"
    )
    router.add_api_route(
        f"{admin_path}/{{record_id}}", get_admin, methods=["GET"], name=f"admin_get_{name}"
    )
    router.add_api_route(
        f"{admin_path}/{{record_id}}", update, methods=["PUT"], name=f"admin_update_{name}"
    )
    router.add_api_route(
        f"{admin_path}/{{record_id}}", delete, methods=["DELETE"], name=f"admin_delete_{name}"
    )


for _content_type in CRUD_TYPES:
    _register_content_routes(_content_type)
