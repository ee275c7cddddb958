"""
Singleton records: site-wide settings and the footer contact information.

Settings live in a single record (id ``site``) of the ``settings`` content
type and contact details in the ``contact`` record of the ``contact`` type,
so both move between backends exactly like every other record.
"""

from __future__ import annotations

import logging
from typing import Iterable

from council.defaults import DEFAULT_CONTACT_INFO
from council.errors import NotFound, StorageUnavailable, ValidationError
from council.records import RecordStore, format_timestamp, utcnow

logger = logging.getLogger(__name__)

SETTINGS_ID = "site"
EDITABLE_SETTINGS = ("hackathonsVisible",)
CONTACT_ID = "contact"
NESTED_CONTACT_FIELDS = ("address", "socialMedia")


class SiteSettingsService:
    def __init__(self, store: RecordStore, configured_admin_emails: Iterable[str] = ()):
        self.store = store
        self.configured_admin_emails = sorted(
            {email.strip().lower() for email in configured_admin_emails if email.strip()}
        )

    def get(self) -> dict:
        record = self.store.get_by_id(SETTINGS_ID)
        if record is None:
            return {
                "id": SETTINGS_ID,
                "hackathonsVisible": True,
                "adminEmails": [],
                "lastModified": None,
                "modifiedBy": "system",
            }
        return record

    def _save(self, changes: dict, modified_by: str) -> dict:
        fields = {
            **changes,
            "lastModified": format_timestamp(utcnow()),
            "modifiedBy": modified_by,
        }
        if self.store.get_by_id(SETTINGS_ID) is None:
            return self.store.import_record({**self.get(), **fields})
        return self.store.update(SETTINGS_ID, fields)

    def update_setting(self, key: str, value, modified_by: str) -> dict:
        if key not in EDITABLE_SETTINGS:
            raise ValidationError("Invalid setting key", [{"loc": ["setting"], "msg": key}])
        logger.info("Setting %s=%r by %s", key, value, modified_by)
        return self._save({key: value}, modified_by)

    def hackathons_visible(self) -> bool:
        return bool(self.get().get("hackathonsVisible", True))

    def admin_emails(self) -> list[str]:
        """Persisted allow-list merged with the configured baseline."""
        try:
            persisted = self.get().get("adminEmails") or []
        except StorageUnavailable:
            logger.error("Error loading admin emails, using configured fallback")
            persisted = []
        return sorted(
            {email.strip().lower() for email in persisted if email} | set(self.configured_admin_emails)
        )

    def add_admin_email(self, email: str, modified_by: str) -> list[str]:
        email = email.strip().lower()
        persisted = [e.lower() for e in self.get().get("adminEmails") or []]
        if email not in persisted:
            self._save({"adminEmails": sorted(persisted + [email])}, modified_by)
            logger.info("Admin email %s added by %s", email, modified_by)
        return self.admin_emails()

    def remove_admin_email(self, email: str, modified_by: str) -> list[str]:
        email = email.strip().lower()
        persisted = [e.lower() for e in self.get().get("adminEmails") or []]
        if email not in persisted:
            if email in self.configured_admin_emails:
                raise ValidationError(
                    "Admin email is configured through ADMIN_EMAILS and cannot be removed here"
                )
            raise NotFound("Admin email", email)
        remaining = [e for e in persisted if e != email]
        if not set(remaining) | set(self.configured_admin_emails):
            raise ValidationError("Cannot remove the last admin email")
        self._save({"adminEmails": remaining}, modified_by)
        logger.info("Admin email %s removed by %s", email, modified_by)
        return self.admin_emails()


class ContactInfoService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get(self) -> dict:
        """Stored contact info, with any missing field filled from the defaults."""
        default = DEFAULT_CONTACT_INFO[CONTACT_ID]
        record = self.store.get_by_id(CONTACT_ID) or {}
        merged = {**default, **record}
        for key in NESTED_CONTACT_FIELDS:
            merged[key] = {**default[key], **(record.get(key) or {})}
        return merged

    def _save(self, contact_info: dict, modified_by: str) -> dict:
        fields = {
            key: contact_info[key]
            for key in ("address", "phone", "email", "socialMedia")
            if key in contact_info
        }
        fields["lastModified"] = format_timestamp(utcnow())
        fields["modifiedBy"] = modified_by
        if self.store.get_by_id(CONTACT_ID) is None:
            self.store.import_record({**self.get(), **fields, "id": CONTACT_ID})
        else:
            self.store.update(CONTACT_ID, fields)
        return self.get()

    def replace(self, contact_info: dict, modified_by: str) -> dict:
        logger.info("Contact info replaced by %s", modified_by)
        return self._save(contact_info, modified_by)

    def update_field(self, field: str, value, modified_by: str) -> dict:
        """Set one field; ``address.city`` style paths reach into the nested groups."""
        current = self.get()
        parent, _, child = field.partition(".")
        if child:
            if parent not in NESTED_CONTACT_FIELDS or child not in current[parent]:
                raise ValidationError("Invalid contact field", [{"loc": ["field"], "msg": field}])
            changes = {parent: {**current[parent], child: value}}
        elif field in ("phone", "email"):
            changes = {field: value}
        else:
            raise ValidationError("Invalid contact field", [{"loc": ["field"], "msg": field}])
        logger.info("Contact field %s updated by %s", field, modified_by)
        return self._save(changes, modified_by)

    def reset(self, modified_by: str) -> dict:
        logger.warning("Contact info reset to defaults by %s", modified_by)
        return self._save(DEFAULT_CONTACT_INFO[CONTACT_ID], modified_by)
