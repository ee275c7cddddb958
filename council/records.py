"""
Record stores: CRUD access to one content type against one backend.

Every store speaks the same contract whatever it is backed by, so the API
and the migration runner never need to know where records actually live.
Records are plain dicts with camelCase keys and ISO-8601 UTC timestamps.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from council.errors import Conflict, NotFound, StorageUnavailable
from council.storage import StorageClient

if TYPE_CHECKING:
    from council.content import ContentType

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 50

Record = Dict[str, object]


class RecordStore(Protocol):
    """Uniform CRUD contract for one content type."""

    content_type: "ContentType"
    backend: str

    def get_all(self) -> Dict[str, Record]:
        ...

    def get_stored(self) -> Dict[str, Record]:
        """Records actually written, never the first-run defaults."""
        ...

    def get_by_id(self, record_id: str) -> Optional[Record]:
        ...

    def create(self, fields: Mapping) -> Record:
        ...

    def update(
        self,
        record_id: str,
        fields: Mapping,
        *,
        expected_updated_at: Optional[str] = None,
    ) -> Record:
        ...

    def delete(self, record_id: str) -> None:
        ...

    def get_for_display(self) -> list[Record]:
        ...

    def import_record(self, record: Mapping) -> Record:
        ...

    def clear(self) -> int:
        ...


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    slug = re.sub(r"[^a-z0-9\s]", "", (text or "").lower())
    slug = re.sub(r"\s+", "-", slug.strip())
    return slug[:max_length].strip("-")


def unique_identifier(base: str, exists: Callable[[str], bool]) -> str:
    """Return ``base`` or the first ``base-N`` for which ``exists`` is false."""
    candidate = base
    counter = 1
    while exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous=None) -> datetime:
    """Current time, nudged forward so it is strictly after ``previous``."""
    now = utcnow()
    last = parse_timestamp(previous)
    if last is not None and now <= last:
        return last + timedelta(microseconds=1)
    return now


def same_timestamp(left, right) -> bool:
    left_parsed, right_parsed = parse_timestamp(left), parse_timestamp(right)
    if left_parsed is None or right_parsed is None:
        return left == right
    return left_parsed == right_parsed


def writable_fields(fields: Mapping) -> dict:
    """Drop keys callers are never allowed to set directly."""
    return {
        key: value
        for key, value in fields.items()
        if key not in ("id", "createdAt", "updatedAt")
    }


class DictRecordStore:
    """
    Shared logic for backends that hold a whole content type as one
    ``id -> record`` document (memory, flat file, blob object).

    Subclasses implement ``_load`` (return None when the backing resource
    does not exist yet) and ``_save``.
    """

    backend = "dict"

    def __init__(
        self,
        content_type: "ContentType",
        defaults: Optional[Mapping[str, Record]] = None,
    ):
        self.content_type = content_type
        self.defaults = defaults

    def _load(self) -> Optional[Dict[str, Record]]:
        raise NotImplementedError

    def _save(self, records: Dict[str, Record]) -> None:
        raise NotImplementedError

    def get_all(self) -> Dict[str, Record]:
        records = self._load()
        if records is None:
            return copy.deepcopy(dict(self.defaults or {}))
        return records

    def get_stored(self) -> Dict[str, Record]:
        return self._load() or {}

    def get_by_id(self, record_id: str) -> Optional[Record]:
        return self.get_all().get(record_id)

    def get_for_display(self) -> list[Record]:
        return self.content_type.project(self.get_all().values())

    def _check_unique(
        self, records: Mapping[str, Record], fields: Mapping, exclude_id: Optional[str] = None
    ) -> None:
        for field_name in self.content_type.unique_fields:
            value = fields.get(field_name)
            if value is None:
                continue
            for other_id, other in records.items():
                if other_id != exclude_id and other.get(field_name) == value:
                    raise Conflict(
                        f"{self.content_type.label} with this {field_name} already exists"
                    )

    def create(self, fields: Mapping) -> Record:
        records = self.get_all()
        data = writable_fields(fields)
        self._check_unique(records, data)
        record_id = unique_identifier(
            self.content_type.base_identifier(data), lambda candidate: candidate in records
        )
        stamp = format_timestamp(utcnow())
        record = {**data, "id": record_id, "createdAt": stamp, "updatedAt": stamp}
        records[record_id] = record
        self._save(records)
        logger.info("Created %s %s (%s)", self.content_type.name, record_id, self.backend)
        return record

    def update(
        self,
        record_id: str,
        fields: Mapping,
        *,
        expected_updated_at: Optional[str] = None,
    ) -> Record:
        records = self.get_all()
        existing = records.get(record_id)
        if existing is None:
            raise NotFound(self.content_type.label, record_id)
        if expected_updated_at is not None and not same_timestamp(
            existing.get("updatedAt"), expected_updated_at
        ):
            raise Conflict(f"{self.content_type.label} was modified by another request")
        data = writable_fields(fields)
        self._check_unique(records, data, exclude_id=record_id)
        record = {
            **existing,
            **data,
            "id": record_id,
            "createdAt": existing.get("createdAt"),
            "updatedAt": format_timestamp(next_timestamp(existing.get("updatedAt"))),
        }
        records[record_id] = record
        self._save(records)
        logger.info("Updated %s %s (%s)", self.content_type.name, record_id, self.backend)
        return record

    def delete(self, record_id: str) -> None:
        records = self.get_all()
        if record_id not in records:
            raise NotFound(self.content_type.label, record_id)
        del records[record_id]
        self._save(records)
        logger.info("Deleted %s %s (%s)", self.content_type.name, record_id, self.backend)

    def import_record(self, record: Mapping) -> Record:
        records = self.get_all()
        record_id = str(record["id"])
        self._check_unique(records, record, exclude_id=record_id)
        stored = _stamped_copy(record)
        records[record_id] = stored
        self._save(records)
        return stored

    def clear(self) -> int:
        records = self._load() or {}
        self._save({})
        logger.warning(
            "Cleared %d %s records (%s)", len(records), self.content_type.name, self.backend
        )
        return len(records)


def _checked_document(records, location, content_type: "ContentType") -> Dict[str, Record]:
    """A stored document must be one ``id -> record`` object."""
    if not isinstance(records, dict):
        logger.error("%s holds a %s, expected an object", location, type(records).__name__)
        raise StorageUnavailable(f"Failed to fetch {content_type.plural}")
    return records


def _stamped_copy(record: Mapping) -> Record:
    stored = dict(record)
    created = parse_timestamp(stored.get("createdAt")) or utcnow()
    updated = parse_timestamp(stored.get("updatedAt")) or created
    stored["createdAt"] = format_timestamp(created)
    stored["updatedAt"] = format_timestamp(max(created, updated))
    return stored


class InMemoryRecordStore(DictRecordStore):
    """Store for development and tests; starts out "missing" like an unwritten file."""

    backend = "memory"

    def __init__(self, content_type, defaults=None, records: Optional[Mapping] = None):
        super().__init__(content_type, defaults)
        self.records: Optional[Dict[str, Record]] = (
            copy.deepcopy(dict(records)) if records is not None else None
        )

    def _load(self) -> Optional[Dict[str, Record]]:
        if self.records is None:
            return None
        return copy.deepcopy(self.records)

    def _save(self, records: Dict[str, Record]) -> None:
        self.records = copy.deepcopy(records)


class FileRecordStore(DictRecordStore):
    """One pretty-printed JSON document per content type under ``data_dir``."""

    backend = "file"

    def __init__(self, content_type, data_dir: str | os.PathLike, defaults=None):
        super().__init__(content_type, defaults)
        self.path = Path(data_dir) / content_type.file_name

    def _load(self) -> Optional[Dict[str, Record]]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("Error reading %s", self.path)
            raise StorageUnavailable(f"Failed to fetch {self.content_type.plural}") from exc
        return _checked_document(records, self.path, self.content_type)

    def _save(self, records: Dict[str, Record]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(records, tmp, indent=2, default=str)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.exception("Error saving %s", self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageUnavailable(f"Failed to save {self.content_type.plural}") from exc


class BlobRecordStore(DictRecordStore):
    """One JSON object per content type at a well-known key in the blob store."""

    backend = "blob"

    def __init__(self, content_type, client: StorageClient, defaults=None):
        super().__init__(content_type, defaults)
        self.client = client
        self.key = content_type.blob_key

    def _load(self) -> Optional[Dict[str, Record]]:
        try:
            body = self.client.get_bytes(self.key)
        except FileNotFoundError:
            logger.info("Blob %s not found, using default data", self.key)
            return None
        except (BotoCoreError, ClientError, OSError) as exc:
            logger.exception("Error fetching blob %s", self.key)
            raise StorageUnavailable(f"Failed to fetch {self.content_type.plural}") from exc
        try:
            records = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.exception("Blob %s is not valid JSON", self.key)
            raise StorageUnavailable(f"Failed to fetch {self.content_type.plural}") from exc
        return _checked_document(records, self.key, self.content_type)

    def _save(self, records: Dict[str, Record]) -> None:
        try:
            self.client.upload_json(self.key, records)
        except (BotoCoreError, ClientError, OSError) as exc:
            logger.exception("Error saving blob %s", self.key)
            raise StorageUnavailable(f"Failed to save {self.content_type.plural}") from exc
