"""
Relational backend: one table per content type, via SQLAlchemy.

Accepts any SQLAlchemy URL (Postgres in production, SQLite for tests).
Nested structures are stored as one JSON column per field.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Type

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    inspect,
    select,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from council.content import ContentType
from council.errors import Conflict, NotFound, StorageUnavailable
from council.records import (
    Record,
    format_timestamp,
    next_timestamp,
    parse_timestamp,
    same_timestamp,
    unique_identifier,
    utcnow,
    writable_fields,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

JsonColumn = JSON().with_variant(JSONB(), "postgresql")
Timestamp = DateTime(timezone=True)


class Database:
    """Engine and session factory shared by every table-backed store."""

    def __init__(self, database_url: str, *, create_tables: bool = True):
        if not database_url:
            raise ValueError("DATABASE_URL is required for the database backend")
        options = {"future": True, "pool_pre_ping": True, "pool_recycle": 1800}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # A single shared connection so every thread sees the same database.
            options.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        self.engine = create_engine(database_url, **options)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        if create_tables:
            Base.metadata.create_all(self.engine)

    def has_table(self, table_name: str) -> bool:
        return inspect(self.engine).has_table(table_name)

    def dispose(self) -> None:
        self.engine.dispose()


class DatabaseRecordStore:
    """Record store over the table mapped to ``content_type``."""

    backend = "database"

    def __init__(
        self,
        content_type: ContentType,
        database: Database,
        defaults: Optional[Mapping[str, Record]] = None,
    ):
        self.content_type = content_type
        self.database = database
        self.defaults = defaults
        self.model: Type = MODELS[content_type.name]
        self.columns = [attr.key for attr in inspect(self.model).column_attrs]

    def _to_record(self, row) -> Record:
        record: Record = {}
        for key in self.columns:
            value = getattr(row, key)
            if key in ("createdAt", "updatedAt"):
                value = format_timestamp(value) if value is not None else None
            record[key] = value
        return record

    def _row_values(self, fields: Mapping) -> dict:
        return {key: value for key, value in fields.items() if key in self.columns}

    def _unavailable(self, action: str, exc: Exception) -> StorageUnavailable:
        logger.exception("Database error while trying to %s %s", action, self.content_type.name)
        return StorageUnavailable(f"Failed to {action} {self.content_type.plural}")

    def _load(self) -> Optional[Dict[str, Record]]:
        try:
            with self.database.Session() as session:
                rows = session.execute(select(self.model)).scalars().all()
                return {row.id: self._to_record(row) for row in rows}
        except SQLAlchemyError as exc:
            if not self._table_exists():
                return None
            raise self._unavailable("fetch", exc) from exc

    def get_all(self) -> Dict[str, Record]:
        records = self._load()
        if records is None:
            logger.info("Table %s missing, using default data", self.model.__tablename__)
            return {key: dict(value) for key, value in (self.defaults or {}).items()}
        return records

    def get_stored(self) -> Dict[str, Record]:
        return self._load() or {}

    def _table_exists(self) -> bool:
        try:
            return self.database.has_table(self.model.__tablename__)
        except SQLAlchemyError:
            return True

    def get_by_id(self, record_id: str) -> Optional[Record]:
        try:
            with self.database.Session() as session:
                row = session.get(self.model, record_id)
                return self._to_record(row) if row else None
        except SQLAlchemyError as exc:
            raise self._unavailable("fetch", exc) from exc

    def get_for_display(self) -> list[Record]:
        return self.content_type.project(self.get_all().values())

    def create(self, fields: Mapping) -> Record:
        values = self._row_values(writable_fields(fields))
        now = utcnow()
        try:
            with self.database.Session() as session:
                record_id = unique_identifier(
                    self.content_type.base_identifier(values),
                    lambda candidate: session.get(self.model, candidate) is not None,
                )
                row = self.model(**values, id=record_id, createdAt=now, updatedAt=now)
                session.add(row)
                session.commit()
                logger.info("Created %s %s (database)", self.content_type.name, record_id)
                return self._to_record(row)
        except IntegrityError as exc:
            logger.warning("Integrity error creating %s: %s", self.content_type.name, exc.orig)
            raise Conflict(f"{self.content_type.label} already exists") from exc
        except SQLAlchemyError as exc:
            raise self._unavailable("create", exc) from exc

    def update(
        self,
        record_id: str,
        fields: Mapping,
        *,
        expected_updated_at: Optional[str] = None,
    ) -> Record:
        values = self._row_values(writable_fields(fields))
        try:
            with self.database.Session() as session:
                row = session.get(self.model, record_id, with_for_update=True)
                if row is None:
                    raise NotFound(self.content_type.label, record_id)
                if expected_updated_at is not None and not same_timestamp(
                    row.updatedAt, expected_updated_at
                ):
                    raise Conflict(
                        f"{self.content_type.label} was modified by another request"
                    )
                for key, value in values.items():
                    setattr(row, key, value)
                row.updatedAt = next_timestamp(row.updatedAt)
                session.commit()
                logger.info("Updated %s %s (database)", self.content_type.name, record_id)
                return self._to_record(row)
        except IntegrityError as exc:
            logger.warning("Integrity error updating %s: %s", self.content_type.name, exc.orig)
            raise Conflict(f"{self.content_type.label} conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            raise self._unavailable("update", exc) from exc

    def delete(self, record_id: str) -> None:
        try:
            with self.database.Session() as session:
                row = session.get(self.model, record_id)
                if row is None:
                    raise NotFound(self.content_type.label, record_id)
                session.delete(row)
                session.commit()
                logger.info("Deleted %s %s (database)", self.content_type.name, record_id)
        except SQLAlchemyError as exc:
            raise self._unavailable("delete", exc) from exc

    def import_record(self, record: Mapping) -> Record:
        values = self._row_values(record)
        created = parse_timestamp(values.get("createdAt")) or utcnow()
        updated = parse_timestamp(values.get("updatedAt")) or created
        values["createdAt"] = created
        values["updatedAt"] = max(created, updated)
        try:
            with self.database.Session() as session:
                row = session.merge(self.model(**values))
                session.commit()
                return self._to_record(row)
        except IntegrityError as exc:
            raise Conflict(f"{self.content_type.label} conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            raise self._unavailable("save", exc) from exc

    def clear(self) -> int:
        try:
            with self.database.Session() as session:
                removed = session.query(self.model).delete(synchronize_session=False)
                session.commit()
        except SQLAlchemyError as exc:
            raise self._unavailable("clear", exc) from exc
        logger.warning("Cleared %d %s rows", removed or 0, self.content_type.name)
        return removed or 0


class TeamMemberRow(Base):
    __tablename__ = "team_members"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    position = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    initials = Column(String, nullable=False)
    gradientFrom = Column("gradient_from", String, nullable=False)
    gradientTo = Column("gradient_to", String, nullable=False)
    category = Column(String, nullable=False, index=True)
    photoPath = Column("photo_path", String, nullable=True)
    isSecretary = Column("is_secretary", Boolean, nullable=False, default=False)
    isCoordinator = Column("is_coordinator", Boolean, nullable=False, default=False)
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class ClubRow(Base):
    __tablename__ = "clubs"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    longDescription = Column("long_description", Text, nullable=True)
    type = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    members = Column(String, nullable=True)
    established = Column(String, nullable=True)
    email = Column(String, nullable=False)
    achievements = Column(JsonColumn, nullable=False, default=list)
    projects = Column(JsonColumn, nullable=False, default=list)
    team = Column(JsonColumn, nullable=False, default=list)
    logoPath = Column("logo_path", String, nullable=True)
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class EventRow(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(String, nullable=False)
    location = Column(String, nullable=False)
    duration = Column(String, nullable=False)
    participants = Column(String, nullable=False)
    organizer = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    highlights = Column(JsonColumn, nullable=False, default=list)
    gallery = Column(JsonColumn, nullable=False, default=list)
    draft = Column(Boolean, nullable=False, default=False)
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class HackathonRow(Base):
    __tablename__ = "hackathons"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    longDescription = Column("long_description", Text, nullable=True)
    date = Column(String, nullable=False)
    registrationDeadline = Column("registration_deadline", String, nullable=True)
    location = Column(String, nullable=False)
    duration = Column(String, nullable=True)
    maxParticipants = Column("max_participants", String, nullable=True)
    currentParticipants = Column("current_participants", String, nullable=True)
    prizes = Column(JsonColumn, nullable=False, default=list)
    organizers = Column(JsonColumn, nullable=False, default=list)
    registrationLink = Column("registration_link", String, nullable=True)
    status = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    requirements = Column(JsonColumn, nullable=False, default=list)
    schedule = Column(JsonColumn, nullable=False, default=list)
    sponsors = Column(JsonColumn, nullable=False, default=list)
    winners = Column(JsonColumn, nullable=False, default=list)
    logoPath = Column("logo_path", String, nullable=True)
    bannerPath = Column("banner_path", String, nullable=True)
    gallery = Column(JsonColumn, nullable=False, default=list)
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class AchievementRow(Base):
    __tablename__ = "inter_iit_achievements"

    id = Column(String, primary_key=True)
    achievementType = Column("achievement_type", String, nullable=False, index=True)
    competitionName = Column("competition_name", String, nullable=False)
    interIITEdition = Column("inter_iit_edition", String, nullable=False)
    year = Column(String, nullable=False)
    hostIIT = Column("host_iit", String, nullable=False)
    location = Column(String, nullable=False)
    ranking = Column(Integer, nullable=True)
    achievementDescription = Column("achievement_description", Text, nullable=False)
    significance = Column(Text, nullable=False)
    competitionCategory = Column("competition_category", String, nullable=False)
    achievementDate = Column("achievement_date", String, nullable=False)
    points = Column(Integer, nullable=True)
    status = Column(String, nullable=False)
    teamMembers = Column("team_members", JsonColumn, nullable=False, default=list)
    supportingDocuments = Column(
        "supporting_documents", JsonColumn, nullable=False, default=list
    )
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class MagazineRow(Base):
    __tablename__ = "magazines"

    id = Column(String, primary_key=True)
    year = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    pages = Column(Integer, nullable=False)
    articles = Column(Integer, nullable=False)
    featured = Column(String, nullable=False)
    filePath = Column("file_path", String, nullable=False)
    fileName = Column("file_name", String, nullable=True)
    fileSize = Column("file_size", Integer, nullable=True)
    coverPhoto = Column("cover_photo", String, nullable=True)
    coverPhotoFileName = Column("cover_photo_file_name", String, nullable=True)
    isLatest = Column("is_latest", Boolean, nullable=False, default=False)
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class SiteSettingsRow(Base):
    __tablename__ = "site_settings"

    id = Column(String, primary_key=True)
    hackathonsVisible = Column("hackathons_visible", Boolean, nullable=False, default=True)
    adminEmails = Column("admin_emails", JsonColumn, nullable=False, default=list)
    lastModified = Column("last_modified", String, nullable=True)
    modifiedBy = Column("modified_by", String, nullable=False, default="system")
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


class ContactInfoRow(Base):
    __tablename__ = "contact_info"

    id = Column(String, primary_key=True)
    address = Column(JsonColumn, nullable=False, default=dict)
    phone = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    socialMedia = Column("social_media", JsonColumn, nullable=False, default=dict)
    lastModified = Column("last_modified", String, nullable=True)
    modifiedBy = Column("modified_by", String, nullable=False, default="system")
    createdAt = Column("created_at", Timestamp, nullable=False)
    updatedAt = Column("updated_at", Timestamp, nullable=False)


MODELS: Dict[str, Type] = {
    "team": TeamMemberRow,
    "clubs": ClubRow,
    "events": EventRow,
    "hackathons": HackathonRow,
    "achievements": AchievementRow,
    "magazines": MagazineRow,
    "settings": SiteSettingsRow,
    "contact": ContactInfoRow,
}
