"""
Content types served by the site and everything that differs between them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, Type

from pydantic import BaseModel

from council import defaults, display, legacy, schemas
from council.records import slugify


@dataclass(frozen=True)
class ContentType:
    name: str
    path: str
    label: str
    plural: str
    identifier: Callable[[Mapping], str]
    create_schema: Optional[Type[BaseModel]]
    update_schema: Optional[Type[BaseModel]]
    record_schema: Type[BaseModel]
    projector: Callable[[Iterable[dict]], list]
    legacy_mapper: Callable[[dict], dict]
    file_name: str
    blob_key: str
    defaults: Mapping[str, dict] = field(default_factory=dict)
    category_field: Optional[str] = None
    unique_fields: tuple = ()

    @property
    def singular(self) -> str:
        return self.label.lower().replace(" ", "-")

    def base_identifier(self, fields: Mapping) -> str:
        return self.identifier(fields).strip("-") or self.singular

    def project(self, records: Iterable[dict]) -> list:
        return self.projector(list(records))


def _slug_of(key: str) -> Callable[[Mapping], str]:
    return lambda fields: slugify(str(fields.get(key) or ""))


def _achievement_identifier(fields: Mapping) -> str:
    name = slugify(str(fields.get("competitionName") or ""))
    year = slugify(str(fields.get("year") or ""))
    return f"{name}-{year}"


def _magazine_identifier(fields: Mapping) -> str:
    year = slugify(str(fields.get("year") or ""))
    title = slugify(str(fields.get("title") or ""), max_length=30)
    return f"torque-{year}-{title}"


TEAM = ContentType(
    name="team",
    path="team",
    label="Team member",
    plural="team members",
    identifier=_slug_of("name"),
    create_schema=schemas.TeamMemberCreate,
    update_schema=schemas.TeamMemberUpdate,
    record_schema=schemas.TeamMemberRecord,
    projector=display.project_team,
    legacy_mapper=legacy.map_team_member,
    file_name="team.json",
    blob_key="team.json",
    defaults=defaults.DEFAULT_TEAM,
    category_field="category",
    unique_fields=("email",),
)

CLUBS = ContentType(
    name="clubs",
    path="clubs",
    label="Club",
    plural="clubs",
    identifier=_slug_of("name"),
    create_schema=schemas.ClubCreate,
    update_schema=schemas.ClubUpdate,
    record_schema=schemas.ClubRecord,
    projector=display.project_clubs,
    legacy_mapper=legacy.map_club,
    file_name="clubs.json",
    blob_key="clubs-data.json",
    defaults=defaults.DEFAULT_CLUBS,
    category_field="type",
)

EVENTS = ContentType(
    name="events",
    path="events",
    label="Event",
    plural="events",
    identifier=_slug_of("title"),
    create_schema=schemas.EventCreate,
    update_schema=schemas.EventUpdate,
    record_schema=schemas.EventRecord,
    projector=display.project_events,
    legacy_mapper=legacy.map_event,
    file_name="events.json",
    blob_key="events-data.json",
    defaults=defaults.DEFAULT_EVENTS,
    category_field="category",
)

HACKATHONS = ContentType(
    name="hackathons",
    path="hackathons",
    label="Hackathon",
    plural="hackathons",
    identifier=_slug_of("name"),
    create_schema=schemas.HackathonCreate,
    update_schema=schemas.HackathonUpdate,
    record_schema=schemas.HackathonRecord,
    projector=display.project_hackathons,
    legacy_mapper=legacy.map_hackathon,
    file_name="hackathons.json",
    blob_key="hackathons-data.json",
    defaults=defaults.DEFAULT_HACKATHONS,
    category_field="status",
)

ACHIEVEMENTS = ContentType(
    name="achievements",
    path="inter-iit-achievements",
    label="Achievement",
    plural="Inter-IIT achievements",
    identifier=_achievement_identifier,
    create_schema=schemas.AchievementCreate,
    update_schema=schemas.AchievementUpdate,
    record_schema=schemas.AchievementRecord,
    projector=display.project_achievements,
    legacy_mapper=legacy.map_achievement,
    file_name="inter-iit-achievements.json",
    blob_key="inter-iit-achievements-data.json",
    defaults=defaults.DEFAULT_ACHIEVEMENTS,
    category_field="achievementType",
)

MAGAZINES = ContentType(
    name="magazines",
    path="magazines",
    label="Magazine",
    plural="magazines",
    identifier=_magazine_identifier,
    create_schema=schemas.MagazineCreate,
    update_schema=schemas.MagazineUpdate,
    record_schema=schemas.MagazineRecord,
    projector=display.project_magazines,
    legacy_mapper=legacy.map_magazine,
    file_name="torque.json",
    blob_key="torque-data.json",
    defaults=defaults.DEFAULT_MAGAZINES,
    category_field="year",
)

SETTINGS = ContentType(
    name="settings",
    path="settings",
    label="Settings",
    plural="site settings",
    identifier=lambda fields: "site",
    create_schema=None,
    update_schema=None,
    record_schema=schemas.SiteSettingsRecord,
    projector=display.project_settings,
    legacy_mapper=legacy.map_settings,
    file_name="site-settings.json",
    blob_key="site-settings.json",
    defaults=defaults.DEFAULT_SETTINGS,
)

CONTACT_INFO = ContentType(
    name="contact",
    path="contact-info",
    label="Contact information",
    plural="contact information",
    identifier=lambda fields: "contact",
    create_schema=None,
    update_schema=None,
    record_schema=schemas.ContactInfoRecord,
    projector=display.project_contact_info,
    legacy_mapper=legacy.map_contact_info,
    file_name="contact-info.json",
    blob_key="contact-info.json",
    defaults=defaults.DEFAULT_CONTACT_INFO,
)

CONTENT_TYPES: dict[str, ContentType] = {
    content_type.name: content_type
    for content_type in (
        TEAM, CLUBS, EVENTS, HACKATHONS, ACHIEVEMENTS, MAGAZINES, SETTINGS, CONTACT_INFO
    )
}

# Content types exposed through the generic CRUD routes.
CRUD_TYPES = (TEAM, CLUBS, EVENTS, HACKATHONS, ACHIEVEMENTS, MAGAZINES)


def get_content_type(name: str) -> ContentType:
    try:
        return CONTENT_TYPES[name]
    except KeyError:
        raise KeyError(
            f"Unknown content type {name!r}; expected one of {sorted(CONTENT_TYPES)}"
        ) from None
