"""
Pydantic schemas for request bodies and stored records.

Field names are camelCase because they are the wire format the site's
frontend and the legacy JSON documents already use.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UpdatePayload(_Payload):
    # Optimistic concurrency: reject the update if the stored record moved on.
    expectedUpdatedAt: Optional[str] = None


class _Stamped(BaseModel):
    id: str = Field(..., min_length=1)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


def _fill_blank(model: BaseModel, defaults: dict) -> None:
    for name, default in defaults.items():
        value = getattr(model, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            setattr(model, name, default)


def initials_for(name: str) -> str:
    parts = [part for part in name.split() if part]
    return "".join(part[0] for part in parts[:2]).upper()


# -- team -------------------------------------------------------------------

TEAM_DEFAULTS = {"gradientFrom": "from-blue-600", "gradientTo": "to-purple-600"}


class TeamMemberCreate(_Payload):
    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    email: EmailStr
    category: str = Field(..., min_length=1)
    initials: Optional[str] = None
    gradientFrom: Optional[str] = None
    gradientTo: Optional[str] = None
    photoPath: Optional[str] = None
    isSecretary: bool = False
    isCoordinator: bool = False

    @model_validator(mode="after")
    def _defaults(self):
        _fill_blank(self, TEAM_DEFAULTS)
        if not (self.initials or "").strip():
            self.initials = initials_for(self.name)
        return self


class TeamMemberUpdate(UpdatePayload):
    name: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    category: Optional[str] = Field(None, min_length=1)
    initials: Optional[str] = Field(None, min_length=1)
    gradientFrom: Optional[str] = Field(None, min_length=1)
    gradientTo: Optional[str] = Field(None, min_length=1)
    photoPath: Optional[str] = None
    isSecretary: Optional[bool] = None
    isCoordinator: Optional[bool] = None


class TeamMemberRecord(TeamMemberCreate, _Stamped):
    pass


# -- clubs ------------------------------------------------------------------


class ClubTeamMember(BaseModel):
    name: str
    role: str
    email: str


ClubType = Literal["club", "hobby-group", "technical-council-group"]


class ClubCreate(_Payload):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    longDescription: Optional[str] = None
    type: ClubType
    category: str = Field(..., min_length=1)
    members: Optional[str] = None
    established: Optional[str] = None
    email: str = Field(..., min_length=1)
    achievements: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    team: list[ClubTeamMember] = Field(default_factory=list)
    logoPath: Optional[str] = None

    @model_validator(mode="after")
    def _defaults(self):
        _fill_blank(self, {"longDescription": self.description})
        return self


class ClubUpdate(UpdatePayload):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    longDescription: Optional[str] = None
    type: Optional[ClubType] = None
    category: Optional[str] = Field(None, min_length=1)
    members: Optional[str] = None
    established: Optional[str] = None
    email: Optional[str] = Field(None, min_length=1)
    achievements: Optional[list[str]] = None
    projects: Optional[list[str]] = None
    team: Optional[list[ClubTeamMember]] = None
    logoPath: Optional[str] = None


class ClubRecord(ClubCreate, _Stamped):
    pass


# -- events -----------------------------------------------------------------

EVENT_DEFAULTS = {
    "location": "IITGN Campus",
    "duration": "1 day",
    "participants": "50+",
    "organizer": "Technical Council",
}


class GalleryItem(BaseModel):
    id: str
    url: str
    alt: str
    caption: Optional[str] = None


class EventCreate(_Payload):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1)
    location: Optional[str] = None
    duration: Optional[str] = None
    participants: Optional[str] = None
    organizer: Optional[str] = None
    category: str = Field(..., min_length=1)
    highlights: list[str] = Field(default_factory=list)
    gallery: list[GalleryItem] = Field(default_factory=list)
    draft: bool = False

    @model_validator(mode="after")
    def _defaults(self):
        _fill_blank(self, EVENT_DEFAULTS)
        return self


class EventUpdate(UpdatePayload):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    duration: Optional[str] = Field(None, min_length=1)
    participants: Optional[str] = Field(None, min_length=1)
    organizer: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    highlights: Optional[list[str]] = None
    gallery: Optional[list[GalleryItem]] = None
    draft: Optional[bool] = None


class EventRecord(EventCreate, _Stamped):
    pass


# -- hackathons -------------------------------------------------------------


class Prize(BaseModel):
    position: str
    amount: str
    description: Optional[str] = None


class Organizer(BaseModel):
    name: str
    role: str
    email: str
    phone: Optional[str] = None


class ScheduleItem(BaseModel):
    time: str
    activity: str
    description: Optional[str] = None
    location: Optional[str] = None


class Sponsor(BaseModel):
    name: str
    logoPath: Optional[str] = None
    website: Optional[str] = None
    tier: Literal["title", "gold", "silver", "bronze", "partner"] = "partner"


class Winner(BaseModel):
    position: str
    teamName: str
    members: list[str] = Field(default_factory=list)
    project: str
    description: Optional[str] = None


HackathonStatus = Literal["upcoming", "ongoing", "completed", "cancelled"]


class HackathonCreate(_Payload):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    longDescription: Optional[str] = None
    date: str = Field(..., min_length=1)
    registrationDeadline: Optional[str] = None
    location: str = Field(..., min_length=1)
    duration: Optional[str] = None
    maxParticipants: Optional[str] = None
    currentParticipants: Optional[str] = None
    prizes: list[Prize] = Field(default_factory=list)
    organizers: list[Organizer] = Field(default_factory=list)
    registrationLink: Optional[str] = None
    status: HackathonStatus = "upcoming"
    category: str = Field(..., min_length=1)
    requirements: list[str] = Field(default_factory=list)
    schedule: list[ScheduleItem] = Field(default_factory=list)
    sponsors: list[Sponsor] = Field(default_factory=list)
    winners: list[Winner] = Field(default_factory=list)
    logoPath: Optional[str] = None
    bannerPath: Optional[str] = None
    gallery: list[str] = Field(default_factory=list)


class HackathonUpdate(UpdatePayload):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    longDescription: Optional[str] = None
    date: Optional[str] = Field(None, min_length=1)
    registrationDeadline: Optional[str] = None
    location: Optional[str] = Field(None, min_length=1)
    duration: Optional[str] = None
    maxParticipants: Optional[str] = None
    currentParticipants: Optional[str] = None
    prizes: Optional[list[Prize]] = None
    organizers: Optional[list[Organizer]] = None
    registrationLink: Optional[str] = None
    status: Optional[HackathonStatus] = None
    category: Optional[str] = Field(None, min_length=1)
    requirements: Optional[list[str]] = None
    schedule: Optional[list[ScheduleItem]] = None
    sponsors: Optional[list[Sponsor]] = None
    winners: Optional[list[Winner]] = None
    logoPath: Optional[str] = None
    bannerPath: Optional[str] = None
    gallery: Optional[list[str]] = None


class HackathonRecord(HackathonCreate, _Stamped):
    pass


# -- Inter-IIT achievements -------------------------------------------------

AchievementType = Literal[
    "gold-medal",
    "silver-medal",
    "bronze-medal",
    "ranking",
    "special-award",
    "recognition",
]
AchievementStatus = Literal["verified", "pending-verification", "archived"]


class AchievementTeamMember(BaseModel):
    name: str
    rollNumber: str
    branch: str
    year: str
    role: Literal["Team Lead", "Member", "Coach", "Substitute"]
    email: str
    phone: Optional[str] = None
    achievements: list[str] = Field(default_factory=list)


class SupportingDocument(BaseModel):
    name: str
    type: Literal["certificate", "photo", "report", "rulebook", "other"]
    filePath: str
    uploadDate: str
    description: str = ""


class AchievementCreate(_Payload):
    achievementType: AchievementType
    competitionName: str = Field(..., min_length=1)
    interIITEdition: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1)
    hostIIT: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    ranking: Optional[int] = None
    teamMembers: list[AchievementTeamMember] = Field(default_factory=list)
    achievementDescription: str = Field(..., min_length=1)
    significance: str = Field(..., min_length=1)
    competitionCategory: str = Field(..., min_length=1)
    supportingDocuments: list[SupportingDocument] = Field(default_factory=list)
    achievementDate: str = Field(..., min_length=1)
    points: Optional[int] = None
    status: AchievementStatus = "pending-verification"


class AchievementUpdate(UpdatePayload):
    achievementType: Optional[AchievementType] = None
    competitionName: Optional[str] = Field(None, min_length=1)
    interIITEdition: Optional[str] = Field(None, min_length=1)
    year: Optional[str] = Field(None, min_length=1)
    hostIIT: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    ranking: Optional[int] = None
    teamMembers: Optional[list[AchievementTeamMember]] = None
    achievementDescription: Optional[str] = Field(None, min_length=1)
    significance: Optional[str] = Field(None, min_length=1)
    competitionCategory: Optional[str] = Field(None, min_length=1)
    supportingDocuments: Optional[list[SupportingDocument]] = None
    achievementDate: Optional[str] = Field(None, min_length=1)
    points: Optional[int] = None
    status: Optional[AchievementStatus] = None


class AchievementRecord(AchievementCreate, _Stamped):
    pass


# -- Torque magazines -------------------------------------------------------


class MagazineCreate(_Payload):
    year: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    pages: int = Field(..., ge=0)
    articles: int = Field(..., ge=0)
    featured: str = Field(..., min_length=1)
    filePath: str = Field(..., min_length=1)
    fileName: Optional[str] = None
    fileSize: Optional[int] = None
    coverPhoto: Optional[str] = None
    coverPhotoFileName: Optional[str] = None
    isLatest: bool = False


class MagazineUpdate(UpdatePayload):
    year: Optional[str] = Field(None, min_length=1)
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    pages: Optional[int] = Field(None, ge=0)
    articles: Optional[int] = Field(None, ge=0)
    featured: Optional[str] = Field(None, min_length=1)
    filePath: Optional[str] = Field(None, min_length=1)
    fileName: Optional[str] = None
    fileSize: Optional[int] = None
    coverPhoto: Optional[str] = None
    coverPhotoFileName: Optional[str] = None
    isLatest: Optional[bool] = None


class MagazineRecord(MagazineCreate, _Stamped):
    pass


# -- site settings ----------------------------------------------------------


class SiteSettingsRecord(_Stamped):
    hackathonsVisible: bool = True
    adminEmails: list[str] = Field(default_factory=list)
    lastModified: Optional[str] = None
    modifiedBy: str = "system"


class SettingUpdateRequest(_Payload):
    # Checked against EDITABLE_SETTINGS by the settings service.
    setting: str = Field(..., min_length=1)
    value: bool


class AdminEmailRequest(_Payload):
    email: EmailStr


# -- migration --------------------------------------------------------------


class MigrateRequest(_Payload):
    mode: Literal["skip", "replace"] = "skip"
    source: Optional[Literal["memory", "file", "blob", "database"]] = None
    dryRun: bool = False


# -- contact info -----------------------------------------------------------


class ContactAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postalCode: str = ""
    country: str = ""


class SocialMedia(BaseModel):
    instagram: str = ""
    youtube: str = ""
    linkedin: str = ""
    facebook: str = ""


class ContactInfoFields(_Payload):
    address: ContactAddress = Field(default_factory=ContactAddress)
    phone: str = ""
    email: str = ""
    socialMedia: SocialMedia = Field(default_factory=SocialMedia)


class ContactInfoRecord(ContactInfoFields, _Stamped):
    lastModified: Optional[str] = None
    modifiedBy: str = "system"


class ContactInfoUpdateRequest(_Payload):
    """Either a whole ``contactInfo`` document or one dotted ``field`` and its ``value``."""

    contactInfo: Optional[ContactInfoFields] = None
    field: Optional[str] = None
    value: Optional[str] = None
