"""
Display projectors: narrow full records to what public pages may see.

Each projector takes an iterable of stored records and returns the ordered
list the public endpoint serves. They never touch storage.
"""

from __future__ import annotations

from typing import Iterable

from council.records import parse_timestamp

EVENT_PLACEHOLDER_IMAGE = "/events/placeholder-1.svg"
TEAM_PLACEHOLDER_PHOTO = "/team/placeholder.svg"

_TIMESTAMPS = ("createdAt", "updatedAt")


def _without(record: dict, *keys: str) -> dict:
    return {key: value for key, value in record.items() if key not in keys}


def _sort_key_time(value) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else float("-inf")


def _sort_key_year(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return -1


def project_events(records: Iterable[dict]) -> list[dict]:
    published = [record for record in records if not record.get("draft")]
    published.sort(key=lambda record: _sort_key_time(record.get("date")), reverse=True)
    projected = []
    for event in published:
        gallery = event.get("gallery") or []
        image = gallery[0].get("url") if gallery and isinstance(gallery[0], dict) else None
        projected.append(
            {
                "id": event["id"],
                "title": event.get("title"),
                "description": event.get("description"),
                "organizer": event.get("organizer"),
                "date": event.get("date"),
                "location": event.get("location"),
                "category": event.get("category"),
                "image": image or EVENT_PLACEHOLDER_IMAGE,
            }
        )
    return projected


def project_clubs(records: Iterable[dict]) -> list[dict]:
    clubs = sorted(records, key=lambda record: (record.get("name") or "").lower())
    return [
        {
            "id": club["id"],
            "name": club.get("name"),
            "description": club.get("description"),
            "type": club.get("type"),
            "category": club.get("category"),
            "logoPath": club.get("logoPath"),
        }
        for club in clubs
    ]


def _team_rank(member: dict) -> tuple:
    if member.get("isSecretary"):
        rank = 0
    elif member.get("isCoordinator"):
        rank = 1
    else:
        rank = 2
    return rank, (member.get("name") or "").lower()


def project_team(records: Iterable[dict]) -> list[dict]:
    projected = []
    for member in sorted(records, key=_team_rank):
        public = _without(member, *_TIMESTAMPS)
        public["photoPath"] = member.get("photoPath") or TEAM_PLACEHOLDER_PHOTO
        public["isSecretary"] = bool(member.get("isSecretary"))
        public["isCoordinator"] = bool(member.get("isCoordinator"))
        projected.append(public)
    return projected


def project_leadership(records: Iterable[dict]) -> list[dict]:
    return [
        member
        for member in project_team(records)
        if member["isSecretary"] or member["isCoordinator"]
    ]


def project_hackathons(records: Iterable[dict]) -> list[dict]:
    hackathons = sorted(
        records, key=lambda record: _sort_key_time(record.get("updatedAt")), reverse=True
    )
    projected = []
    for hackathon in hackathons:
        public = _without(hackathon, *_TIMESTAMPS)
        public["organizers"] = [
            _without(organizer, "phone") for organizer in hackathon.get("organizers") or []
        ]
        projected.append(public)
    return projected


def project_achievements(records: Iterable[dict]) -> list[dict]:
    verified = [record for record in records if record.get("status") == "verified"]
    verified.sort(
        key=lambda record: _sort_key_time(record.get("achievementDate")), reverse=True
    )
    projected = []
    for achievement in verified:
        public = _without(achievement, *_TIMESTAMPS)
        public["teamMembers"] = [
            _without(member, "phone", "rollNumber")
            for member in achievement.get("teamMembers") or []
        ]
        projected.append(public)
    return projected


def project_magazines(records: Iterable[dict]) -> list[dict]:
    magazines = sorted(
        records, key=lambda record: _sort_key_year(record.get("year")), reverse=True
    )
    return [
        {
            "id": magazine["id"],
            "year": magazine.get("year"),
            "title": magazine.get("title"),
            "description": magazine.get("description"),
            "pages": magazine.get("pages"),
            "articles": magazine.get("articles"),
            "featured": magazine.get("featured"),
            "downloadUrl": magazine.get("filePath"),
            "viewUrl": magazine.get("filePath"),
            "coverPhoto": magazine.get("coverPhoto"),
            "isLatest": bool(magazine.get("isLatest")),
        }
        for magazine in magazines
    ]


def project_settings(records: Iterable[dict]) -> list[dict]:
    return [
        {"id": record["id"], "hackathonsVisible": bool(record.get("hackathonsVisible", True))}
        for record in records
    ]


def project_contact_info(records: Iterable[dict]) -> list[dict]:
    return [
        {
            "address": record.get("address") or {},
            "phone": record.get("phone") or "",
            "email": record.get("email") or "",
            "socialMedia": record.get("socialMedia") or {},
        }
        for record in records
    ]
