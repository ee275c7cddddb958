"""
Mappers from legacy record shapes onto the current record schema.

The flat-file, blob and Firestore eras each stored slightly different
shapes (missing list fields, photo paths nested under ``photo``, gallery
entries as bare URLs, ...). These functions are only used by the
migration runner; validation of the result happens there.
"""

from __future__ import annotations

from typing import Any

from council.schemas import initials_for


def _list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _int(value: Any):
    if value is None or value == "":
        return None
    return int(value)


def map_team_member(legacy: dict) -> dict:
    record = dict(legacy)
    photo = record.pop("photo", None)
    photo_path = record.get("photoPath")
    if not photo_path and isinstance(photo, dict):
        photo_path = photo.get("storagePath") or photo.get("url")
    if not photo_path:
        photo_path = record.get("photoURL") or record.get("photoUrl")
    record.pop("photoURL", None)
    record.pop("photoUrl", None)
    record["photoPath"] = photo_path or None
    if not (record.get("initials") or "").strip() and record.get("name"):
        record["initials"] = initials_for(record["name"])
    record["isSecretary"] = _bool(record.get("isSecretary", False))
    record["isCoordinator"] = _bool(record.get("isCoordinator", False))
    return record


def map_club(legacy: dict) -> dict:
    record = dict(legacy)
    for key in ("achievements", "projects", "team"):
        record[key] = _list(record.get(key))
    if not record.get("longDescription"):
        record["longDescription"] = record.get("description")
    return record


def _gallery_item(item: Any, index: int, title: str) -> Any:
    if isinstance(item, str):
        return {"id": f"image-{index + 1}", "url": item, "alt": title or "Event image"}
    return item


def map_event(legacy: dict) -> dict:
    record = dict(legacy)
    record["highlights"] = _list(record.get("highlights"))
    record["gallery"] = [
        _gallery_item(item, index, record.get("title") or "")
        for index, item in enumerate(_list(record.get("gallery")))
    ]
    # Legacy stores had no drafts: everything there was published.
    record["draft"] = _bool(record.get("draft", False))
    return record


def map_hackathon(legacy: dict) -> dict:
    record = dict(legacy)
    for key in (
        "prizes",
        "organizers",
        "requirements",
        "schedule",
        "sponsors",
        "winners",
        "gallery",
    ):
        record[key] = _list(record.get(key))
    record.setdefault("status", "upcoming")
    return record


def map_achievement(legacy: dict) -> dict:
    record = dict(legacy)
    record["teamMembers"] = [
        {**member, "achievements": _list(member.get("achievements"))}
        if isinstance(member, dict)
        else member
        for member in _list(record.get("teamMembers"))
    ]
    record["supportingDocuments"] = [
        {**document, "description": document.get("description") or ""}
        if isinstance(document, dict)
        else document
        for document in _list(record.get("supportingDocuments"))
    ]
    record["ranking"] = _int(record.get("ranking"))
    record["points"] = _int(record.get("points"))
    return record


def map_magazine(legacy: dict) -> dict:
    record = dict(legacy)
    record["pages"] = _int(record.get("pages"))
    record["articles"] = _int(record.get("articles"))
    record["fileSize"] = _int(record.get("fileSize"))
    record["isLatest"] = _bool(record.get("isLatest", False))
    return record


def map_settings(legacy: dict) -> dict:
    record = dict(legacy)
    record.setdefault("hackathonsVisible", True)
    record["adminEmails"] = [
        str(email).strip().lower() for email in _list(record.get("adminEmails")) if email
    ]
    return record


def map_contact_info(legacy: dict) -> dict:
    record = dict(legacy)
    for key in ("address", "socialMedia"):
        if not isinstance(record.get(key), dict):
            record[key] = {}
    return record
