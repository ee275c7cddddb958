"""
One-shot migration of a content type from a legacy store into the current one.

Records are processed one at a time. A record that fails to map, validate
or insert is collected in ``MigrationReport.errors`` and the pass goes on.
The target is re-read at the end for the verification summary. There is no
rollback; a partial run is left for manual follow-up.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Literal

from pydantic import ValidationError as SchemaValidationError

from council.content import ContentType
from council.errors import CouncilError, StorageUnavailable
from council.records import RecordStore

logger = logging.getLogger(__name__)

MigrationMode = Literal["skip", "replace"]


@dataclass
class MigrationError:
    record_id: str
    reason: str

    def as_dict(self) -> dict:
        return {"id": self.record_id, "reason": self.reason}


@dataclass
class MigrationReport:
    content_type: str
    source: str
    target: str
    mode: MigrationMode = "skip"
    dry_run: bool = False
    found: int = 0
    migrated: int = 0
    skipped: int = 0
    cleared: int = 0
    source_unavailable: bool = False
    total: int = 0
    breakdown: dict = field(default_factory=dict)
    errors: list[MigrationError] = field(default_factory=list)

    @property
    def any_migrated(self) -> bool:
        return self.migrated > 0 and not self.dry_run

    def as_dict(self) -> dict:
        return {
            "contentType": self.content_type,
            "source": self.source,
            "target": self.target,
            "mode": self.mode,
            "dryRun": self.dry_run,
            "found": self.found,
            "migrated": self.migrated,
            "skipped": self.skipped,
            "cleared": self.cleared,
            "sourceUnavailable": self.source_unavailable,
            "total": self.total,
            "breakdown": dict(self.breakdown),
            "errors": [error.as_dict() for error in self.errors],
        }


def _describe(exc: Exception) -> str:
    if isinstance(exc, SchemaValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<record>'}: {error['msg']}"
            for error in exc.errors()
        )
    if isinstance(exc, CouncilError):
        return exc.message
    return f"{type(exc).__name__}: {exc}"


def _verify(content_type: ContentType, target: RecordStore, report: MigrationReport) -> None:
    records = target.get_stored()
    report.total = len(records)
    if content_type.category_field:
        counts = Counter(
            str(record.get(content_type.category_field) or "uncategorized")
            for record in records.values()
        )
        report.breakdown = dict(sorted(counts.items()))


def run_migration(
    content_type: ContentType,
    source: RecordStore,
    target: RecordStore,
    *,
    mode: MigrationMode = "skip",
    dry_run: bool = False,
) -> MigrationReport:
    """
    Copy every record of ``content_type`` from ``source`` into ``target``.

    Raises StorageUnavailable only when the target cannot be reached; an
    unreachable or empty source is reported as zero migrated.
    """
    if mode not in ("skip", "replace"):
        raise ValueError(f"Unknown migration mode: {mode}")

    report = MigrationReport(
        content_type=content_type.name,
        source=getattr(source, "backend", type(source).__name__),
        target=getattr(target, "backend", type(target).__name__),
        mode=mode,
        dry_run=dry_run,
    )
    logger.info(
        "Starting %s migration: %s -> %s (mode=%s, dry_run=%s)",
        content_type.name,
        report.source,
        report.target,
        mode,
        dry_run,
    )

    try:
        legacy_records = source.get_all()
    except StorageUnavailable:
        logger.warning("Legacy %s store unavailable, nothing to migrate", content_type.name)
        report.source_unavailable = True
        _verify(content_type, target, report)
        return report

    report.found = len(legacy_records)
    if not legacy_records:
        logger.info("No legacy %s found, nothing to migrate", content_type.name)
        _verify(content_type, target, report)
        return report

    # Only records actually written count; first-run defaults must not shadow legacy ids.
    existing = target.get_stored()

    if mode == "replace" and existing:
        if dry_run:
            logger.info("Dry run: would clear %d existing %s", len(existing), content_type.name)
        else:
            logger.warning(
                "Replace migration: clearing %d existing %s from %s",
                len(existing),
                content_type.name,
                report.target,
            )
            report.cleared = target.clear()
        existing = {}

    for legacy_id in sorted(legacy_records, key=str):
        legacy_record = legacy_records[legacy_id]
        if not isinstance(legacy_record, dict):
            logger.warning("Skipping malformed %s %s: not an object", content_type.name, legacy_id)
            report.errors.append(MigrationError(str(legacy_id), "record is not an object"))
            continue

        record_id = str(legacy_record.get("id") or legacy_id)
        try:
            mapped = content_type.legacy_mapper({**legacy_record, "id": record_id})
            record = content_type.record_schema.model_validate(mapped).model_dump(mode="json")
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            reason = _describe(exc)
            logger.warning("Skipping malformed %s %s: %s", content_type.name, record_id, reason)
            report.errors.append(MigrationError(record_id, reason))
            continue

        if record_id in existing:
            logger.info("Skipped %s %s (already exists)", content_type.name, record_id)
            report.skipped += 1
            continue

        if dry_run:
            report.migrated += 1
            continue

        try:
            target.import_record(record)
        except CouncilError as exc:
            reason = _describe(exc)
            logger.warning("Failed to migrate %s %s: %s", content_type.name, record_id, reason)
            report.errors.append(MigrationError(record_id, reason))
            continue
        existing[record_id] = record
        report.migrated += 1
        logger.info("Migrated %s %s", content_type.name, record_id)

    _verify(content_type, target, report)
    logger.info(
        "Migration of %s complete: %d migrated, %d skipped, %d errors, %d total in target",
        content_type.name,
        report.migrated,
        report.skipped,
        len(report.errors),
        report.total,
    )
    return report
