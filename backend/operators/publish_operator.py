"""
Publish Operator - extract, upload and catalog a resource's sections.

A publish run for (subject, resource title):
1. Extracts every section to its own PDF (see extraction_operator) and
   writes them under <output>/<subject>/<resource_id>/sections/.
2. Upserts the subject and resource catalog rows.
3. For each section, compares the fresh checksum with the catalog:
   - no catalog row: upload the PDF and create the row
   - same checksum: skip, already up to date
   - different checksum: record a conflict and leave the remote copy alone
4. Writes manifest.json beside the sections and refreshes the catalog checksum.

Conflicts never stop the run. They are collected and raised together as a
ConflictError once every other section has been handled.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable

from sqlalchemy.orm import Session as DBSession

from models.publish_models import ExtractedSection, FinalizedSection, PublishResult
from operators.catalog_operator import (
    create_section,
    find_section,
    refresh_catalog_checksum,
    slugify,
    upsert_resource,
    upsert_subject,
)
from operators.extraction_operator import extract_sections, write_extracted_sections
from operators.library_operator import subject_output_dir
from utils.gcs_utils import public_url, upload_file

logger = logging.getLogger(__name__)

CONTENT_BUCKET = os.getenv("GCS_BUCKET", "academic-resources")

MANIFEST_FILE = "manifest.json"


class PublishError(Exception):
    """Base exception for publishing."""
    pass


class PublishValidationError(PublishError):
    pass


class ConflictError(PublishError):
    """
    Raised after a run in which some sections already existed remotely
    with different content. Every non-conflicting section was still
    processed; result carries the full outcome.
    """
    def __init__(self, result: PublishResult):
        self.result = result
        self.conflicts = list(result.conflicts)
        super().__init__(
            f"Conflicts detected for sections: {', '.join(self.conflicts)}. "
            "These sections already exist with different content."
        )


def upload_content(remote_path: str, contents: bytes) -> str:
    info = upload_file(
        bucket_name=CONTENT_BUCKET,
        contents=contents,
        destination_blob_name=remote_path,
        content_type="application/pdf",
    )
    if not info:
        raise PublishError(f"Failed to upload {remote_path} to storage")
    return public_url(CONTENT_BUCKET, info["path"])


def _validate_request(
    subject_code: str,
    resource_title: str,
    sections: list[FinalizedSection],
) -> str:
    if not subject_code or not resource_title or not resource_title.strip() or not sections:
        raise PublishValidationError("Missing required fields")
    resource_id = slugify(resource_title)
    if not resource_id:
        raise PublishValidationError(
            f"Resource title {resource_title!r} does not produce a usable id"
        )
    return resource_id


def write_manifest(
    resource_dir: Path,
    subject_code: str,
    resource_id: str,
    resource_title: str,
    sections: list[dict],
) -> Path:
    manifest = {
        "subject": {"code": subject_code},
        "resources": [
            {
                "id": resource_id,
                "title": resource_title,
                "sections": sections,
            }
        ],
    }
    path = resource_dir / MANIFEST_FILE
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return path


def _sync_section(
    db: DBSession,
    subject_code: str,
    resource_id: str,
    remote_dir: str,
    item: ExtractedSection,
    result: PublishResult,
    upload: Callable[[str, bytes], str],
) -> dict | None:
    existing = find_section(db, subject_code, resource_id, item.section_id)

    if existing and existing.checksum == item.checksum:
        logger.info("Skipping %s, already up to date", item.section_id)
        result.skipped.append(item.section_id)
        return {"id": existing.id, "title": existing.title, "url": existing.url}

    if existing:
        logger.warning("Conflict detected for section: %s", item.section_id)
        result.conflicts.append(item.section_id)
        return None

    url = upload(f"{remote_dir}/sections/{item.file_name}", item.content)
    create_section(
        db,
        subject_code=subject_code,
        resource_id=resource_id,
        section_id=item.section_id,
        title=item.title,
        checksum=item.checksum,
        url=url,
    )
    db.commit()
    logger.info("Uploaded section: %s (%s)", item.title, item.section_id)
    result.uploaded.append(item.section_id)
    return {"id": item.section_id, "title": item.title, "url": url}


def publish_sections(
    db: DBSession,
    subject_code: str,
    resource_title: str,
    sections: list[FinalizedSection],
    output_dir: Path | None = None,
    upload: Callable[[str, bytes], str] = upload_content,
) -> PublishResult:
    """
    Publish sections as one resource of a subject.

    Raises:
        PublishValidationError: missing subject, title or sections
        SourceNotFoundError: a section's source PDF is missing (nothing is published)
        InvalidRangeError: a section's pages are out of bounds (nothing is published)
        PublishError: an upload failed (sections uploaded before it stay published)
        ConflictError: one or more sections conflicted; raised after the run
    """
    resource_id = _validate_request(subject_code, resource_title, sections)

    source_dir = subject_output_dir(subject_code, output_dir)
    resource_dir = source_dir / resource_id
    extracted = extract_sections(sections, source_dir)
    write_extracted_sections(extracted, resource_dir / "sections")
    logger.info("Created %d section PDFs for %s/%s", len(extracted), subject_code, resource_id)

    result = PublishResult(
        subject_code=subject_code,
        resource_id=resource_id,
        resource_title=resource_title,
    )

    try:
        upsert_subject(db, subject_code)
        resource = upsert_resource(db, subject_code, resource_id, resource_title)
        remote_dir = resource.remote_path
        db.commit()

        manifest_sections = []
        for item in extracted:
            entry = _sync_section(
                db, subject_code, resource_id, remote_dir, item, result, upload
            )
            if entry is not None:
                manifest_sections.append(entry)

        refresh_catalog_checksum(db)
        db.commit()
    except Exception:
        db.rollback()
        raise

    write_manifest(resource_dir, subject_code, resource_id, resource_title, manifest_sections)

    if result.conflicts:
        raise ConflictError(result)
    return result
