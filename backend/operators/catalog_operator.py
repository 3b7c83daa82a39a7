"""
Catalog Operator - subjects, resources and published sections.

The catalog is what readers download: every subject with its resources and
each resource's published sections (title, checksum, url). A SHA-256 of the
serialized catalog is stored so clients can check for changes cheaply.
"""

import hashlib
import json
import re

from sqlalchemy.orm import Session as DBSession, selectinload

from database.models import (
    CatalogMetadata,
    CatalogSection,
    Resource,
    Subject,
)
from models.publish_models import (
    CatalogResourceEntry,
    CatalogSectionEntry,
    CatalogSubjectEntry,
)

CATALOG_METADATA_ID = 1


def slugify(value: str) -> str:
    value = value.lower().strip()
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    return re.sub(r"\s+", "-", value)


def resource_remote_path(subject_code: str, resource_id: str) -> str:
    return f"resources/{subject_code}/{resource_id}"


# =============================================================================
# WRITE
# =============================================================================


def upsert_subject(db: DBSession, code: str) -> Subject:
    subject = db.get(Subject, code)
    if subject is None:
        subject = Subject(code=code)
        db.add(subject)
        db.flush()
    return subject


def upsert_resource(
    db: DBSession,
    subject_code: str,
    resource_id: str,
    title: str,
) -> Resource:
    resource = db.get(Resource, {"id": resource_id, "subject_code": subject_code})
    if resource is None:
        resource = Resource(
            id=resource_id,
            subject_code=subject_code,
            title=title,
            remote_path=resource_remote_path(subject_code, resource_id),
        )
        db.add(resource)
    else:
        resource.title = title
    db.flush()
    return resource


def find_section(
    db: DBSession,
    subject_code: str,
    resource_id: str,
    section_id: str,
) -> CatalogSection | None:
    return db.get(
        CatalogSection,
        {"id": section_id, "resource_id": resource_id, "subject_code": subject_code},
    )


def create_section(
    db: DBSession,
    subject_code: str,
    resource_id: str,
    section_id: str,
    title: str,
    checksum: str,
    url: str,
) -> CatalogSection:
    section = CatalogSection(
        id=section_id,
        resource_id=resource_id,
        subject_code=subject_code,
        title=title,
        checksum=checksum,
        url=url,
    )
    db.add(section)
    db.flush()
    return section


# =============================================================================
# READ
# =============================================================================


def get_catalog(db: DBSession) -> list[CatalogSubjectEntry]:
    subjects = (
        db.query(Subject)
        .options(selectinload(Subject.resources).selectinload(Resource.sections))
        .order_by(Subject.code)
        .populate_existing()
        .all()
    )
    return [
        CatalogSubjectEntry(
            code=subject.code,
            resources=[
                CatalogResourceEntry(
                    id=resource.id,
                    title=resource.title,
                    sections=[
                        CatalogSectionEntry(
                            id=section.id,
                            title=section.title,
                            checksum=section.checksum,
                            url=section.url,
                        )
                        for section in resource.sections
                    ],
                )
                for resource in subject.resources
            ],
        )
        for subject in subjects
    ]


def catalog_checksum(catalog: list[CatalogSubjectEntry]) -> str:
    payload = json.dumps(
        [entry.model_dump() for entry in catalog],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def get_stored_checksum(db: DBSession) -> str | None:
    metadata = db.get(CatalogMetadata, CATALOG_METADATA_ID)
    return metadata.checksum if metadata else None


def refresh_catalog_checksum(db: DBSession) -> str:
    """Recompute the catalog checksum and store it. Caller commits."""
    db.flush()
    checksum = catalog_checksum(get_catalog(db))
    metadata = db.get(CatalogMetadata, CATALOG_METADATA_ID)
    if metadata is None:
        metadata = CatalogMetadata(id=CATALOG_METADATA_ID, checksum=checksum)
        db.add(metadata)
    else:
        metadata.checksum = checksum
    return checksum
