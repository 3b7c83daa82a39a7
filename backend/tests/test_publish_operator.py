import json

import pytest

from conftest import page_texts, write_pdf
from database.models import CatalogSection, Resource
from models.publish_models import FinalizedSection
from operators import publish_operator
from operators.catalog_operator import (
    catalog_checksum,
    get_catalog,
    get_stored_checksum,
    slugify,
)
from operators.library_operator import InvalidLibraryPathError, SourceNotFoundError
from operators.publish_operator import (
    ConflictError,
    PublishError,
    PublishValidationError,
    publish_sections,
)


class FakeStorage:
    def __init__(self):
        self.objects: dict[str, bytes] = {}

    def __call__(self, remote_path: str, contents: bytes) -> str:
        self.objects[remote_path] = contents
        return f"https://cdn.example.test/{remote_path}"


@pytest.fixture
def output_dir(tmp_path):
    write_pdf(tmp_path / "MAT101" / "compressed-book.pdf", 10)
    return tmp_path


@pytest.fixture
def storage():
    return FakeStorage()


def _sections(first_end: int = 4) -> list[FinalizedSection]:
    return [
        FinalizedSection(
            id="s1",
            title="Limits",
            source_document="compressed-book.pdf",
            source_start_page=1,
            source_end_page=first_end,
        ),
        FinalizedSection(
            id="s2",
            title="Derivatives",
            source_document="compressed-book.pdf",
            source_start_page=5,
            source_end_page=10,
        ),
    ]


def _publish(db_session, output_dir, storage, sections=None, title="Calculus I Notes"):
    return publish_sections(
        db_session,
        "MAT101",
        title,
        sections if sections is not None else _sections(),
        output_dir=output_dir,
        upload=storage,
    )


def test_slugify():
    assert slugify("  Calculus I: Notes & Drills ") == "calculus-i-notes-drills"
    assert slugify("Linear Algebra") == "linear-algebra"


def test_first_publish_uploads_everything(db_session, output_dir, storage):
    result = _publish(db_session, output_dir, storage)

    assert result.resource_id == "calculus-i-notes"
    assert result.uploaded == ["s1", "s2"]
    assert result.skipped == []
    assert result.sections_processed == 2

    remote = "resources/MAT101/calculus-i-notes/sections/s1.pdf"
    assert page_texts(storage.objects[remote]) == ["Page 1", "Page 2", "Page 3", "Page 4"]

    rows = db_session.query(CatalogSection).order_by(CatalogSection.id).all()
    assert [(r.id, r.title) for r in rows] == [("s1", "Limits"), ("s2", "Derivatives")]
    assert rows[0].url == f"https://cdn.example.test/{remote}"


def test_writes_section_files_and_manifest(db_session, output_dir, storage):
    _publish(db_session, output_dir, storage)

    resource_dir = output_dir / "MAT101" / "calculus-i-notes"
    assert sorted(p.name for p in (resource_dir / "sections").iterdir()) == ["s1.pdf", "s2.pdf"]

    manifest = json.loads((resource_dir / "manifest.json").read_text())
    assert manifest["subject"] == {"code": "MAT101"}
    (resource,) = manifest["resources"]
    assert resource["id"] == "calculus-i-notes"
    assert resource["title"] == "Calculus I Notes"
    assert [s["id"] for s in resource["sections"]] == ["s1", "s2"]


def test_republish_skips_unchanged_sections(db_session, output_dir, storage):
    _publish(db_session, output_dir, storage)
    storage.objects.clear()

    result = _publish(db_session, output_dir, storage)

    assert result.uploaded == []
    assert result.skipped == ["s1", "s2"]
    assert storage.objects == {}


def test_changed_content_is_reported_as_conflict(db_session, output_dir, storage):
    _publish(db_session, output_dir, storage)
    original = db_session.get(
        CatalogSection, {"id": "s1", "resource_id": "calculus-i-notes", "subject_code": "MAT101"}
    ).checksum
    storage.objects.clear()

    with pytest.raises(ConflictError) as excinfo:
        _publish(db_session, output_dir, storage, sections=_sections(first_end=3))

    assert excinfo.value.conflicts == ["s1"]
    assert excinfo.value.result.skipped == ["s2"]
    assert storage.objects == {}
    row = db_session.get(
        CatalogSection, {"id": "s1", "resource_id": "calculus-i-notes", "subject_code": "MAT101"}
    )
    assert row.checksum == original


def test_conflicts_do_not_block_new_sections(db_session, output_dir, storage):
    _publish(db_session, output_dir, storage)
    sections = _sections(first_end=3) + [
        FinalizedSection(
            id="s3",
            title="Integrals",
            source_document="compressed-book.pdf",
            source_start_page=4,
            source_end_page=4,
        )
    ]

    with pytest.raises(ConflictError) as excinfo:
        _publish(db_session, output_dir, storage, sections=sections)

    assert excinfo.value.result.uploaded == ["s3"]
    assert db_session.query(CatalogSection).count() == 3


def test_catalog_checksum_is_stored(db_session, output_dir, storage):
    assert get_stored_checksum(db_session) is None

    _publish(db_session, output_dir, storage)

    catalog = get_catalog(db_session)
    assert get_stored_checksum(db_session) == catalog_checksum(catalog)
    (subject,) = catalog
    assert subject.code == "MAT101"
    assert [s.id for s in subject.resources[0].sections] == ["s1", "s2"]


def test_republish_under_same_slug_updates_title(db_session, output_dir, storage):
    _publish(db_session, output_dir, storage)

    _publish(db_session, output_dir, storage, title="calculus i notes")

    resource = db_session.get(Resource, {"id": "calculus-i-notes", "subject_code": "MAT101"})
    assert resource.title == "calculus i notes"


@pytest.mark.parametrize(
    "subject,title,sections",
    [
        ("", "Notes", None),
        ("MAT101", "  ", None),
        ("MAT101", "Notes", []),
        ("MAT101", "!!!", None),
    ],
)
def test_validation(db_session, output_dir, storage, subject, title, sections):
    with pytest.raises(PublishValidationError):
        publish_sections(
            db_session,
            subject,
            title,
            _sections() if sections is None else sections,
            output_dir=output_dir,
            upload=storage,
        )


def test_missing_source_publishes_nothing(db_session, output_dir, storage):
    sections = _sections() + [
        FinalizedSection(
            id="s9",
            title="Lost",
            source_document="compressed-missing.pdf",
            source_start_page=1,
            source_end_page=1,
        )
    ]

    with pytest.raises(SourceNotFoundError):
        _publish(db_session, output_dir, storage, sections=sections)

    assert storage.objects == {}
    assert db_session.query(CatalogSection).count() == 0


def test_upload_failure_raises(db_session, output_dir, monkeypatch):
    monkeypatch.setattr(publish_operator, "upload_file", lambda **kwargs: {})

    with pytest.raises(PublishError, match="Failed to upload"):
        publish_sections(db_session, "MAT101", "Notes", _sections(), output_dir=output_dir)


def test_unsafe_section_paths_publish_nothing(db_session, output_dir, storage):
    escaping = FinalizedSection(
        id="../../../escaped",
        title="Escaped",
        source_document="../../secret.pdf",
        source_start_page=1,
        source_end_page=2,
    )

    with pytest.raises(InvalidLibraryPathError):
        _publish(db_session, output_dir, storage, sections=[escaping])

    assert not (output_dir / "escaped.pdf").exists()
    assert storage.objects == {}
    assert db_session.query(CatalogSection).count() == 0
