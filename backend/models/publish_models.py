from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from models.section_models import Section


class FinalizedSection(BaseModel):
    """A section as handed to extraction and publishing."""
    id: str
    title: str
    source_document: str
    source_start_page: int
    source_end_page: int

    @classmethod
    def from_section(cls, section: Section) -> "FinalizedSection":
        return cls(
            id=section.id,
            title=section.title,
            source_document=section.source_document,
            source_start_page=section.source_start_page,
            source_end_page=section.source_end_page,
        )


@dataclass
class ExtractedSection:
    section_id: str
    title: str
    content: bytes
    checksum: str
    page_count: int

    @property
    def file_name(self) -> str:
        return f"{self.section_id}.pdf"


@dataclass
class PublishResult:
    subject_code: str
    resource_id: str
    resource_title: str
    uploaded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)

    @property
    def sections_processed(self) -> int:
        return len(self.uploaded) + len(self.skipped) + len(self.conflicts)


class PublishSectionsRequest(BaseModel):
    """Publish an explicit list of sections (no edit session needed)."""
    subject_code: str
    resource_title: str
    sections: list[FinalizedSection] = Field(default_factory=list)


class PublishResponse(BaseModel):
    ok: bool = True
    subject_code: str
    resource_id: str
    sections_processed: int
    uploaded: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class CatalogSectionEntry(BaseModel):
    id: str
    title: str
    checksum: str
    url: str


class CatalogResourceEntry(BaseModel):
    id: str
    title: str
    sections: list[CatalogSectionEntry] = Field(default_factory=list)


class CatalogSubjectEntry(BaseModel):
    code: str
    resources: list[CatalogResourceEntry] = Field(default_factory=list)


class CatalogResponse(BaseModel):
    checksum: str
    data: list[CatalogSubjectEntry]


class CatalogChecksumResponse(BaseModel):
    checksum: str | None = None
