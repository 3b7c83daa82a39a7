"""
Extraction Operator - turns finalized sections into standalone PDFs.

Each source document is opened at most once per run and shared by every
section that draws from it. Sections are processed in order; the first
missing source or bad page range aborts the run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import fitz  # PyMuPDF

from models.publish_models import ExtractedSection, FinalizedSection
from operators.library_operator import SourceNotFoundError, validate_name, validate_pdf_name
from utils.pdf_utils import extract_pages, open_document, serialize, sha256_bytes

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Base exception for section extraction."""
    pass


class InvalidRangeError(ExtractionError):
    """Raised when a section's page range falls outside its source document."""
    def __init__(
        self,
        title: str,
        start_page: int,
        end_page: int,
        total_pages: int | None = None,
    ):
        self.title = title
        self.start_page = start_page
        self.end_page = end_page
        self.total_pages = total_pages
        if total_pages is not None and end_page > total_pages:
            message = (
                f'Section "{title}" end page {end_page} exceeds '
                f"total pages {total_pages}"
            )
        else:
            message = f'Invalid page range for section "{title}": {start_page}-{end_page}'
        super().__init__(message)


def validate_section_names(section: FinalizedSection) -> None:
    """Section ids and source names become file names; reject anything but a single path component."""
    validate_name(section.id, "section id")
    validate_pdf_name(section.source_document)


def validate_section_range(section: FinalizedSection, total_pages: int) -> None:
    if section.source_start_page < 1 or section.source_end_page < section.source_start_page:
        raise InvalidRangeError(
            section.title, section.source_start_page, section.source_end_page
        )
    if section.source_end_page > total_pages:
        raise InvalidRangeError(
            section.title,
            section.source_start_page,
            section.source_end_page,
            total_pages=total_pages,
        )


def extract_sections(
    sections: list[FinalizedSection],
    source_dir: Path,
) -> list[ExtractedSection]:
    """
    Extract every section from the PDFs in source_dir.

    Pages are 1-indexed inclusive on the section and converted to the
    0-based half-open range [start - 1, end) for PyMuPDF.

    Raises:
        InvalidLibraryPathError: a section id or source name is not a plain file name
        SourceNotFoundError: a section references a PDF that is not in source_dir
        InvalidRangeError: a section's pages are malformed or beyond the document
    """
    for section in sections:
        validate_section_names(section)

    source_cache: dict[str, fitz.Document] = {}
    extracted: list[ExtractedSection] = []

    try:
        for section in sections:
            document = source_cache.get(section.source_document)
            if document is None:
                source_path = source_dir / section.source_document
                if not source_path.exists():
                    raise SourceNotFoundError(source_path)
                document = open_document(source_path)
                source_cache[section.source_document] = document

            validate_section_range(section, document.page_count)

            page_indices = list(range(section.source_start_page - 1, section.source_end_page))
            section_doc = extract_pages(document, page_indices)
            try:
                content = serialize(section_doc)
            finally:
                section_doc.close()

            extracted.append(
                ExtractedSection(
                    section_id=section.id,
                    title=section.title,
                    content=content,
                    checksum=sha256_bytes(content),
                    page_count=len(page_indices),
                )
            )
    finally:
        for document in source_cache.values():
            document.close()
        source_cache.clear()

    logger.info("Extracted %d section PDFs from %s", len(extracted), source_dir)
    return extracted


def write_extracted_sections(
    extracted: list[ExtractedSection],
    sections_dir: Path,
) -> list[Path]:
    sections_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for item in extracted:
        path = sections_dir / item.file_name
        path.write_bytes(item.content)
        paths.append(path)
    return paths
