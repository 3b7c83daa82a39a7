"""
Library Operator - source PDFs available to the editor.

Uploaded PDFs live under LIBRARY_INPUT_DIR/<subject>/. Before a PDF can be
placed on a timeline it is compressed with Ghostscript into
LIBRARY_OUTPUT_DIR/<subject>/compressed-<name>.pdf; sections always refer
to the compressed copy.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import dotenv
from rq import Retry
from rq.exceptions import NoSuchJobError
from rq.job import Job

from models.library_models import CompressionResult, CompressJobResponse
from redis_client import redis_rq, rq_queue
from utils.pdf_utils import compress_pdf_file, open_document, sha256_file

dotenv.load_dotenv()
logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[2]


def _resolve_dir(raw: str) -> Path:
    path = Path(raw)
    if not path.is_absolute():
        path = ROOT_DIR / path
    return path


LIBRARY_INPUT_DIR = _resolve_dir(os.getenv("LIBRARY_INPUT_DIR", "admin/input"))
LIBRARY_OUTPUT_DIR = _resolve_dir(os.getenv("LIBRARY_OUTPUT_DIR", "public/output"))

COMPRESSED_PREFIX = "compressed-"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class LibraryError(Exception):
    """Base exception for library operations."""
    pass


class InvalidLibraryPathError(LibraryError):
    """Raised for empty or unsafe subject/file names."""
    pass


class SourceNotFoundError(LibraryError):
    """Raised when a referenced source PDF does not exist on disk."""
    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Source PDF not found at: {path}. Did you compress it first?"
        )


class CompressionError(LibraryError):
    pass


# =============================================================================
# PATHS
# =============================================================================


def _natural_key(name: str) -> list:
    return [
        int(part) if part.isdigit() else part.casefold()
        for part in re.split(r"(\d+)", name)
    ]


def validate_name(value: str, kind: str) -> str:
    """Accept value only as a single path component; raise InvalidLibraryPathError otherwise."""
    if not value or not value.strip():
        raise InvalidLibraryPathError(f"Cannot be passed empty {kind}")
    if "/" in value or "\\" in value or value in (".", ".."):
        raise InvalidLibraryPathError(f"Invalid {kind}: {value!r}")
    return value


def validate_subject_code(subject: str) -> str:
    return validate_name(subject, "subjectCode")


def validate_pdf_name(pdf_name: str) -> str:
    return validate_name(pdf_name, "pdf name")


def subject_input_dir(subject: str, input_dir: Path | None = None) -> Path:
    return (input_dir or LIBRARY_INPUT_DIR) / validate_name(subject, "subjectCode")


def subject_output_dir(subject: str, output_dir: Path | None = None) -> Path:
    return (output_dir or LIBRARY_OUTPUT_DIR) / validate_name(subject, "subjectCode")


def compressed_pdf_path(
    subject: str,
    pdf_name: str,
    output_dir: Path | None = None,
) -> Path:
    return subject_output_dir(subject, output_dir) / validate_pdf_name(pdf_name)


def compressed_name_for(pdf_name: str) -> str:
    return COMPRESSED_PREFIX + re.sub(r"\s+", "-", pdf_name)


# =============================================================================
# LISTING
# =============================================================================


def _list_pdfs_in(directory: Path) -> list[str]:
    if not directory.exists():
        return []
    names = [
        p.name for p in directory.iterdir()
        if p.is_file() and p.name.endswith(".pdf")
    ]
    return sorted(names, key=_natural_key)


def list_subjects(input_dir: Path | None = None) -> list[str]:
    root = input_dir or LIBRARY_INPUT_DIR
    if not root.exists():
        root.mkdir(parents=True, exist_ok=True)
        return []
    return sorted((p.name for p in root.iterdir() if p.is_dir()), key=_natural_key)


def list_pdfs(subject: str, input_dir: Path | None = None) -> list[str]:
    return _list_pdfs_in(subject_input_dir(subject, input_dir))


def list_compressed_pdfs(subject: str, output_dir: Path | None = None) -> list[str]:
    return _list_pdfs_in(subject_output_dir(subject, output_dir))


def get_page_count(
    subject: str,
    pdf_name: str,
    output_dir: Path | None = None,
) -> int:
    path = compressed_pdf_path(subject, pdf_name, output_dir)
    if not path.exists():
        raise SourceNotFoundError(path)
    document = open_document(path)
    try:
        return document.page_count
    finally:
        document.close()


# =============================================================================
# COMPRESSION
# =============================================================================


def compress_pdf(
    subject: str,
    pdf_name: str,
    input_dir: Path | None = None,
    output_dir: Path | None = None,
) -> CompressionResult:
    input_path = subject_input_dir(subject, input_dir) / validate_pdf_name(pdf_name)
    if not input_path.exists():
        raise SourceNotFoundError(input_path)

    target_dir = subject_output_dir(subject, output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    output_path = target_dir / compressed_name_for(pdf_name)

    if not compress_pdf_file(input_path, output_path):
        raise CompressionError(f"PDF compression failed for {subject}/{pdf_name}")

    logger.info("Compressed %s/%s -> %s", subject, pdf_name, output_path.name)
    return CompressionResult(
        file_path=str(output_path),
        file_name=output_path.name,
        checksum=sha256_file(output_path),
    )


def run_compression_job(subject: str, pdf_name: str) -> dict:
    """Worker entry point; RQ stores the returned dict as the job result."""
    return compress_pdf(subject, pdf_name).model_dump()


def enqueue_compression(subject: str, pdf_name: str) -> str:
    validate_subject_code(subject)
    validate_pdf_name(pdf_name)
    job = rq_queue.enqueue(
        run_compression_job,
        subject,
        pdf_name,
        job_timeout=900,
        retry=Retry(max=2, interval=[10, 30]),
    )
    logger.info("Queued compression of %s/%s as job %s", subject, pdf_name, job.id)
    return job.id


def get_compression_job(job_id: str) -> CompressJobResponse | None:
    try:
        job = Job.fetch(job_id, connection=redis_rq)
    except NoSuchJobError:
        return None

    status = job.get_status(refresh=True)
    status_value = getattr(status, "value", status) or "unknown"
    result = job.return_value() if status_value == "finished" else None
    error = None
    if status_value == "failed":
        latest = job.latest_result()
        error = (latest.exc_string if latest else None) or "Compression failed"

    return CompressJobResponse(
        job_id=job.id,
        status=status_value,
        result=CompressionResult.model_validate(result) if result else None,
        error=error,
    )
