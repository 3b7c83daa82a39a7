from __future__ import annotations

import hashlib
import logging
import os
import subprocess
from pathlib import Path

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

GHOSTSCRIPT_BIN = os.getenv("GHOSTSCRIPT_BIN", "gs")
COMPRESS_TIMEOUT_SECONDS = int(os.getenv("COMPRESS_TIMEOUT_SECONDS", "600"))


def load_document(contents: bytes) -> fitz.Document:
    return fitz.open(stream=contents, filetype="pdf")


def open_document(path: str | Path) -> fitz.Document:
    return fitz.open(str(path))


def page_count(document: fitz.Document) -> int:
    return document.page_count


def extract_pages(document: fitz.Document, page_indices: list[int]) -> fitz.Document:
    """Copy the given 0-based pages, in order, into a new document."""
    extracted = fitz.open()
    for index in page_indices:
        extracted.insert_pdf(document, from_page=index, to_page=index)
    return extracted


def serialize(document: fitz.Document) -> bytes:
    return document.tobytes(garbage=3, deflate=True, no_new_id=True)


def sha256_bytes(contents: bytes) -> str:
    return hashlib.sha256(contents).hexdigest()


def sha256_file(path: str | Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def compress_pdf_file(input_path: Path, output_path: Path) -> bool:
    """
    Re-encode a PDF with Ghostscript's pdfwrite device, downsampling color
    and gray images to 150 dpi and mono images to 300 dpi.
    """
    cmd = [
        GHOSTSCRIPT_BIN,
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        "-dNOPAUSE",
        "-dBATCH",
        "-dSAFER",
        "-dDownsampleColorImages=true",
        "-dColorImageResolution=150",
        "-dDownsampleGrayImages=true",
        "-dGrayImageResolution=150",
        "-dDownsampleMonoImages=true",
        "-dMonoImageResolution=300",
        f"-sOutputFile={output_path}",
        str(input_path),
    ]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=COMPRESS_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        logger.error("Ghostscript binary not found: %s", GHOSTSCRIPT_BIN)
        return False
    except subprocess.TimeoutExpired:
        logger.error("Ghostscript timed out compressing %s", input_path)
        return False

    if result.returncode != 0:
        logger.error("Ghostscript failed for %s: %s", input_path, result.stderr)
        return False

    return output_path.exists()
