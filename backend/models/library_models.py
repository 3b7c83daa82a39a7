from typing import Literal

from pydantic import BaseModel, Field


class CompressionResult(BaseModel):
    file_path: str
    file_name: str
    checksum: str


class SubjectListResponse(BaseModel):
    ok: bool = True
    subjects: list[str]


class LibraryListResponse(BaseModel):
    ok: bool = True
    subject: str
    pdfs: list[str] = Field(description="Uploaded source PDFs")
    compressed_pdfs: list[str] = Field(description="PDFs ready to be added to a timeline")


class PageCountResponse(BaseModel):
    ok: bool = True
    pdf: str
    page_count: int


class CompressRequest(BaseModel):
    pdf: str
    background: bool = Field(
        default=True,
        description="Queue the job on the worker instead of compressing inline",
    )


class CompressResponse(BaseModel):
    ok: bool = True
    result: CompressionResult | None = None
    job_id: str | None = None
    message: str = ""


class CompressJobResponse(BaseModel):
    ok: bool = True
    job_id: str
    status: Literal["queued", "started", "deferred", "finished", "failed", "scheduled", "stopped", "canceled", "unknown"]
    result: CompressionResult | None = None
    error: str | None = None
