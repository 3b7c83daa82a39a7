from fastapi import APIRouter, Depends, HTTPException, Path

from dependencies.subject import require_subject
from handlers.errors import handle_editor_error
from models.library_models import (
    CompressJobResponse,
    CompressRequest,
    CompressResponse,
    LibraryListResponse,
    PageCountResponse,
    SubjectListResponse,
)
from operators.library_operator import (
    CompressionError,
    compress_pdf,
    enqueue_compression,
    get_compression_job,
    get_page_count,
    list_compressed_pdfs,
    list_pdfs,
    list_subjects,
)

router = APIRouter(prefix="/subjects", tags=["library"])


@router.get("", response_model=SubjectListResponse)
async def subjects_list():
    return SubjectListResponse(ok=True, subjects=list_subjects())


@router.get("/{subject}/library", response_model=LibraryListResponse)
async def library_list(subject: str = Depends(require_subject)):
    return LibraryListResponse(
        ok=True,
        subject=subject,
        pdfs=list_pdfs(subject),
        compressed_pdfs=list_compressed_pdfs(subject),
    )


@router.get("/{subject}/library/{pdf}/pages", response_model=PageCountResponse)
async def library_page_count(
    pdf: str = Path(...),
    subject: str = Depends(require_subject),
):
    try:
        return PageCountResponse(ok=True, pdf=pdf, page_count=get_page_count(subject, pdf))
    except Exception as e:
        handle_editor_error(e)


@router.post("/{subject}/library/compress", response_model=CompressResponse)
async def library_compress(
    request: CompressRequest,
    subject: str = Depends(require_subject),
):
    """
    Compress an uploaded PDF so it can be placed on a timeline.

    With background=true (default) the job is queued on the worker and its
    id returned; poll /library/jobs/{job_id} for the result.
    """
    try:
        if request.background:
            job_id = enqueue_compression(subject, request.pdf)
            return CompressResponse(ok=True, job_id=job_id, message="Compression queued.")
        result = compress_pdf(subject, request.pdf)
        return CompressResponse(
            ok=True,
            result=result,
            message="Compression successful. Source is ready for processing.",
        )
    except CompressionError:
        raise HTTPException(
            status_code=500,
            detail="PDF compression failed. Check server logs.",
        )
    except Exception as e:
        handle_editor_error(e)


@router.get("/{subject}/library/jobs/{job_id}", response_model=CompressJobResponse)
async def library_compress_job(
    job_id: str = Path(...),
    subject: str = Depends(require_subject),
):
    job = get_compression_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return job
