from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.base import get_db
from handlers.errors import handle_editor_error
from models.publish_models import (
    CatalogChecksumResponse,
    CatalogResponse,
    PublishResponse,
    PublishSectionsRequest,
)
from operators.catalog_operator import catalog_checksum, get_catalog, get_stored_checksum
from operators.library_operator import validate_subject_code
from operators.publish_operator import publish_sections

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", response_model=CatalogResponse)
async def catalog_get(db: Session = Depends(get_db)):
    catalog = get_catalog(db)
    return CatalogResponse(checksum=catalog_checksum(catalog), data=catalog)


@router.get("/checksum", response_model=CatalogChecksumResponse)
async def catalog_get_checksum(db: Session = Depends(get_db)):
    return CatalogChecksumResponse(checksum=get_stored_checksum(db))


@router.post("/publish", response_model=PublishResponse)
async def catalog_publish(
    request: PublishSectionsRequest,
    db: Session = Depends(get_db),
):
    """Publish an explicit list of sections without an edit session."""
    try:
        if request.subject_code:
            validate_subject_code(request.subject_code)
        result = publish_sections(
            db=db,
            subject_code=request.subject_code,
            resource_title=request.resource_title,
            sections=request.sections,
        )
        return PublishResponse(
            ok=True,
            subject_code=result.subject_code,
            resource_id=result.resource_id,
            sections_processed=result.sections_processed,
            uploaded=result.uploaded,
            skipped=result.skipped,
        )
    except Exception as e:
        handle_editor_error(e)
