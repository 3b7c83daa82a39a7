from fastapi import HTTPException

from operators.extraction_operator import InvalidRangeError
from operators.library_operator import (
    InvalidLibraryPathError,
    SourceNotFoundError,
)
from operators.publish_operator import ConflictError, PublishValidationError
from operators.section_editor import SectionNotFoundError
from operators.session_operator import SessionNotFoundError


def handle_editor_error(e: Exception):
    """Convert editor, library and publish exceptions to HTTP exceptions."""
    if isinstance(e, HTTPException):
        raise e
    elif isinstance(e, (SessionNotFoundError, SectionNotFoundError, SourceNotFoundError)):
        raise HTTPException(status_code=404, detail=str(e))
    elif isinstance(e, (InvalidRangeError, InvalidLibraryPathError, PublishValidationError)):
        raise HTTPException(status_code=400, detail=str(e))
    elif isinstance(e, ConflictError):
        raise HTTPException(
            status_code=409,
            detail={
                "error": "conflict",
                "conflicts": e.conflicts,
                "uploaded": e.result.uploaded,
                "skipped": e.result.skipped,
                "message": str(e),
            },
        )
    else:
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")
