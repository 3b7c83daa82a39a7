from fastapi import HTTPException, Path

from operators.library_operator import InvalidLibraryPathError, validate_subject_code


def require_subject(subject: str = Path(...)) -> str:
    try:
        return validate_subject_code(subject)
    except InvalidLibraryPathError as e:
        raise HTTPException(status_code=400, detail=str(e))
