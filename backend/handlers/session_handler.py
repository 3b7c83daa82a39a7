"""
Session Handler - REST endpoints driving an edit session.

The editor front end forwards every interaction here: keystrokes, cursor
moves, edge drags (start/move/end) and explicit commands. Each endpoint
returns the full session state so the client can re-render from it.

Interactive commands that find nothing to act on (split on a section's
first page, delete with no section under the cursor) succeed with
changed=false rather than failing.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from database.base import get_db
from dependencies.subject import require_subject
from handlers.errors import handle_editor_error
from models.publish_models import FinalizedSection, PublishResponse
from models.section_models import (
    AddSectionRequest,
    CreateSessionRequest,
    KeyEventRequest,
    KeyEventResponse,
    NavigateRequest,
    PublishRequest,
    RenameSectionRequest,
    ResizeMoveRequest,
    ResizeStartRequest,
    SessionMutationResponse,
    SessionResponse,
    SetCursorRequest,
    ZoomRequest,
)
from operators.edit_session import EditSession
from operators.library_operator import get_page_count, validate_pdf_name
from operators.publish_operator import publish_sections
from operators.session_operator import close_session, create_session, get_session


router = APIRouter(prefix="/subjects/{subject}/sessions", tags=["sessions"])


def require_edit_session(
    session_id: str = Path(...),
    subject: str = Depends(require_subject),
) -> EditSession:
    try:
        return get_session(subject, session_id)
    except Exception as e:
        handle_editor_error(e)


def _mutation(session: EditSession, changed: bool) -> SessionMutationResponse:
    return SessionMutationResponse(ok=True, changed=changed, state=session.state())


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


@router.post("", response_model=SessionResponse)
async def session_create(
    request: CreateSessionRequest,
    subject: str = Depends(require_subject),
):
    session = create_session(subject, request.sections)
    return SessionResponse(ok=True, state=session.state())


@router.get("/{session_id}", response_model=SessionResponse)
async def session_get(session: EditSession = Depends(require_edit_session)):
    return SessionResponse(ok=True, state=session.state())


@router.delete("/{session_id}")
async def session_close(
    session: EditSession = Depends(require_edit_session),
):
    close_session(session.subject, session.session_id)
    return {"ok": True}


# =============================================================================
# STRUCTURAL EDITS
# =============================================================================


@router.post("/{session_id}/sections", response_model=SessionMutationResponse)
async def section_add(
    request: AddSectionRequest,
    session: EditSession = Depends(require_edit_session),
):
    """Append a whole compressed PDF from the library to the timeline."""
    try:
        validate_pdf_name(request.source_document)
        page_count = request.page_count
        if page_count is None:
            page_count = get_page_count(session.subject, request.source_document)
        changed = session.add_section(request.source_document, page_count)
        return _mutation(session, changed)
    except Exception as e:
        handle_editor_error(e)


@router.post("/{session_id}/split", response_model=SessionMutationResponse)
async def section_split(session: EditSession = Depends(require_edit_session)):
    return _mutation(session, session.split_at_cursor())


@router.post("/{session_id}/delete", response_model=SessionMutationResponse)
async def section_delete(session: EditSession = Depends(require_edit_session)):
    return _mutation(session, session.delete_active_section())


@router.post("/{session_id}/rename", response_model=SessionMutationResponse)
async def section_rename(
    request: RenameSectionRequest,
    session: EditSession = Depends(require_edit_session),
):
    return _mutation(session, session.rename_active_section(request.title))


@router.post("/{session_id}/undo", response_model=SessionMutationResponse)
async def session_undo(session: EditSession = Depends(require_edit_session)):
    return _mutation(session, session.undo())


# =============================================================================
# CURSOR, ZOOM, KEYS
# =============================================================================


@router.post("/{session_id}/cursor", response_model=SessionMutationResponse)
async def cursor_set(
    request: SetCursorRequest,
    session: EditSession = Depends(require_edit_session),
):
    return _mutation(session, session.set_cursor(request.page))


@router.post("/{session_id}/navigate", response_model=SessionMutationResponse)
async def cursor_navigate(
    request: NavigateRequest,
    session: EditSession = Depends(require_edit_session),
):
    if request.direction == "left":
        changed = session.navigate_left()
    else:
        changed = session.navigate_right()
    return _mutation(session, changed)


@router.post("/{session_id}/zoom", response_model=SessionMutationResponse)
async def zoom_change(
    request: ZoomRequest,
    session: EditSession = Depends(require_edit_session),
):
    changed = session.zoom_in() if request.direction == "in" else session.zoom_out()
    return _mutation(session, changed)


@router.post("/{session_id}/keys", response_model=KeyEventResponse)
async def key_event(
    request: KeyEventRequest,
    session: EditSession = Depends(require_edit_session),
):
    """
    Dispatch a keydown through the shortcut table.

    command is null when the key has no binding. For "rename" the client
    should open its rename dialog and then call /rename.
    """
    command, changed = session.handle_key(
        key=request.key,
        code=request.code,
        shift=request.shift,
        ctrl=request.ctrl,
        alt=request.alt,
        meta=request.meta,
        from_text_input=request.from_text_input,
    )
    return KeyEventResponse(
        ok=True,
        command=command.value if command else None,
        changed=changed,
        state=session.state(),
    )


# =============================================================================
# RESIZE GESTURE
# =============================================================================


@router.post("/{session_id}/resize/start", response_model=SessionMutationResponse)
async def resize_start(
    request: ResizeStartRequest,
    session: EditSession = Depends(require_edit_session),
):
    try:
        session.begin_resize(request.section_id, request.edge)
        return _mutation(session, False)
    except Exception as e:
        handle_editor_error(e)


@router.post("/{session_id}/resize/move", response_model=SessionMutationResponse)
async def resize_move(
    request: ResizeMoveRequest,
    session: EditSession = Depends(require_edit_session),
):
    if request.page is not None:
        changed = session.move_resize(request.page)
    else:
        changed = session.move_resize_pointer(
            client_x=request.client_x,
            viewport_left=request.viewport_left,
            scroll_left=request.scroll_left,
            viewport_width=request.viewport_width,
        )
    return _mutation(session, changed)


@router.post("/{session_id}/resize/end", response_model=SessionMutationResponse)
async def resize_end(session: EditSession = Depends(require_edit_session)):
    return _mutation(session, session.end_resize())


# =============================================================================
# PUBLISH
# =============================================================================


@router.post("/{session_id}/publish", response_model=PublishResponse)
async def session_publish(
    request: PublishRequest,
    session: EditSession = Depends(require_edit_session),
    db: Session = Depends(get_db),
):
    """
    Publish the session's timeline as a resource of its subject.

    Returns 409 with the conflicting section ids when some sections already
    exist remotely with different content; the others are still published.
    """
    try:
        result = publish_sections(
            db=db,
            subject_code=session.subject,
            resource_title=request.resource_title,
            sections=[FinalizedSection.from_section(s) for s in session.sections],
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
