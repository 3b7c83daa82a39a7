"""
Edit Session - the single owner of a timeline being edited.

An EditSession holds the live sections, the cursor, the undo history, the
zoom level and the state of any in-progress edge drag. Every UI event goes
through one of its methods:

- Committed edits (add, split, delete, rename, end of a resize drag) push
  the previous timeline onto history, store the packed result and clamp
  the cursor into range.
- Resize moves update the dragged section in place without touching
  history. Only the release commits, once for the whole gesture.
- Edits that need a section under the cursor do nothing when there is
  none; they return False instead of raising.

Structural edits and undo are ignored while a drag is in progress.
"""

import logging
from uuid import uuid4

from models.section_models import (
    PreviewInfo,
    ResizeEdge,
    ResizeGesture,
    Section,
    SessionState,
)
from operators.section_editor import (
    MissingActiveSectionError,
    add_document,
    clamp_cursor,
    current_source_page,
    delete_at_cursor,
    find_active_section,
    get_section,
    max_navigable_page,
    max_timeline_page,
    pack_sections,
    page_from_pointer,
    rename_at_cursor,
    resize_left_edge,
    resize_right_edge,
    split_at_cursor,
)
from operators.section_history import HistoryStack, snapshot_sections
from operators.shortcuts import Command, resolve_command

logger = logging.getLogger(__name__)


DEFAULT_PIXELS_PER_PAGE = 30
MIN_PIXELS_PER_PAGE = 10
MAX_PIXELS_PER_PAGE = 150
ZOOM_IN_STEP = 10
ZOOM_OUT_STEP = 5


class EditSession:
    def __init__(
        self,
        subject: str,
        sections: list[Section] | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid4().hex
        self.subject = subject
        self.sections: list[Section] = pack_sections(sections or [])
        self.cursor = 0
        self.pixels_per_page = DEFAULT_PIXELS_PER_PAGE
        self.history = HistoryStack()
        self.resizing: ResizeGesture | None = None

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def max_timeline_page(self) -> int:
        return max_timeline_page(self.sections)

    @property
    def active_section(self) -> Section | None:
        return find_active_section(self.sections, self.cursor)

    @property
    def preview(self) -> PreviewInfo | None:
        return current_source_page(self.sections, self.cursor)

    def state(self) -> SessionState:
        active = self.active_section
        return SessionState(
            session_id=self.session_id,
            subject=self.subject,
            sections=self.sections,
            cursor=self.cursor,
            max_timeline_page=self.max_timeline_page,
            active_section_id=active.id if active else None,
            preview=self.preview,
            pixels_per_page=self.pixels_per_page,
            resizing=self.resizing,
            history_depth=len(self.history),
        )

    # -------------------------------------------------------------------------
    # Committed edits
    # -------------------------------------------------------------------------

    def _commit(self, new_sections: list[Section], previous: list[Section] | None = None) -> None:
        self.history.push(self.sections if previous is None else previous)
        self.sections = new_sections
        self.cursor = clamp_cursor(self.sections, self.cursor)

    def _is_dragging(self, action: str) -> bool:
        if self.resizing is not None:
            logger.debug("Ignoring %s during resize of %s", action, self.resizing.section_id)
            return True
        return False

    def add_section(self, source_document: str, page_count: int) -> bool:
        if self._is_dragging("add"):
            return False
        self._commit(add_document(self.sections, source_document, page_count))
        return True

    def split_at_cursor(self) -> bool:
        if self._is_dragging("split"):
            return False
        try:
            result = split_at_cursor(self.sections, self.cursor)
        except MissingActiveSectionError as e:
            logger.debug("Split skipped: %s", e)
            return False
        if result is None:
            return False
        self._commit(result)
        return True

    def delete_active_section(self) -> bool:
        if self._is_dragging("delete"):
            return False
        try:
            result = delete_at_cursor(self.sections, self.cursor)
        except MissingActiveSectionError as e:
            logger.debug("Delete skipped: %s", e)
            return False
        self._commit(result)
        return True

    def rename_active_section(self, title: str) -> bool:
        if self._is_dragging("rename"):
            return False
        try:
            result = rename_at_cursor(self.sections, self.cursor, title)
        except MissingActiveSectionError as e:
            logger.debug("Rename skipped: %s", e)
            return False
        self._commit(result)
        return True

    def undo(self) -> bool:
        if self._is_dragging("undo"):
            return False
        previous = self.history.pop()
        if previous is None:
            return False
        self.sections = previous
        self.cursor = clamp_cursor(self.sections, self.cursor)
        return True

    # -------------------------------------------------------------------------
    # Cursor & zoom
    # -------------------------------------------------------------------------

    def set_cursor(self, page: int) -> bool:
        clamped = clamp_cursor(self.sections, page)
        changed = clamped != self.cursor
        self.cursor = clamped
        return changed

    def navigate_left(self) -> bool:
        return self.set_cursor(self.cursor - 1)

    def navigate_right(self) -> bool:
        return self.set_cursor(min(self.cursor + 1, max_navigable_page(self.sections)))

    def zoom_in(self) -> bool:
        zoom = min(self.pixels_per_page + ZOOM_IN_STEP, MAX_PIXELS_PER_PAGE)
        changed = zoom != self.pixels_per_page
        self.pixels_per_page = zoom
        return changed

    def zoom_out(self) -> bool:
        zoom = max(self.pixels_per_page - ZOOM_OUT_STEP, MIN_PIXELS_PER_PAGE)
        changed = zoom != self.pixels_per_page
        self.pixels_per_page = zoom
        return changed

    # -------------------------------------------------------------------------
    # Resize gesture (Idle -> Resizing -> Idle)
    # -------------------------------------------------------------------------

    def begin_resize(self, section_id: str, edge: ResizeEdge) -> None:
        """Pointer-down on an edge handle. Raises SectionNotFoundError for unknown ids."""
        if self.resizing is not None:
            self.end_resize()
        target = get_section(self.sections, section_id)
        self.resizing = ResizeGesture(
            section_id=section_id,
            edge=edge,
            origin_end_page=target.source_end_page,
            origin_sections=snapshot_sections(self.sections),
        )

    def move_resize(self, page: int) -> bool:
        """Pointer-move while dragging. Updates in place, no history."""
        gesture = self.resizing
        if gesture is None:
            return False

        if gesture.edge == ResizeEdge.LEFT:
            result = resize_left_edge(self.sections, gesture.section_id, page)
        else:
            result = resize_right_edge(
                self.sections,
                gesture.section_id,
                page,
                max_end_page=gesture.origin_end_page,
            )

        if result is self.sections:
            return False
        self.sections = result
        return True

    def move_resize_pointer(
        self,
        client_x: float,
        viewport_left: float = 0.0,
        scroll_left: float = 0.0,
        viewport_width: float = 0.0,
    ) -> bool:
        page = page_from_pointer(
            client_x,
            viewport_left,
            scroll_left,
            viewport_width,
            self.pixels_per_page,
        )
        return self.move_resize(page)

    def end_resize(self) -> bool:
        """
        Pointer-up. Always returns to Idle; commits one history entry when
        the drag changed the timeline.
        """
        gesture = self.resizing
        if gesture is None:
            return False
        self.resizing = None

        packed = pack_sections(self.sections)
        if packed == gesture.origin_sections:
            self.sections = packed
            return False
        self._commit(packed, previous=gesture.origin_sections)
        logger.debug("Resized %s (%s edge)", gesture.section_id, gesture.edge.value)
        return True

    # -------------------------------------------------------------------------
    # Keyboard
    # -------------------------------------------------------------------------

    def execute(self, command: Command) -> bool:
        """
        Run a command. RENAME only reports whether there is a section to
        rename; the new title arrives later through rename_active_section.
        """
        if command == Command.RENAME:
            return self.active_section is not None
        handlers = {
            Command.UNDO: self.undo,
            Command.SPLIT: self.split_at_cursor,
            Command.DELETE: self.delete_active_section,
            Command.ZOOM_IN: self.zoom_in,
            Command.ZOOM_OUT: self.zoom_out,
            Command.NAVIGATE_LEFT: self.navigate_left,
            Command.NAVIGATE_RIGHT: self.navigate_right,
        }
        return handlers[command]()

    def handle_key(
        self,
        key: str,
        code: str = "",
        shift: bool = False,
        ctrl: bool = False,
        alt: bool = False,
        meta: bool = False,
        from_text_input: bool = False,
    ) -> tuple[Command | None, bool]:
        if from_text_input:
            return None, False
        command = resolve_command(key, code, shift=shift, ctrl=ctrl, alt=alt, meta=meta)
        if command is None:
            return None, False
        return command, self.execute(command)
