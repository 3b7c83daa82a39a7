"""
Pydantic models for the section timeline.

A Section is a titled, contiguous page range of a source PDF placed on a
shared integer timeline. The timeline is measured in pages: a section that
covers source pages 5-10 occupies 6 timeline pages starting at its
timeline_position.

This module contains:
- Core types (Section, ResizeEdge, ResizeGesture)
- Views derived from an edit session (PreviewInfo, SessionState)
- API request/response models
"""

from __future__ import annotations

from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


DEFAULT_SECTION_TITLE = "Untitled Section"

SECTION_COLORS = [
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
]


def new_section_id() -> str:
    return f"sec-{uuid4().hex[:12]}"


# =============================================================================
# ENUMS
# =============================================================================


class ResizeEdge(str, Enum):
    """Which handle of a section is being dragged."""
    LEFT = "left"
    RIGHT = "right"


# =============================================================================
# CORE TYPES
# =============================================================================


class Section(BaseModel):
    """
    One slice of a source document placed on the timeline.

    source_start_page/source_end_page are 1-indexed and inclusive.
    timeline_duration always equals the number of source pages covered
    once an edit is committed.
    """
    id: str = Field(default_factory=new_section_id, description="Opaque section id")
    source_document: str = Field(description="Name of the originating PDF")
    source_start_page: int = Field(ge=1, description="First source page (1-indexed)")
    source_end_page: int = Field(ge=1, description="Last source page (inclusive)")
    title: str = Field(default=DEFAULT_SECTION_TITLE)
    timeline_position: int = Field(default=0, description="Offset on the timeline")
    timeline_duration: int = Field(ge=1, description="Timeline pages occupied")
    display_color: str = Field(default=SECTION_COLORS[0])

    @model_validator(mode="after")
    def _check_page_range(self) -> Section:
        if self.source_end_page < self.source_start_page:
            raise ValueError(
                f"source_end_page ({self.source_end_page}) is before "
                f"source_start_page ({self.source_start_page})"
            )
        if self.timeline_duration != self.page_count:
            raise ValueError(
                f"timeline_duration ({self.timeline_duration}) must equal the "
                f"{self.page_count} source pages covered"
            )
        return self

    @property
    def timeline_end(self) -> int:
        """First timeline page after this section."""
        return self.timeline_position + self.timeline_duration

    @property
    def page_count(self) -> int:
        return self.source_end_page - self.source_start_page + 1

    def contains(self, cursor: int) -> bool:
        return self.timeline_position <= cursor < self.timeline_end

    @classmethod
    def from_document(
        cls,
        source_document: str,
        page_count: int,
        position: int = 0,
        color: str = SECTION_COLORS[0],
    ) -> Section:
        """Create a section covering every page of a source document."""
        return cls(
            source_document=source_document,
            source_start_page=1,
            source_end_page=page_count,
            timeline_position=position,
            timeline_duration=page_count,
            display_color=color,
        )


class ResizeGesture(BaseModel):
    """
    Live state of an edge drag.

    origin_end_page is the section's source_end_page when the drag started;
    the right edge may never grow past it. origin_sections is the timeline
    before the gesture and becomes the single history entry on release.
    """
    section_id: str
    edge: ResizeEdge
    origin_end_page: int
    origin_sections: list[Section] = Field(default_factory=list)


# =============================================================================
# SESSION VIEWS
# =============================================================================


class PreviewInfo(BaseModel):
    """What the preview pane should render for the current cursor."""
    section: Section
    page: int = Field(description="1-indexed page of section.source_document")


class SessionState(BaseModel):
    """Serializable snapshot of an edit session."""
    session_id: str
    subject: str
    sections: list[Section]
    cursor: int
    max_timeline_page: int
    active_section_id: str | None = None
    preview: PreviewInfo | None = None
    pixels_per_page: int
    resizing: ResizeGesture | None = None
    history_depth: int = 0


# =============================================================================
# REQUEST MODELS
# =============================================================================


class CreateSessionRequest(BaseModel):
    """Request to open an edit session, optionally seeded with sections."""
    sections: list[Section] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> CreateSessionRequest:
        seen = set()
        for section in self.sections:
            if section.id in seen:
                raise ValueError(f"Duplicate section id: {section.id}")
            seen.add(section.id)
        return self


class AddSectionRequest(BaseModel):
    """Request to append a whole library PDF to the timeline."""
    source_document: str
    page_count: int | None = Field(
        default=None,
        ge=1,
        description="Page count of the PDF (None = read it from the library)",
    )


class RenameSectionRequest(BaseModel):
    title: str


class SetCursorRequest(BaseModel):
    page: int


class NavigateRequest(BaseModel):
    direction: Literal["left", "right"]


class ZoomRequest(BaseModel):
    direction: Literal["in", "out"]


class KeyEventRequest(BaseModel):
    """A keydown event forwarded from the editor surface."""
    key: str = Field(description="KeyboardEvent.key")
    code: str = Field(default="", description="KeyboardEvent.code")
    shift: bool = False
    ctrl: bool = False
    alt: bool = False
    meta: bool = False
    from_text_input: bool = Field(
        default=False,
        description="True when the event target is an input or textarea",
    )


class ResizeStartRequest(BaseModel):
    section_id: str
    edge: ResizeEdge


class ResizeMoveRequest(BaseModel):
    """
    Pointer position during a drag.

    Either pass a timeline page directly, or the raw pointer geometry
    (client x, viewport left, scroll offset and viewport width) to be
    converted with the session's pixels-per-page scale.
    """
    page: int | None = None
    client_x: float | None = None
    viewport_left: float = 0.0
    scroll_left: float = 0.0
    viewport_width: float = 0.0

    @model_validator(mode="after")
    def _check_target(self) -> ResizeMoveRequest:
        if self.page is None and self.client_x is None:
            raise ValueError("Either page or client_x is required")
        return self


class PublishRequest(BaseModel):
    resource_title: str


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class SessionResponse(BaseModel):
    ok: bool = True
    state: SessionState


class SessionMutationResponse(BaseModel):
    ok: bool = True
    changed: bool
    state: SessionState


class KeyEventResponse(BaseModel):
    ok: bool = True
    command: str | None = None
    changed: bool = False
    state: SessionState
