"""
Section Editor - pure timeline transformations.

Every function here takes a list of sections and returns a new list; the
input is never mutated. Callers (the edit session) decide when a result is
committed to history.

- pack_sections: magnetic packing (contiguous, gap-free, ordered)
- find_active_section / current_source_page: cursor mapping
- add_document / split_at_cursor / delete_at_cursor / rename_at_cursor
- resize_left_edge / resize_right_edge: live-drag clamps
"""

import math

from models.section_models import (
    SECTION_COLORS,
    PreviewInfo,
    Section,
    new_section_id,
)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class SectionError(Exception):
    """Base exception for section timeline operations."""
    pass


class MissingActiveSectionError(SectionError):
    """Raised when an operation needs a section under the cursor and finds none."""
    def __init__(self, cursor: int):
        self.cursor = cursor
        super().__init__(f"No section at timeline page {cursor}")


class SectionNotFoundError(SectionError):
    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__(f"Section not found: {section_id}")


# =============================================================================
# PACKING & MAPPING
# =============================================================================


def pack_sections(sections: list[Section]) -> list[Section]:
    """
    Reflow sections so they sit end to end starting at page 0.

    Ordering is by current timeline_position; sorted() is stable, so
    sections sharing a position keep their input order. Only positions
    change.
    """
    ordered = sorted(sections, key=lambda s: s.timeline_position)
    packed = []
    offset = 0
    for section in ordered:
        packed.append(section.model_copy(update={"timeline_position": offset}))
        offset += section.timeline_duration
    return packed


def max_timeline_page(sections: list[Section]) -> int:
    return max((s.timeline_end for s in sections), default=0)


def max_navigable_page(sections: list[Section]) -> int:
    return max(0, max_timeline_page(sections) - 1)


def clamp_cursor(sections: list[Section], cursor: int) -> int:
    return max(0, min(cursor, max_navigable_page(sections)))


def find_active_section(sections: list[Section], cursor: int) -> Section | None:
    for section in sections:
        if section.contains(cursor):
            return section
    return None


def require_active_section(sections: list[Section], cursor: int) -> Section:
    section = find_active_section(sections, cursor)
    if section is None:
        raise MissingActiveSectionError(cursor)
    return section


def current_source_page(sections: list[Section], cursor: int) -> PreviewInfo | None:
    """Map the cursor to the active section and the source page it shows."""
    section = find_active_section(sections, cursor)
    if section is None:
        return None
    return PreviewInfo(
        section=section,
        page=section.source_start_page + (cursor - section.timeline_position),
    )


def page_from_pointer(
    client_x: float,
    viewport_left: float,
    scroll_left: float,
    viewport_width: float,
    pixels_per_page: int,
) -> int:
    """
    Convert a pointer x coordinate to a timeline page.

    The timeline is drawn with page 0 at the horizontal center of the
    viewport. Halves round up, matching the editor's rendering.
    """
    offset_from_center = client_x - viewport_left + scroll_left - viewport_width / 2
    return math.floor(offset_from_center / pixels_per_page + 0.5)


# =============================================================================
# STRUCTURAL EDITS
# =============================================================================


def add_document(
    sections: list[Section],
    source_document: str,
    page_count: int,
) -> list[Section]:
    """Append a section covering every page of source_document."""
    color = SECTION_COLORS[len(sections) % len(SECTION_COLORS)]
    new_section = Section.from_document(
        source_document,
        page_count,
        position=max_timeline_page(sections),
        color=color,
    )
    return pack_sections([*sections, new_section])


def split_at_cursor(sections: list[Section], cursor: int) -> list[Section] | None:
    """
    Split the active section at the cursor.

    Returns None when the cursor sits on the section's first page, since
    that split would produce an empty half.
    """
    target = require_active_section(sections, cursor)
    offset = cursor - target.timeline_position
    if offset == 0:
        return None

    split_page = target.source_start_page + offset
    head = target.model_copy(
        update={
            "source_end_page": split_page - 1,
            "timeline_duration": offset,
        }
    )
    tail = target.model_copy(
        update={
            "id": new_section_id(),
            "source_start_page": split_page,
            "timeline_position": target.timeline_position + offset,
            "timeline_duration": target.source_end_page - split_page + 1,
        }
    )

    result = []
    for section in sections:
        if section.id == target.id:
            result.extend([head, tail])
        else:
            result.append(section)
    return pack_sections(result)


def delete_at_cursor(sections: list[Section], cursor: int) -> list[Section]:
    target = require_active_section(sections, cursor)
    return pack_sections([s for s in sections if s.id != target.id])


def rename_at_cursor(sections: list[Section], cursor: int, title: str) -> list[Section]:
    target = require_active_section(sections, cursor)
    return [
        s.model_copy(update={"title": title}) if s.id == target.id else s
        for s in sections
    ]


# =============================================================================
# RESIZE (live drag)
# =============================================================================


def get_section(sections: list[Section], section_id: str) -> Section:
    for section in sections:
        if section.id == section_id:
            return section
    raise SectionNotFoundError(section_id)


def _replace(sections: list[Section], updated: Section) -> list[Section]:
    return [updated if s.id == updated.id else s for s in sections]


def resize_left_edge(
    sections: list[Section],
    section_id: str,
    page: int,
) -> list[Section]:
    """
    Move a section's left edge to page.

    The edge can go no further right than the section's last page and no
    further left than timeline page 0 or the point where the source start
    page would drop below 1.
    """
    target = get_section(sections, section_id)
    lower = max(0, target.timeline_position - (target.source_start_page - 1))
    upper = target.timeline_end - 1
    clamped = max(lower, min(page, upper))
    delta = clamped - target.timeline_position
    if delta == 0:
        return sections

    updated = target.model_copy(
        update={
            "timeline_position": clamped,
            "source_start_page": target.source_start_page + delta,
            "timeline_duration": target.timeline_duration - delta,
        }
    )
    return _replace(sections, updated)


def resize_right_edge(
    sections: list[Section],
    section_id: str,
    page: int,
    max_end_page: int,
) -> list[Section]:
    """
    Move a section's right edge to page.

    A section keeps at least one page. A move that would extend the source
    range past max_end_page is ignored and the sections come back unchanged.
    """
    target = get_section(sections, section_id)
    clamped = max(target.timeline_position + 1, page)
    new_duration = clamped - target.timeline_position
    new_end_page = target.source_start_page + new_duration - 1

    if new_end_page > max_end_page or new_duration == target.timeline_duration:
        return sections

    updated = target.model_copy(
        update={
            "timeline_duration": new_duration,
            "source_end_page": new_end_page,
        }
    )
    return _replace(sections, updated)
