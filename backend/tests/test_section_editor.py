import pytest
from pydantic import ValidationError

from models.section_models import CreateSessionRequest, Section
from operators.section_editor import (
    MissingActiveSectionError,
    SectionNotFoundError,
    add_document,
    current_source_page,
    delete_at_cursor,
    find_active_section,
    max_timeline_page,
    pack_sections,
    page_from_pointer,
    rename_at_cursor,
    resize_left_edge,
    resize_right_edge,
    split_at_cursor,
)


def _section(section_id: str, position: int, start: int, end: int, doc: str = "book.pdf") -> Section:
    return Section(
        id=section_id,
        source_document=doc,
        source_start_page=start,
        source_end_page=end,
        timeline_position=position,
        timeline_duration=end - start + 1,
    )


def _assert_contiguous(sections: list[Section]) -> None:
    ordered = sorted(sections, key=lambda s: s.timeline_position)
    expected = 0
    for section in ordered:
        assert section.timeline_position == expected
        assert section.timeline_duration == section.source_end_page - section.source_start_page + 1
        expected += section.timeline_duration


class TestPackSections:
    def test_closes_gaps_in_position_order(self):
        sections = [
            _section("a", 0, 1, 5),
            _section("b", 5, 1, 3),
            _section("c", 100, 1, 2),
        ]

        packed = pack_sections(sections)

        assert [s.id for s in packed] == ["a", "b", "c"]
        assert [s.timeline_position for s in packed] == [0, 5, 10]
        assert [s.timeline_duration for s in packed] == [5, 3, 2]

    def test_resolves_overlaps(self):
        sections = [_section("a", 3, 1, 4), _section("b", 0, 1, 6)]

        packed = pack_sections(sections)

        assert [s.id for s in packed] == ["b", "a"]
        _assert_contiguous(packed)

    def test_equal_positions_keep_input_order(self):
        sections = [_section("x", 2, 1, 1), _section("y", 2, 1, 1), _section("z", 2, 1, 1)]

        assert [s.id for s in pack_sections(sections)] == ["x", "y", "z"]

    def test_is_idempotent(self):
        sections = [_section("a", 7, 1, 2), _section("b", -3, 4, 9), _section("c", 7, 2, 2)]

        once = pack_sections(sections)

        assert pack_sections(once) == once

    def test_preserves_ids_and_durations(self):
        sections = [_section("a", 40, 1, 2), _section("b", 10, 4, 9), _section("c", 0, 2, 2)]

        packed = pack_sections(sections)

        before = sorted((s.id, s.timeline_duration) for s in sections)
        after = sorted((s.id, s.timeline_duration) for s in packed)
        assert before == after

    def test_does_not_mutate_input(self):
        sections = [_section("a", 50, 1, 2)]

        pack_sections(sections)

        assert sections[0].timeline_position == 50

    def test_empty(self):
        assert pack_sections([]) == []
        assert max_timeline_page([]) == 0


class TestCursorMapping:
    def test_active_section_and_source_page(self):
        sections = pack_sections([_section("a", 0, 1, 3), _section("b", 3, 10, 14)])

        info = current_source_page(sections, 5)

        assert info is not None
        assert info.section.id == "b"
        assert info.page == 12

    def test_section_end_is_exclusive(self):
        sections = [_section("a", 0, 1, 3)]

        assert find_active_section(sections, 2).id == "a"
        assert find_active_section(sections, 3) is None

    def test_no_active_section_on_empty_timeline(self):
        assert find_active_section([], 0) is None
        assert current_source_page([], 0) is None

    def test_page_from_pointer_measures_from_viewport_center(self):
        # viewport 600px wide: page 0 sits at x=300
        assert page_from_pointer(300, 0, 0, 600, 30) == 0
        assert page_from_pointer(390, 0, 0, 600, 30) == 3
        assert page_from_pointer(345, 0, 0, 600, 30) == 2  # 1.5 rounds up
        assert page_from_pointer(400, 50, 200, 600, 30) == 8

    def test_page_from_pointer_uses_scroll_offset(self):
        assert page_from_pointer(300, 0, 300, 600, 30) == 10


class TestSplit:
    def test_split_scenario(self):
        sections = [_section("a", 0, 1, 10)]

        result = split_at_cursor(sections, 4)

        head, tail = result
        assert head.id == "a"
        assert (head.timeline_position, head.timeline_duration) == (0, 4)
        assert (head.source_start_page, head.source_end_page) == (1, 4)
        assert tail.id != "a"
        assert (tail.timeline_position, tail.timeline_duration) == (4, 6)
        assert (tail.source_start_page, tail.source_end_page) == (5, 10)

    @pytest.mark.parametrize("offset", [1, 2, 5, 8])
    def test_split_covers_original_range_exactly(self, offset):
        original = _section("a", 3, 11, 19)
        sections = pack_sections([_section("lead", 0, 1, 3), original])

        head, tail = [s for s in split_at_cursor(sections, 3 + offset) if s.id != "lead"]

        assert head.timeline_duration == offset
        assert tail.timeline_duration == 9 - offset
        assert head.source_start_page == 11
        assert tail.source_end_page == 19
        assert tail.source_start_page == head.source_end_page + 1

    def test_halves_inherit_title_color_and_document(self):
        section = _section("a", 0, 1, 6).model_copy(
            update={"title": "Chapter 1", "display_color": "#ef4444"}
        )

        head, tail = split_at_cursor([section], 2)

        for part in (head, tail):
            assert part.title == "Chapter 1"
            assert part.display_color == "#ef4444"
            assert part.source_document == "book.pdf"

    def test_split_at_section_start_is_noop(self):
        sections = pack_sections([_section("a", 0, 1, 3), _section("b", 3, 1, 4)])

        assert split_at_cursor(sections, 3) is None

    def test_split_without_active_section_raises(self):
        with pytest.raises(MissingActiveSectionError):
            split_at_cursor([_section("a", 0, 1, 3)], 7)

    def test_split_keeps_neighbours_in_place(self):
        sections = pack_sections([_section("a", 0, 1, 2), _section("b", 2, 1, 6), _section("c", 8, 1, 1)])

        result = split_at_cursor(sections, 4)

        assert [s.id for s in result][0] == "a"
        assert result[-1].id == "c"
        assert result[-1].timeline_position == 8
        _assert_contiguous(result)


class TestDeleteAndRename:
    def test_delete_repacks(self):
        sections = pack_sections([_section("a", 0, 1, 4), _section("b", 4, 5, 10)])

        result = delete_at_cursor(sections, 1)

        assert [s.id for s in result] == ["b"]
        assert result[0].timeline_position == 0
        assert result[0].timeline_duration == 6

    def test_delete_without_active_section_raises(self):
        with pytest.raises(MissingActiveSectionError):
            delete_at_cursor([], 0)

    def test_rename_only_touches_active_section(self):
        sections = pack_sections([_section("a", 0, 1, 4), _section("b", 4, 5, 10)])

        result = rename_at_cursor(sections, 5, "Appendix")

        assert [s.title for s in result] == ["Untitled Section", "Appendix"]
        assert sections[1].title == "Untitled Section"


class TestAddDocument:
    def test_appends_full_document_at_end(self):
        sections = [_section("a", 0, 1, 4)]

        result = add_document(sections, "notes.pdf", 12)

        added = result[-1]
        assert added.source_document == "notes.pdf"
        assert (added.source_start_page, added.source_end_page) == (1, 12)
        assert (added.timeline_position, added.timeline_duration) == (4, 12)
        assert added.title == "Untitled Section"


class TestResize:
    def test_left_edge_drag_right_shrinks_from_start(self):
        sections = [_section("a", 0, 1, 10)]

        (result,) = resize_left_edge(sections, "a", 3)

        assert result.timeline_position == 3
        assert result.source_start_page == 4
        assert result.timeline_duration == 7
        assert result.source_end_page == 10

    def test_left_edge_keeps_one_page(self):
        (result,) = resize_left_edge([_section("a", 0, 1, 10)], "a", 50)

        assert result.timeline_duration == 1
        assert result.source_start_page == 10

    def test_left_edge_grows_back_toward_page_one(self):
        sections = [_section("a", 5, 4, 10)]

        (result,) = resize_left_edge(sections, "a", 3)

        assert result.timeline_position == 3
        assert result.source_start_page == 2
        assert result.timeline_duration == 9

    def test_left_edge_never_moves_source_start_below_one(self):
        sections = [_section("a", 5, 2, 10)]

        (result,) = resize_left_edge(sections, "a", 0)

        assert result.source_start_page == 1
        assert result.timeline_position == 4

    def test_left_edge_never_below_timeline_zero(self):
        sections = [_section("a", 2, 8, 10)]

        (result,) = resize_left_edge(sections, "a", -20)

        assert result.timeline_position == 0
        assert result.source_start_page == 6

    def test_right_edge_shrinks(self):
        (result,) = resize_right_edge([_section("a", 0, 1, 10)], "a", 4, max_end_page=10)

        assert result.timeline_duration == 4
        assert result.source_end_page == 4

    def test_right_edge_keeps_one_page(self):
        (result,) = resize_right_edge([_section("a", 2, 1, 10)], "a", -5, max_end_page=10)

        assert result.timeline_duration == 1
        assert result.source_end_page == 1

    def test_right_edge_cannot_grow_past_original_end(self):
        sections = [_section("a", 0, 1, 10)]

        result = resize_right_edge(sections, "a", 15, max_end_page=10)

        assert result is sections

    def test_right_edge_can_grow_back_to_original_end(self):
        shrunk = [_section("a", 0, 1, 4)]

        (result,) = resize_right_edge(shrunk, "a", 10, max_end_page=10)

        assert result.source_end_page == 10
        assert result.timeline_duration == 10

    def test_unknown_section_raises(self):
        with pytest.raises(SectionNotFoundError):
            resize_left_edge([_section("a", 0, 1, 2)], "missing", 1)


class TestSectionModel:
    def test_rejects_duration_that_does_not_match_pages(self):
        with pytest.raises(ValidationError, match="timeline_duration"):
            Section(
                source_document="book.pdf",
                source_start_page=1,
                source_end_page=10,
                timeline_duration=3,
            )

    def test_rejects_reversed_range(self):
        with pytest.raises(ValidationError):
            Section(
                source_document="book.pdf",
                source_start_page=5,
                source_end_page=2,
                timeline_duration=1,
            )

    def test_create_session_request_rejects_duplicate_ids(self):
        with pytest.raises(ValidationError, match="Duplicate section id"):
            CreateSessionRequest(sections=[_section("a", 0, 1, 4), _section("a", 4, 5, 6)])

    def test_create_session_request_accepts_distinct_ids(self):
        request = CreateSessionRequest(sections=[_section("a", 0, 1, 4), _section("b", 4, 5, 6)])

        assert [s.id for s in request.sections] == ["a", "b"]
