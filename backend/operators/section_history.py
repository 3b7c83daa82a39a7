from models.section_models import Section


def snapshot_sections(sections: list[Section]) -> list[Section]:
    """Deep copy of a timeline, safe to keep after the live list changes."""
    return [s.model_copy(deep=True) for s in sections]


class HistoryStack:
    """
    Undo stack of complete timeline snapshots.

    push() is called with the timeline as it was before a committed edit;
    pop() hands back the most recent one. There is no redo.
    """

    def __init__(self) -> None:
        self._snapshots: list[list[Section]] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    def push(self, sections: list[Section]) -> None:
        self._snapshots.append(snapshot_sections(sections))

    def pop(self) -> list[Section] | None:
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()
