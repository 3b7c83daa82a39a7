"""
Keyboard shortcuts for the timeline editor.

Key events are normalized to a KeyChord (set of held modifiers + key) and
looked up in SHORTCUTS. Both KeyboardEvent.code and KeyboardEvent.key are
tried so layouts that report "Equal" or "=" for the same key both work.
Navigation and delete keys fire regardless of modifiers.
"""

from dataclasses import dataclass
from enum import Enum


class Modifier(str, Enum):
    SHIFT = "shift"
    CTRL = "ctrl"
    ALT = "alt"
    META = "meta"


class Command(str, Enum):
    UNDO = "undo"
    SPLIT = "split"
    RENAME = "rename"
    DELETE = "delete"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    NAVIGATE_LEFT = "navigate_left"
    NAVIGATE_RIGHT = "navigate_right"


@dataclass(frozen=True)
class KeyChord:
    modifiers: frozenset[Modifier]
    key: str


def _shift(key: str) -> KeyChord:
    return KeyChord(frozenset({Modifier.SHIFT}), key)


def _bare(key: str) -> KeyChord:
    return KeyChord(frozenset(), key)


SHORTCUTS: dict[KeyChord, Command] = {
    _shift("KeyU"): Command.UNDO,
    _shift("KeyS"): Command.SPLIT,
    _shift("KeyR"): Command.RENAME,
    _shift("+"): Command.ZOOM_IN,
    _shift("="): Command.ZOOM_IN,
    _shift("Equal"): Command.ZOOM_IN,
    _shift("-"): Command.ZOOM_OUT,
    _shift("_"): Command.ZOOM_OUT,
    _shift("Minus"): Command.ZOOM_OUT,
}

# Matched on the bare key whatever modifiers are held.
UNMODIFIED_SHORTCUTS: dict[KeyChord, Command] = {
    _bare("Delete"): Command.DELETE,
    _bare("Backspace"): Command.DELETE,
    _bare("ArrowLeft"): Command.NAVIGATE_LEFT,
    _bare("ArrowRight"): Command.NAVIGATE_RIGHT,
}


def chord_modifiers(
    shift: bool = False,
    ctrl: bool = False,
    alt: bool = False,
    meta: bool = False,
) -> frozenset[Modifier]:
    held = set()
    if shift:
        held.add(Modifier.SHIFT)
    if ctrl:
        held.add(Modifier.CTRL)
    if alt:
        held.add(Modifier.ALT)
    if meta:
        held.add(Modifier.META)
    return frozenset(held)


def resolve_command(
    key: str,
    code: str = "",
    shift: bool = False,
    ctrl: bool = False,
    alt: bool = False,
    meta: bool = False,
) -> Command | None:
    modifiers = chord_modifiers(shift=shift, ctrl=ctrl, alt=alt, meta=meta)
    for candidate in (code, key):
        if not candidate:
            continue
        command = SHORTCUTS.get(KeyChord(modifiers, candidate))
        if command is not None:
            return command
    return UNMODIFIED_SHORTCUTS.get(_bare(key))
