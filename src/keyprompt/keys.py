"""Keyboard input parsing for terminal prompts.

Turns one complete input sequence (as split by :class:`StdinBuffer`) into a
:class:`KeyEvent` carrying the raw character, if any, and a semantic key
name such as ``"up"``, ``"return"`` or ``"tab"``.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INTERRUPT = "\x03"
ESC = "\x1b"

# Names that always produce a ``cursor`` event
CURSOR_KEYS: frozenset[str] = frozenset(
    {"up", "down", "left", "right", "space", "enter"}
)

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[15~": "f5",
    "\x1b[17~": "f6",
    "\x1b[18~": "f7",
    "\x1b[19~": "f8",
    "\x1b[20~": "f9",
    "\x1b[21~": "f10",
    "\x1b[23~": "f11",
    "\x1b[24~": "f12",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[E": "clear",
    "\x1b[Z": "tab",
}

# xterm modifier parameter (CSI 1;<mod> X) -> (shift, meta, ctrl)
_MODIFIER_PARAMS: dict[str, tuple[bool, bool, bool]] = {
    "2": (True, False, False),
    "3": (False, True, False),
    "4": (True, True, False),
    "5": (False, False, True),
    "6": (True, False, True),
    "7": (False, True, True),
    "8": (True, True, True),
}

_MODIFIED_FINALS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One keypress.

    ``char`` is the printable (or control) character the key produced, or
    ``None`` for keys such as arrows that produce none.  ``name`` is the
    semantic key name, ``sequence`` the raw input it was parsed from.
    """

    char: str | None
    name: str | None = None
    sequence: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def is_interrupt(self) -> bool:
        return self.char == INTERRUPT or self.sequence == INTERRUPT


# ---------------------------------------------------------------------------
# parse_keypress
# ---------------------------------------------------------------------------


def parse_keypress(data: str) -> KeyEvent:  # noqa: C901
    """Parse one complete input sequence into a :class:`KeyEvent`."""
    if not data:
        return KeyEvent(char=None, sequence=data)

    # --- Legacy escape sequences ---
    name = LEGACY_KEY_SEQUENCES.get(data)
    if name is not None:
        return KeyEvent(
            char=None, name=name, sequence=data, shift=data == "\x1b[Z"
        )

    # --- Modified cursor keys: CSI 1;<mod> X ---
    if data.startswith("\x1b[1;") and len(data) == 6:
        mods = _MODIFIER_PARAMS.get(data[4])
        name = _MODIFIED_FINALS.get(data[5])
        if mods is not None and name is not None:
            shift, meta, ctrl = mods
            return KeyEvent(
                char=None, name=name, sequence=data,
                ctrl=ctrl, meta=meta, shift=shift,
            )

    # --- Simple single-byte keys ---
    if data == ESC:
        return KeyEvent(char=data, name="escape", sequence=data)
    if data == "\r":
        return KeyEvent(char=data, name="return", sequence=data)
    if data == "\n":
        return KeyEvent(char=data, name="enter", sequence=data)
    if data == "\t":
        return KeyEvent(char=data, name="tab", sequence=data)
    if data == " ":
        return KeyEvent(char=data, name="space", sequence=data)
    if data in ("\x7f", "\x08"):
        return KeyEvent(char=data, name="backspace", sequence=data)
    if data == "\x00":
        return KeyEvent(char=data, name="space", sequence=data, ctrl=True)

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return KeyEvent(
            char=data, name=chr(ord(data) + ord("a") - 1), sequence=data, ctrl=True
        )

    # --- Meta + key (ESC prefix) ---
    if len(data) == 2 and data[0] == ESC:
        inner = parse_keypress(data[1])
        return KeyEvent(
            char=None,
            name=inner.name,
            sequence=data,
            ctrl=inner.ctrl,
            meta=True,
            shift=inner.shift,
        )

    # --- Plain printable character ---
    if len(data) == 1:
        if "a" <= data.lower() <= "z":
            return KeyEvent(
                char=data, name=data.lower(), sequence=data, shift=data.isupper()
            )
        if "0" <= data <= "9":
            return KeyEvent(char=data, name=data, sequence=data)
        return KeyEvent(char=data, sequence=data)

    # Unrecognised escape sequence
    if data[0] == ESC:
        return KeyEvent(char=None, sequence=data)

    # Multi-character text (e.g. pasted input or an IME commit)
    return KeyEvent(char=data, sequence=data)
