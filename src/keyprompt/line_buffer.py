"""Single-line editing buffer for tracked-value prompts."""

from __future__ import annotations

import grapheme

from keyprompt.keys import KeyEvent


def _last_grapheme_len(text: str) -> int:
    graphemes = list(grapheme.graphemes(text))
    return len(graphemes[-1]) if graphemes else 1


def _first_grapheme_len(text: str) -> int:
    for g in grapheme.graphemes(text):
        return len(g)
    return 1


class LineBuffer:
    """Readline-style line buffer driven by :class:`KeyEvent`s.

    Holds a value and a cursor offset into it.  Cursor movement and
    deletion step over whole grapheme clusters.  ``return`` hands the line
    off and leaves the buffer empty.
    """

    def __init__(self, value: str = "") -> None:
        self._value: str = value
        self._cursor: int = len(value)

    @property
    def value(self) -> str:
        return self._value

    @property
    def cursor(self) -> int:
        return self._cursor

    def write(self, text: str) -> None:
        """Replace the line with *text* and park the cursor at its end."""
        self._value = text
        self._cursor = len(text)

    def clear(self) -> None:
        self.write("")

    def handle_key(self, event: KeyEvent) -> bool:
        """Apply *event*; return ``True`` if the value or cursor changed."""
        before = (self._value, self._cursor)

        if event.name in ("return", "enter") and not event.ctrl and not event.meta:
            if event.name == "return":
                self.clear()
            return before != (self._value, self._cursor)

        if event.ctrl:
            self._handle_ctrl(event.name)
        elif event.meta:
            pass
        elif event.name == "backspace":
            self._backspace()
        elif event.name == "delete":
            self._forward_delete()
        elif event.name == "left":
            if self._cursor > 0:
                self._cursor -= _last_grapheme_len(self._value[: self._cursor])
        elif event.name == "right":
            if self._cursor < len(self._value):
                self._cursor += _first_grapheme_len(self._value[self._cursor :])
        elif event.name == "home":
            self._cursor = 0
        elif event.name == "end":
            self._cursor = len(self._value)
        elif event.char is not None and event.name != "tab":
            self._insert(event.char)

        return before != (self._value, self._cursor)

    # ------------------------------------------------------------------

    def _handle_ctrl(self, name: str | None) -> None:
        if name == "a":
            self._cursor = 0
        elif name == "e":
            self._cursor = len(self._value)
        elif name == "b":
            self._cursor = max(0, self._cursor - 1)
        elif name == "f":
            self._cursor = min(len(self._value), self._cursor + 1)
        elif name == "h":
            self._backspace()
        elif name == "d":
            self._forward_delete()
        elif name == "u":
            self._value = self._value[self._cursor :]
            self._cursor = 0
        elif name == "k":
            self._value = self._value[: self._cursor]
        elif name == "w":
            self._delete_word_backwards()

    def _insert(self, text: str) -> None:
        # Control characters never reach the line
        text = "".join(
            ch for ch in text
            if not (ord(ch) < 32 or ord(ch) == 0x7F or 0x80 <= ord(ch) <= 0x9F)
        )
        if not text:
            return
        self._value = self._value[: self._cursor] + text + self._value[self._cursor :]
        self._cursor += len(text)

    def _backspace(self) -> None:
        if self._cursor == 0:
            return
        gl = _last_grapheme_len(self._value[: self._cursor])
        self._value = self._value[: self._cursor - gl] + self._value[self._cursor :]
        self._cursor -= gl

    def _forward_delete(self) -> None:
        if self._cursor >= len(self._value):
            return
        gl = _first_grapheme_len(self._value[self._cursor :])
        self._value = self._value[: self._cursor] + self._value[self._cursor + gl :]

    def _delete_word_backwards(self) -> None:
        end = self._cursor
        start = end
        while start > 0 and self._value[start - 1].isspace():
            start -= 1
        while start > 0 and not self._value[start - 1].isspace():
            start -= 1
        self._value = self._value[:start] + self._value[end:]
        self._cursor = start
