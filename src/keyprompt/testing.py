"""In-memory terminal streams and a harness for driving prompt sessions.

``VirtualInput`` and ``VirtualOutput`` satisfy the ``KeyInput`` and
``Output`` protocols from :mod:`keyprompt.terminal` without any real I/O.
All output is captured in a buffer for assertions.

:class:`PromptHarness` wraps one session explicitly::

    session = prompts.text("Name?", input=VirtualInput(), output=VirtualOutput())
    harness = PromptHarness(session)
    future = harness.start()
    harness.press("a", "b", RETURN)
    assert await future == "ab"
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from keyprompt.keys import KeyEvent, parse_keypress
from keyprompt.prompt import PromptSession, State
from keyprompt.stdin_buffer import split_sequences
from keyprompt.terminal import HIDE_CURSOR, SHOW_CURSOR, KeyListener

# Raw input for common keys
RETURN = "\r"
ENTER = "\n"
TAB = "\t"
SPACE = " "
BACKSPACE = "\x7f"
ESCAPE = "\x1b"
INTERRUPT = "\x03"
UP = "\x1b[A"
DOWN = "\x1b[B"
RIGHT = "\x1b[C"
LEFT = "\x1b[D"
HOME = "\x1b[H"
END = "\x1b[F"
DELETE = "\x1b[3~"


class VirtualInput:
    """In-memory key input.

    Parameters
    ----------
    is_tty:
        Whether the input pretends to be a terminal.  Raw mode is only
        tracked when it does.
    """

    def __init__(self, is_tty: bool = True) -> None:
        self._is_tty = is_tty
        self.raw_mode = False
        self.raw_mode_calls: list[bool] = []
        self._listeners: list[KeyListener] = []
        self._end_listeners: list[Callable[[], None]] = []

    @property
    def is_tty(self) -> bool:
        return self._is_tty

    def set_raw_mode(self, enabled: bool) -> None:
        if not self._is_tty:
            return
        self.raw_mode_calls.append(enabled)
        self.raw_mode = enabled

    def on_key(self, listener: KeyListener) -> None:
        self._listeners.append(listener)

    def off_key(self, listener: KeyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def on_end(self, listener: Callable[[], None]) -> None:
        self._end_listeners.append(listener)

    def off_end(self, listener: Callable[[], None]) -> None:
        if listener in self._end_listeners:
            self._end_listeners.remove(listener)

    # -- Test helpers -------------------------------------------------------

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def feed(self, data: str) -> None:
        """Split *data* into keypresses and deliver each to the listeners.

        An incomplete trailing escape sequence is delivered as-is, as if the
        escape timeout had expired.
        """
        sequences, remainder = split_sequences(data)
        if remainder:
            sequences.append(remainder)
        for sequence in sequences:
            self.send(parse_keypress(sequence))

    def send(self, event: KeyEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def end(self) -> None:
        """Simulate end of input."""
        for listener in list(self._end_listeners):
            listener()


class VirtualOutput:
    """In-memory output that records all writes for test inspection."""

    def __init__(self, columns: int = 80) -> None:
        self._columns = columns
        self._buffer: list[str] = []
        self._resize_listeners: list[Callable[[], None]] = []
        self.cursor_visible = True

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    def write(self, data: str) -> None:
        self._buffer.append(data)
        hide = data.rfind(HIDE_CURSOR)
        show = data.rfind(SHOW_CURSOR)
        if hide != show:
            self.cursor_visible = show > hide

    def on_resize(self, listener: Callable[[], None]) -> None:
        self._resize_listeners.append(listener)

    def off_resize(self, listener: Callable[[], None]) -> None:
        if listener in self._resize_listeners:
            self._resize_listeners.remove(listener)

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written as a single string."""
        return "".join(self._buffer)

    @property
    def writes(self) -> list[str]:
        return list(self._buffer)

    @property
    def write_count(self) -> int:
        return len(self._buffer)

    def clear_buffer(self) -> None:
        self._buffer.clear()

    def simulate_resize(self, columns: int | None = None) -> None:
        """Change the width and fire the resize listeners."""
        if columns is not None:
            self._columns = columns
        for listener in list(self._resize_listeners):
            listener()


class PromptHarness:
    """Drives a :class:`PromptSession` from tests.

    Keys passed to :meth:`press` go through the session's
    :class:`VirtualInput` once the session has started, and straight to
    :meth:`PromptSession.handle_key` otherwise.
    """

    def __init__(self, session: PromptSession) -> None:
        self.session = session

    def start(self) -> asyncio.Future[Any]:
        return self.session.start()

    # -- inspection -------------------------------------------------------

    @property
    def value(self) -> Any:
        return self.session.value

    @property
    def cursor(self) -> int:
        return self.session.cursor

    @property
    def state(self) -> State:
        return self.session.state

    @property
    def error(self) -> str:
        return self.session.error

    @property
    def frame(self) -> str:
        return self.session.frame

    # -- driving ----------------------------------------------------------

    def press(self, *keys: str | KeyEvent) -> None:
        """Deliver raw input strings or ready-made key events, in order."""
        source = self.session.input
        for key in keys:
            routed = isinstance(source, VirtualInput) and source.listener_count > 0
            if isinstance(key, KeyEvent):
                if routed:
                    source.send(key)  # type: ignore[union-attr]
                else:
                    self.session.handle_key(key)
            elif routed:
                source.feed(key)  # type: ignore[union-attr]
            else:
                sequences, remainder = split_sequences(key)
                for sequence in sequences + ([remainder] if remainder else []):
                    self.session.handle_key(parse_keypress(sequence))

    def submit(self, *value: Any) -> None:
        """Submit the session, with a new value when one is given."""
        self.session.submit(*value)

    def cancel(self) -> None:
        self.session.cancel()

    def close(self) -> None:
        self.session.close()

    def render(self) -> None:
        self.session.render()

    def set_value(self, value: Any) -> None:
        self.session.set_value(value)

    def set_state(self, state: State) -> None:
        self.session.state = state

    def set_cursor(self, cursor: int) -> None:
        self.session.cursor = cursor
