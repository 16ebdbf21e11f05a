"""Terminal streams for raw-mode key input and prompt output.

Provides the ``KeyInput`` and ``Output`` protocols the prompt engine talks
to, concrete ``ProcessInput``/``ProcessOutput`` implementations backed by
``sys.stdin``/``sys.stdout``, and the ANSI escape helpers used to move the
cursor and erase screen regions.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
from typing import Callable, Protocol, TextIO

from keyprompt.keys import KeyEvent, parse_keypress
from keyprompt.settings import get_settings
from keyprompt.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
ERASE_DOWN = "\x1b[J"
ERASE_LINE = "\x1b[2K"
ERASE_LINE_RIGHT = "\x1b[0K"
CURSOR_UP = "\x1b[1A"
CURSOR_LEFT = "\x1b[G"


def cursor_move(dx: int, dy: int) -> str:
    """Return the sequence that moves the cursor by *dx* columns and *dy* rows."""
    out = ""
    if dx < 0:
        out += f"\x1b[{-dx}D"
    elif dx > 0:
        out += f"\x1b[{dx}C"
    if dy < 0:
        out += f"\x1b[{-dy}A"
    elif dy > 0:
        out += f"\x1b[{dy}B"
    return out


def erase_lines(count: int) -> str:
    """Erase *count* lines upwards from the cursor, ending in column 0."""
    out = ""
    for i in range(count):
        out += ERASE_LINE + (CURSOR_UP if i < count - 1 else "")
    if count:
        out += CURSOR_LEFT
    return out


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

KeyListener = Callable[[KeyEvent], None]


class KeyInput(Protocol):
    """Interface for a keyboard input stream."""

    @property
    def is_tty(self) -> bool: ...

    def set_raw_mode(self, enabled: bool) -> None: ...

    def on_key(self, listener: KeyListener) -> None: ...

    def off_key(self, listener: KeyListener) -> None: ...

    def on_end(self, listener: Callable[[], None]) -> None: ...

    def off_end(self, listener: Callable[[], None]) -> None: ...


class Output(Protocol):
    """Interface for the stream a prompt paints on."""

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    def on_resize(self, listener: Callable[[], None]) -> None: ...

    def off_resize(self, listener: Callable[[], None]) -> None: ...


# ---------------------------------------------------------------------------
# ProcessInput
# ---------------------------------------------------------------------------


class ProcessInput:
    """Key input backed by ``sys.stdin`` (or another file-descriptor stream).

    Raw mode is toggled with :mod:`termios`.  The stream is read through an
    asyncio reader that is registered only while at least one key listener
    is attached.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._listeners: list[KeyListener] = []
        self._end_listeners: list[Callable[[], None]] = []
        self._original_termios: list | None = None
        self._reader_loop: asyncio.AbstractEventLoop | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = StdinBuffer(
            timeout=get_settings().escape_timeout_ms / 1000.0
        )
        self._buffer.on_data(self._dispatch)

    # -- properties ---------------------------------------------------------

    @property
    def is_tty(self) -> bool:
        try:
            return self._stream.isatty()
        except (ValueError, OSError):
            return False

    # -- raw mode -----------------------------------------------------------

    def set_raw_mode(self, enabled: bool) -> None:
        """Switch the terminal between raw and cooked mode.

        No-op when the stream is not a terminal.  Output post-processing is
        left on so ``\\n`` still returns the carriage.
        """
        if not self.is_tty:
            return
        fd = self._stream.fileno()
        if enabled:
            if self._original_termios is not None:
                return
            self._original_termios = termios.tcgetattr(fd)
            attrs = termios.tcgetattr(fd)
            attrs[0] &= ~(
                termios.BRKINT | termios.ICRNL | termios.INPCK
                | termios.ISTRIP | termios.IXON
            )
            attrs[2] |= termios.CS8
            attrs[3] &= ~(
                termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG
            )
            attrs[6][termios.VMIN] = 1
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSADRAIN, attrs)
            logger.debug("raw mode enabled on fd %d", fd)
        elif self._original_termios is not None:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None
            logger.debug("raw mode disabled on fd %d", fd)

    # -- listeners ----------------------------------------------------------

    def on_key(self, listener: KeyListener) -> None:
        self._listeners.append(listener)
        self._start_reader()

    def off_key(self, listener: KeyListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return
        if not self._listeners:
            self._stop_reader()

    def on_end(self, listener: Callable[[], None]) -> None:
        self._end_listeners.append(listener)

    def off_end(self, listener: Callable[[], None]) -> None:
        try:
            self._end_listeners.remove(listener)
        except ValueError:
            pass

    # -- private: stdin reading --------------------------------------------

    def _start_reader(self) -> None:
        if self._reader_loop is not None:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.add_reader(self._stream.fileno(), self._on_readable)
        except (RuntimeError, ValueError, OSError):
            # No running event loop or no pollable descriptor
            logger.debug("cannot read keys from %r", self._stream)
            return
        self._reader_loop = loop

    def _stop_reader(self) -> None:
        loop = self._reader_loop
        if loop is None:
            return
        self._reader_loop = None
        try:
            loop.remove_reader(self._stream.fileno())
        except (RuntimeError, ValueError, OSError):
            pass
        self._buffer.close()

    def _on_readable(self) -> None:
        try:
            raw = os.read(self._stream.fileno(), 4096)
        except OSError:
            return

        if not raw:
            logger.debug("end of input")
            self._stop_reader()
            for listener in list(self._end_listeners):
                listener()
            return

        self._buffer.feed(self._decoder.decode(raw))

    def _dispatch(self, data: str) -> None:
        event = parse_keypress(data)
        for listener in list(self._listeners):
            listener(event)


# ---------------------------------------------------------------------------
# ProcessOutput
# ---------------------------------------------------------------------------


class ProcessOutput:
    """Prompt output backed by ``sys.stdout`` with SIGWINCH resize events."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._resize_listeners: list[Callable[[], None]] = []
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._write_log_path: str = get_settings().write_log_path

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stream.fileno()).columns
        except (ValueError, OSError):
            return 80

    def write(self, data: str) -> None:
        """Write data to the stream and optionally to the write log."""
        try:
            self._stream.write(data)
            self._stream.flush()
        except OSError:
            pass

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                pass

    def on_resize(self, listener: Callable[[], None]) -> None:
        if not self._resize_listeners:
            try:
                self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
                signal.signal(signal.SIGWINCH, self._on_sigwinch)
            except ValueError:
                # signal handlers can only be installed from the main thread
                logger.debug("resize notifications unavailable")
        self._resize_listeners.append(listener)

    def off_resize(self, listener: Callable[[], None]) -> None:
        try:
            self._resize_listeners.remove(listener)
        except ValueError:
            return
        if not self._resize_listeners and self._prev_sigwinch_handler is not None:
            try:
                signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            except ValueError:
                pass
            self._prev_sigwinch_handler = None

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        # Defer to the loop so a resize never interleaves with a render
        try:
            asyncio.get_running_loop().call_soon(self._notify_resize)
        except RuntimeError:
            self._notify_resize()

    def _notify_resize(self) -> None:
        for listener in list(self._resize_listeners):
            listener()
