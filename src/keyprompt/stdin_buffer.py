"""Reassembly of keypress sequences from raw input chunks.

A terminal delivers input in whatever chunks the OS hands over, so one
arrow key (``ESC [ A``) may arrive split across two reads, and a fast typist
or a paste can pack many keys into one.  :class:`StdinBuffer` re-cuts the
stream into one string per keypress.  A lone ``ESC`` is ambiguous (the
escape key, or the start of a sequence still in flight) and is only handed
on once the escape timeout passes without more input.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Literal

logger = logging.getLogger(__name__)

ESC = "\x1b"
BEL = "\x07"
ST = ESC + "\\"

SequenceStatus = Literal["complete", "incomplete", "plain"]


def _escape_end(data: str) -> int | None:
    """Return the length of the escape sequence *data* starts with.

    ``None`` means the sequence is cut off and more input is needed.
    """
    if len(data) < 2:
        return None
    intro = data[1]

    if intro == "[":
        # CSI: parameters up to the first final byte in 0x40..0x7E
        for i in range(2, len(data)):
            if 0x40 <= ord(data[i]) <= 0x7E:
                return i + 1
        return None

    if intro in "]_P":
        # OSC, APC and DCS run until BEL or ST
        ends = [i for i in (data.find(BEL, 2), data.find(ST, 2)) if i != -1]
        if not ends:
            return None
        end = min(ends)
        return end + (1 if data[end] == BEL else 2)

    if intro == "O":
        return 3 if len(data) >= 3 else None

    # ESC followed by any single character: a meta key
    return 2


def sequence_status(data: str) -> SequenceStatus:
    """Classify *data* as a complete escape sequence, a cut-off one, or plain."""
    if not data.startswith(ESC):
        return "plain"
    return "incomplete" if _escape_end(data) is None else "complete"


def split_sequences(data: str) -> tuple[list[str], str]:
    """Cut *data* into keypresses.

    Returns the complete keypresses and the trailing remainder of a
    sequence that has not fully arrived yet.
    """
    sequences: list[str] = []
    pos = 0
    while pos < len(data):
        if data[pos] != ESC:
            sequences.append(data[pos])
            pos += 1
            continue
        end = _escape_end(data[pos:])
        if end is None:
            return sequences, data[pos:]
        sequences.append(data[pos : pos + end])
        pos += end
    return sequences, ""


class StdinBuffer:
    """Collects input chunks and hands on one keypress at a time.

    Parameters
    ----------
    timeout:
        Seconds an incomplete sequence may wait for the rest of its bytes
        before it is handed on as-is.
    """

    def __init__(self, *, timeout: float = 0.05) -> None:
        self._pending = ""
        self._timeout = timeout
        self._timer: asyncio.TimerHandle | None = None
        self._callback: Callable[[str], None] | None = None

    @property
    def pending(self) -> str:
        """Input held back waiting for the rest of a sequence."""
        return self._pending

    def on_data(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def feed(self, chunk: str) -> None:
        """Add *chunk* and deliver every keypress it completes."""
        self._cancel_timer()
        sequences, self._pending = split_sequences(self._pending + chunk)
        self._deliver(sequences)
        if not self._pending:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nothing will ever fire a timer: give up on the rest now
            self._deliver(self.flush())
            return
        self._timer = loop.call_later(self._timeout, self._on_timeout)

    def flush(self) -> list[str]:
        """Take whatever is pending, complete or not."""
        self._cancel_timer()
        if not self._pending:
            return []
        pending, self._pending = self._pending, ""
        return [pending]

    def close(self) -> None:
        """Drop pending input and stop the timer."""
        self._cancel_timer()
        self._pending = ""

    def _on_timeout(self) -> None:
        self._timer = None
        if self._pending:
            logger.debug("escape timeout, flushing %r", self._pending)
        self._deliver(self.flush())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _deliver(self, sequences: list[str]) -> None:
        if self._callback is None:
            return
        for sequence in sequences:
            self._callback(sequence)
