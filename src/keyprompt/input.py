"""Scoped acquisition of a terminal for keypress-driven output.

:func:`acquire` puts the input stream into raw mode, optionally hides the
cursor and installs one owned key listener.  The returned
:class:`Acquisition` undoes every one of those effects on
:meth:`~Acquisition.release`, whichever code path ends the interaction.
"""

from __future__ import annotations

import logging
import sys
from types import TracebackType

from keyprompt.keys import KeyEvent
from keyprompt.settings import get_settings
from keyprompt.terminal import (
    ERASE_LINE_RIGHT,
    HIDE_CURSOR,
    SHOW_CURSOR,
    KeyInput,
    Output,
    cursor_move,
)

logger = logging.getLogger(__name__)


def is_cancel_key(event: KeyEvent) -> bool:
    """Return ``True`` for the interrupt byte or a key aliased to ``cancel``."""
    if event.is_interrupt:
        return True
    if event.ctrl or event.meta:
        return False
    return get_settings().alias_for(event.char, event.name) == "cancel"


class Acquisition:
    """Raw-mode terminal ownership, released exactly once.

    While held, every keypress passes through :meth:`_on_key`:

    * with ``exit_on_interrupt`` the interrupt byte releases the terminal
      and exits the process with status 0;
    * with ``overwrite`` the keystroke's echo is erased so the caller fully
      controls what is displayed.
    """

    def __init__(
        self,
        input: KeyInput,
        output: Output,
        *,
        overwrite: bool = True,
        hide_cursor: bool = True,
        exit_on_interrupt: bool = True,
    ) -> None:
        self._input = input
        self._output = output
        self._overwrite = overwrite
        self._hide_cursor = hide_cursor
        self._exit_on_interrupt = exit_on_interrupt
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def _engage(self) -> None:
        # Raw mode first: if it fails there is no listener to undo
        self._input.set_raw_mode(True)
        self._input.on_key(self._on_key)
        if self._hide_cursor:
            self._output.write(HIDE_CURSOR)
        logger.debug(
            "terminal acquired (overwrite=%s, hide_cursor=%s, exit_on_interrupt=%s)",
            self._overwrite,
            self._hide_cursor,
            self._exit_on_interrupt,
        )

    def _on_key(self, event: KeyEvent) -> None:
        # A keypress delivered after release belongs to nobody
        if self._released:
            return

        if self._exit_on_interrupt and is_cancel_key(event):
            logger.debug("interrupt received, exiting")
            self.release()
            sys.exit(0)

        if not self._overwrite:
            return

        if event.name == "return":
            self._output.write(cursor_move(0, -1) + ERASE_LINE_RIGHT)
        else:
            self._output.write(cursor_move(-1, 0) + ERASE_LINE_RIGHT)

    def release(self) -> None:
        """Restore the cursor and cooked mode and detach the key listener."""
        if self._released:
            return
        self._released = True
        self._input.off_key(self._on_key)
        if self._hide_cursor:
            self._output.write(SHOW_CURSOR)
        self._input.set_raw_mode(False)
        logger.debug("terminal released")

    def __enter__(self) -> Acquisition:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


def acquire(
    input: KeyInput,
    output: Output,
    *,
    overwrite: bool = True,
    hide_cursor: bool = True,
    exit_on_interrupt: bool = True,
) -> Acquisition:
    """Take raw-mode ownership of *input* and *output*.

    Raw mode is only toggled when *input* is a terminal.  Pass
    ``exit_on_interrupt=False`` when the caller handles the interrupt byte
    itself, as prompt sessions do.
    """
    acquisition = Acquisition(
        input,
        output,
        overwrite=overwrite,
        hide_cursor=hide_cursor,
        exit_on_interrupt=exit_on_interrupt,
    )
    acquisition._engage()
    return acquisition
