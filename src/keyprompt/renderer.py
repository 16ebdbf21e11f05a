"""Differential frame renderer for inline prompts.

A prompt's appearance is one *frame*: a string produced by a pure render
function.  :class:`Renderer` keeps the previously painted frame, diffs each
new frame against it line by line and writes only what changed:

* nothing, when the frame is identical;
* a single-line patch, when exactly one row differs;
* a tail rewrite from the first differing row otherwise.

Row arithmetic is done on frames wrapped to the terminal width, because
that is how many rows the terminal actually used to display them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from keyprompt.terminal import (
    ERASE_DOWN,
    HIDE_CURSOR,
    Output,
    cursor_move,
    erase_lines,
)
from keyprompt.utils import visible_width, wrap_text

if TYPE_CHECKING:
    from keyprompt.prompt import PromptSession, PromptView

logger = logging.getLogger(__name__)

RenderFn = Callable[["PromptView"], "str | None"]


def diff_lines(a: str, b: str) -> list[int] | None:
    """Return the indices of the lines that differ between *a* and *b*.

    Lines are compared element-wise up to the longer of the two.  Returns
    ``None`` when the frames are equal.
    """
    if a == b:
        return None

    a_lines = a.split("\n")
    b_lines = b.split("\n")
    diff: list[int] = []
    for i in range(max(len(a_lines), len(b_lines))):
        a_line = a_lines[i] if i < len(a_lines) else None
        b_line = b_lines[i] if i < len(b_lines) else None
        if a_line != b_line:
            diff.append(i)
    return diff


def _cursor_to_column(col: int) -> str:
    return f"\x1b[{col + 1}G"


class Renderer:
    """Paints successive frames of one prompt on *output*."""

    def __init__(self, output: Output) -> None:
        self._output = output
        self._previous_frame: str = ""
        self.render_count: int = 0

    @property
    def previous_frame(self) -> str:
        return self._previous_frame

    def render_once(self, render_fn: RenderFn, session: PromptSession) -> None:
        """Render *session* through *render_fn* and paint the difference."""
        columns = self._output.columns
        frame = "\n".join(
            wrap_text(render_fn(session.snapshot()) or "", columns, hard=True)
        )
        if frame == self._previous_frame:
            return

        self.render_count += 1

        if session.state == "initial":
            # First paint: nothing on screen to diff against yet
            self._output.write(HIDE_CURSOR + frame)
            self._previous_frame = frame
            session.state = "active"
            logger.debug("initial paint: %d rows", frame.count("\n") + 1)
            return

        diff = diff_lines(self._previous_frame, frame) or []
        out = [self._restore_cursor(columns)]
        out.append(self._patch(diff, frame))
        self._output.write("".join(out))
        self._previous_frame = frame
        logger.debug(
            "render %d: %d rows, %d changed", self.render_count,
            frame.count("\n") + 1, len(diff),
        )

    # ------------------------------------------------------------------

    def _restore_cursor(self, columns: int) -> str:
        """Move from the end of the previous frame to its top-left corner."""
        rows = len(wrap_text(self._previous_frame, columns, hard=True)) - 1
        return cursor_move(-999, -rows)

    def _patch(self, diff: list[int], frame: str) -> str:
        old_lines = self._previous_frame.split("\n")
        lines = frame.split("\n")
        if not diff:
            return ERASE_DOWN + frame

        first = diff[0]

        # Rows appended below the previous frame: continue from its last row
        if first >= len(old_lines):
            last = len(old_lines) - 1
            return (
                cursor_move(0, last)
                + _cursor_to_column(visible_width(old_lines[last]))
                + ERASE_DOWN
                + "\n"
                + "\n".join(lines[first:])
            )

        # Rows removed from the end: clear them and park on the new last row
        if first >= len(lines):
            return (
                cursor_move(0, first)
                + ERASE_DOWN
                + cursor_move(0, -1)
                + _cursor_to_column(visible_width(lines[-1]))
            )

        if len(diff) == 1:
            return (
                cursor_move(0, first)
                + erase_lines(1)
                + lines[first]
                + cursor_move(0, len(lines) - first - 1)
            )

        return cursor_move(0, first) + ERASE_DOWN + "\n".join(lines[first:])
