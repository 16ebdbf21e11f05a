"""Tests for keyprompt.renderer -- differential frame painting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from keyprompt.prompt import PromptView, State
from keyprompt.renderer import Renderer, diff_lines
from keyprompt.terminal import ERASE_DOWN, ERASE_LINE, HIDE_CURSOR
from keyprompt.testing import VirtualOutput


@dataclass
class FakeSession:
    """Just enough of a session for the renderer."""

    value: Any = ""
    state: State = "initial"

    def snapshot(self) -> PromptView:
        return PromptView(state=self.state, value=self.value, cursor=0, error="")


def show_value(view: PromptView) -> str:
    return view.value


def painted(frame: str, columns: int = 80) -> tuple[Renderer, FakeSession, VirtualOutput]:
    out = VirtualOutput(columns=columns)
    renderer = Renderer(out)
    session = FakeSession(value=frame)
    renderer.render_once(show_value, session)  # type: ignore[arg-type]
    return renderer, session, out


class TestDiffLines:
    def test_equal(self) -> None:
        assert diff_lines("a\nb", "a\nb") is None

    def test_single_change(self) -> None:
        assert diff_lines("a\nb\nc", "a\nX\nc") == [1]

    def test_up_to_longer_length(self) -> None:
        assert diff_lines("a\nb", "a\nc\nd") == [1, 2]
        assert diff_lines("a\nb\nc", "a") == [1, 2]


class TestInitialPaint:
    def test_hides_cursor_and_paints_frame(self) -> None:
        renderer, session, out = painted("hello\nworld")
        assert out.output == HIDE_CURSOR + "hello\nworld"
        assert session.state == "active"
        assert renderer.previous_frame == "hello\nworld"

    def test_none_renders_nothing(self) -> None:
        out = VirtualOutput()
        renderer = Renderer(out)
        session = FakeSession()
        renderer.render_once(lambda view: None, session)  # type: ignore[arg-type]
        assert out.write_count == 0

    def test_frame_is_wrapped_to_columns(self) -> None:
        renderer, _, _ = painted("hello world", columns=5)
        assert renderer.previous_frame == "hello\nworld"


class TestDifferentialPaint:
    def test_same_frame_writes_nothing(self) -> None:
        renderer, session, out = painted("a\nb")
        writes = out.write_count
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.write_count == writes

    def test_single_line_patch(self) -> None:
        renderer, session, out = painted("a\nb\nc")
        out.clear_buffer()
        session.value = "a\nX\nc"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.output == (
            "\x1b[999D\x1b[2A"  # back to the top-left corner
            "\x1b[1B"  # down to the changed row
            "\x1b[2K\x1b[G"  # erase it
            "X"
            "\x1b[1B"  # down to the last row
        )
        assert out.output.count(ERASE_LINE) == 1

    def test_multi_line_tail_rewrite(self) -> None:
        renderer, session, out = painted("a\nb\nc")
        out.clear_buffer()
        session.value = "a\nX\nY"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.output == "\x1b[999D\x1b[2A\x1b[1B" + ERASE_DOWN + "X\nY"

    def test_lines_before_first_difference_are_not_rewritten(self) -> None:
        renderer, session, out = painted("keep\nold1\nold2")
        out.clear_buffer()
        session.value = "keep\nnew1\nnew2\nnew3"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert "keep" not in out.output
        assert out.output.endswith("new1\nnew2\nnew3")

    def test_appended_line(self) -> None:
        renderer, session, out = painted("a\nb")
        out.clear_buffer()
        session.value = "a\nb\nc"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.output == "\x1b[999D\x1b[1A\x1b[1B\x1b[2G" + ERASE_DOWN + "\nc"

    def test_removed_line(self) -> None:
        renderer, session, out = painted("a\nb\nc")
        out.clear_buffer()
        session.value = "a\nb"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.output == "\x1b[999D\x1b[2A\x1b[2B" + ERASE_DOWN + "\x1b[1A\x1b[2G"
        assert renderer.previous_frame == "a\nb"

    def test_one_write_per_render(self) -> None:
        renderer, session, out = painted("a\nb\nc")
        out.clear_buffer()
        session.value = "x\ny\nz"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert out.write_count == 1

    def test_render_count(self) -> None:
        renderer, session, _ = painted("a")
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        session.value = "b"
        renderer.render_once(show_value, session)  # type: ignore[arg-type]
        assert renderer.render_count == 2
