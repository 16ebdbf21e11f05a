"""Tests for keyprompt.input -- scoped terminal acquisition."""

from __future__ import annotations

import pytest

from keyprompt.input import acquire, is_cancel_key
from keyprompt.keys import parse_keypress
from keyprompt.settings import set_global_aliases
from keyprompt.terminal import ERASE_LINE_RIGHT, HIDE_CURSOR, SHOW_CURSOR
from keyprompt.testing import INTERRUPT, RETURN, VirtualInput, VirtualOutput


class BrokenTerminal(VirtualInput):
    def set_raw_mode(self, enabled: bool) -> None:
        if enabled:
            raise OSError("tcsetattr failed")
        super().set_raw_mode(enabled)


class TestAcquire:
    def test_enters_raw_mode_and_hides_cursor(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out)
        assert inp.raw_mode
        assert out.output == HIDE_CURSOR
        assert inp.listener_count == 1
        acquisition.release()

    def test_raw_mode_failure_leaves_no_listener(self) -> None:
        inp, out = BrokenTerminal(), VirtualOutput()
        with pytest.raises(OSError, match="tcsetattr"):
            acquire(inp, out)
        assert inp.listener_count == 0
        assert out.output == ""

    def test_release_restores_everything(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out)
        acquisition.release()
        assert not inp.raw_mode
        assert out.cursor_visible
        assert out.output.endswith(SHOW_CURSOR)
        assert inp.listener_count == 0
        assert acquisition.released

    def test_release_twice_is_noop(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out)
        acquisition.release()
        writes = out.write_count
        acquisition.release()
        assert out.write_count == writes
        assert inp.raw_mode_calls == [True, False]

    def test_not_a_tty_skips_raw_mode(self) -> None:
        inp, out = VirtualInput(is_tty=False), VirtualOutput()
        acquire(inp, out).release()
        assert inp.raw_mode_calls == []

    def test_hide_cursor_off(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquire(inp, out, hide_cursor=False).release()
        assert out.output == ""

    def test_context_manager(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        with acquire(inp, out) as acquisition:
            assert inp.raw_mode
        assert acquisition.released
        assert not inp.raw_mode


class TestOverwrite:
    def test_erases_echo_of_character(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out, hide_cursor=False)
        inp.feed("a")
        assert out.output == "\x1b[1D" + ERASE_LINE_RIGHT
        acquisition.release()

    def test_return_moves_up_a_line(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out, hide_cursor=False)
        inp.feed(RETURN)
        assert out.output == "\x1b[1A" + ERASE_LINE_RIGHT
        acquisition.release()

    def test_overwrite_off_writes_nothing(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out, overwrite=False, hide_cursor=False)
        inp.feed("abc")
        assert out.output == ""
        acquisition.release()


class TestInterrupt:
    def test_interrupt_releases_and_exits(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out)
        with pytest.raises(SystemExit) as exc_info:
            inp.feed(INTERRUPT)
        assert exc_info.value.code == 0
        assert acquisition.released
        assert not inp.raw_mode
        assert out.cursor_visible

    def test_cancel_alias_exits(self) -> None:
        set_global_aliases([("q", "cancel")])
        inp, out = VirtualInput(), VirtualOutput()
        acquire(inp, out)
        with pytest.raises(SystemExit):
            inp.feed("q")
        assert not inp.raw_mode

    def test_interrupt_ignored_when_not_owned(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out, exit_on_interrupt=False)
        inp.feed(INTERRUPT)
        assert not acquisition.released
        acquisition.release()

    def test_keypress_after_release_is_ignored(self) -> None:
        inp, out = VirtualInput(), VirtualOutput()
        acquisition = acquire(inp, out)
        listener = acquisition._on_key
        acquisition.release()
        writes = out.write_count
        # A key already in flight reaches the old listener after release
        listener(parse_keypress("a"))
        listener(parse_keypress(INTERRUPT))
        assert out.write_count == writes


class TestIsCancelKey:
    def test_interrupt(self) -> None:
        assert is_cancel_key(parse_keypress(INTERRUPT))

    def test_plain_key(self) -> None:
        assert not is_cancel_key(parse_keypress("q"))

    def test_alias(self) -> None:
        set_global_aliases([("q", "cancel")])
        assert is_cancel_key(parse_keypress("q"))

    def test_alias_ignores_modified_keys(self) -> None:
        set_global_aliases([("q", "cancel")])
        assert not is_cancel_key(parse_keypress("\x1bq"))
