"""Tests for keyprompt.utils -- terminal text utilities."""

from __future__ import annotations

import pytest

from keyprompt.utils import (
    AnsiCodeTracker,
    LineStyle,
    extract_ansi_code,
    format_lines,
    strip_ansi,
    truncate_to_width,
    visible_width,
    wrap_text,
)


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


class TestVisibleWidth:
    """Measure the visible terminal width of text."""

    def test_plain_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty_string(self) -> None:
        assert visible_width("") == 0

    def test_sgr_codes_do_not_count(self) -> None:
        assert visible_width("\x1b[31mred\x1b[0m") == 3

    def test_multiple_ansi_codes(self) -> None:
        assert visible_width("\x1b[1m\x1b[31mabc\x1b[0m") == 3

    def test_osc8_hyperlink_does_not_count(self) -> None:
        text = "\x1b]8;;https://example.com\x07link\x1b]8;;\x07"
        assert visible_width(text) == 4

    def test_apc_sequence_does_not_count(self) -> None:
        assert visible_width("\x1b_payload\x07visible") == 7

    def test_combining_mark_is_zero_width(self) -> None:
        # "e" + COMBINING ACUTE ACCENT
        assert visible_width("e\u0301") == 1

    def test_control_characters_are_zero_width(self) -> None:
        assert visible_width("a\x07b\x7f") == 2

    def test_c1_controls_are_zero_width(self) -> None:
        assert visible_width("\x85x") == 1

    def test_astral_code_point_is_one_column(self) -> None:
        assert visible_width("\U0001F600") == 1
        assert visible_width("a\U0001F600b") == 3

    def test_unterminated_escape_is_measured(self) -> None:
        # The ESC itself is a control character; the rest is ordinary text.
        assert visible_width("\x1b[31") == 3

    @pytest.mark.parametrize("text", ["", "a", "hello world", "~!@#$%^&*()", "x" * 100])
    def test_single_width_text_measures_its_length(self, text: str) -> None:
        assert visible_width(text) == len(text)

    def test_repeated_calls_agree(self) -> None:
        text = "café 世"
        assert visible_width(text) == visible_width(text) == 6


class TestStripAnsi:
    def test_removes_sgr(self) -> None:
        assert strip_ansi("\x1b[1;32mok\x1b[0m") == "ok"

    def test_no_escape_is_identity(self) -> None:
        assert strip_ansi("plain") == "plain"

    def test_keeps_unterminated_sequence(self) -> None:
        assert strip_ansi("a\x1b[3") == "a\x1b[3"


class TestExtractAnsiCode:
    def test_extracts_csi(self) -> None:
        assert extract_ansi_code("x\x1b[31my", 1) == ("\x1b[31m", 5)

    def test_none_when_not_escape(self) -> None:
        assert extract_ansi_code("abc", 0) is None

    def test_none_past_end(self) -> None:
        assert extract_ansi_code("abc", 10) is None

    def test_none_for_incomplete(self) -> None:
        assert extract_ansi_code("\x1b[", 0) is None


# ---------------------------------------------------------------------------
# AnsiCodeTracker
# ---------------------------------------------------------------------------


class TestAnsiCodeTracker:
    def test_tracks_color_and_bold(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[1;31m")
        assert tracker.has_active_codes()
        assert tracker.get_active_codes() == "\x1b[1m\x1b[31m"

    def test_reset_clears(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[4m")
        tracker.process("\x1b[0m")
        assert not tracker.has_active_codes()
        assert tracker.get_line_end_reset() == ""

    def test_attribute_off(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[4m")
        tracker.process("\x1b[24m")
        assert tracker.get_active_codes() == ""

    def test_256_color(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[38;5;208m")
        assert tracker.get_active_codes() == "\x1b[38;5;208m"

    def test_line_end_reset_when_active(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[32m")
        assert tracker.get_line_end_reset() == "\x1b[0m"

    def test_ignores_non_sgr(self) -> None:
        tracker = AnsiCodeTracker()
        tracker.process("\x1b[2K")
        assert not tracker.has_active_codes()


# ---------------------------------------------------------------------------
# wrap_text
# ---------------------------------------------------------------------------


class TestWrapText:
    def test_short_text_single_line(self) -> None:
        assert wrap_text("hello", 10) == ["hello"]

    def test_greedy_word_fill(self) -> None:
        assert wrap_text("one two three four", 9) == ["one two", "three", "four"]

    def test_long_word_is_hard_split(self) -> None:
        lines = wrap_text("a very long unsplittable-wordthatoverflows", 10)
        assert lines == ["a very", "long", "unsplittab", "le-wordtha", "toverflows"]
        assert all(visible_width(line) <= 10 for line in lines)

    def test_hard_split_starts_on_current_row_when_it_saves_a_row(self) -> None:
        assert wrap_text("ab cdefghijklm", 5) == ["ab cd", "efghi", "jklm"]

    def test_long_word_overflows_without_hard(self) -> None:
        assert wrap_text("abcdefghijkl", 5, hard=False) == ["abcdefghijkl"]

    def test_newlines_split_paragraphs(self) -> None:
        assert wrap_text("ab\ncd", 10) == ["ab", "cd"]

    def test_empty_paragraphs_preserved(self) -> None:
        assert wrap_text("a\n\nb", 10) == ["a", "", "b"]

    def test_empty_text(self) -> None:
        assert wrap_text("", 10) == [""]

    def test_non_positive_width_disables_wrapping(self) -> None:
        assert wrap_text("a b c\nd", 0) == ["a b c", "d"]
        assert wrap_text("a b c", -3) == ["a b c"]

    def test_style_reopened_on_next_line(self) -> None:
        lines = wrap_text("\x1b[31mhello world\x1b[0m", 5)
        assert lines == ["\x1b[31mhello\x1b[0m", "\x1b[31mworld\x1b[0m"]

    def test_hard_split_keeps_graphemes_whole(self) -> None:
        lines = wrap_text("ae\u0301iou", 2)
        assert lines == ["ae\u0301", "io", "u"]

    @pytest.mark.parametrize("width", [1, 2, 3, 5, 8, 13, 40])
    def test_lines_never_exceed_width(self, width: int) -> None:
        text = (
            "The quick \x1b[1mbrown\x1b[0m fox jumps over "
            "supercalifragilisticexpialidocious dogs\n\nand \U0001F600 cats"
        )
        for line in wrap_text(text, width):
            assert visible_width(line) <= width

    def test_wrapping_is_stable(self) -> None:
        lines = wrap_text("lorem ipsum dolor sit amet consectetur", 12)
        assert wrap_text("\n".join(lines), 12) == lines


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


class TestTruncateToWidth:
    def test_short_text_unchanged(self) -> None:
        assert truncate_to_width("hi", 10) == "hi"

    def test_exact_width_unchanged(self) -> None:
        assert truncate_to_width("hello", 5) == "hello"

    def test_truncates_with_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 8) == "hello..."

    def test_custom_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 6, "…") == "hello…"

    def test_open_style_is_closed(self) -> None:
        result = truncate_to_width("\x1b[31mhello world", 8)
        assert result == "\x1b[31mhello\x1b[0m..."

    def test_zero_width(self) -> None:
        assert truncate_to_width("hello", 0) == ""

    def test_ellipsis_wider_than_width(self) -> None:
        assert truncate_to_width("hello", 2) == ".."


# ---------------------------------------------------------------------------
# format_lines
# ---------------------------------------------------------------------------


class TestFormatLines:
    def test_plain_text_is_wrapped(self) -> None:
        assert format_lines("foo bar baz", max_width=9) == "foo bar\nbaz"

    def test_default_start(self) -> None:
        assert format_lines("foo", default=LineStyle(start="-")) == "- foo"

    def test_sides_fill_start_and_end(self) -> None:
        assert format_lines("foo", first_line=LineStyle(sides="|")) == "| foo |"

    def test_each_position_has_its_own_markers(self) -> None:
        result = format_lines(
            "a\nb\nc",
            first_line=LineStyle(start="┌"),
            new_line=LineStyle(start="│"),
            last_line=LineStyle(start="└"),
        )
        assert result == "┌ a\n│ b\n└ c"

    def test_single_line_falls_back_to_last_line(self) -> None:
        assert format_lines("x", last_line=LineStyle(end="!")) == "x !"
        result = format_lines(
            "x",
            first_line=LineStyle(end="?"),
            last_line=LineStyle(start=">", end="!"),
        )
        assert result == "> x ?"

    def test_style_applies_to_the_text_only(self) -> None:
        result = format_lines(
            "foo", first_line=LineStyle(start="-", style=str.upper)
        )
        assert result == "- FOO"

    def test_markers_are_reserved_from_the_width(self) -> None:
        result = format_lines(
            "aaaa bbbb", default=LineStyle(start="|", end="|"), max_width=10
        )
        assert result == "| aaaa |\n| bbbb |"
        assert all(visible_width(line) <= 10 for line in result.split("\n"))

    def test_long_word_is_split_inside_markers(self) -> None:
        result = format_lines("abcdefghij", default=LineStyle(start=">"), max_width=7)
        assert result.split("\n") == ["> abcd", "> efgh", "> ij"]

    def test_non_positive_width_does_not_wrap(self) -> None:
        text = "one two three four five"
        assert format_lines(text, default=LineStyle(start="#"), max_width=0) == (
            f"# {text}"
        )
