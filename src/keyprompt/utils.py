"""Terminal text utilities: ANSI handling, width measurement, word wrapping.

Provides functions for measuring the visible column width of prompt frames,
tracking ANSI SGR state across line breaks, and wrapping paragraphs to the
terminal width the same way the terminal itself will.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator

import grapheme


# ---------------------------------------------------------------------------
# Regex patterns for ANSI / OSC / APC sequences
# ---------------------------------------------------------------------------

# CSI: ESC[ <params 0x30-0x3F> <intermediates 0x20-0x2F> <final 0x40-0x7E>
# OSC / APC: ESC] or ESC_ <payload> (BEL | ST)
_ANSI_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_SGR_RESET = "\x1b[0m"

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Code point width
# ---------------------------------------------------------------------------


def _char_width(ch: str) -> int:
    """Return the column width of a single code point.

    Control characters and combining diacritical marks take no column;
    everything else, astral code points included, takes exactly one.
    """
    cp = ord(ch)
    if cp <= 0x1F or 0x7F <= cp <= 0x9F:
        return 0
    if 0x0300 <= cp <= 0x036F:
        return 0
    return 1


# ---------------------------------------------------------------------------
# visible_width
# ---------------------------------------------------------------------------


def strip_ansi(text: str) -> str:
    """Remove every complete ANSI escape sequence from *text*.

    An unterminated sequence is left in place; its ESC byte is a control
    character and measures zero columns.
    """
    if "\x1b" not in text:
        return text
    return _ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*.

    * Strips ANSI escape sequences.
    * Uses a fast ASCII path when possible.
    * Caches results for non-ASCII strings.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    # Fast ASCII path: all codepoints in 0x20..0x7E
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = 0
    for ch in stripped:
        total += _char_width(ch)

    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# extract_ansi_code
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Extract an ANSI escape sequence starting at *pos* in *text*.

    Returns ``(code, length)`` or ``None`` if there is no complete escape
    sequence at *pos*.
    """
    if pos >= len(text) or text[pos] != "\x1b":
        return None
    match = _ANSI_RE.match(text, pos)
    if match is None:
        return None
    code = match.group()
    return (code, len(code))


def _iter_units(text: str) -> Iterator[tuple[str, bool]]:
    """Yield ``(unit, is_code)`` pairs: ANSI codes and grapheme clusters."""
    pos = 0
    for match in _ANSI_RE.finditer(text):
        if match.start() > pos:
            for g in grapheme.graphemes(text[pos : match.start()]):
                yield g, False
        yield match.group(), True
        pos = match.end()
    if pos < len(text):
        for g in grapheme.graphemes(text[pos:]):
            yield g, False


# ---------------------------------------------------------------------------
# AnsiCodeTracker
# ---------------------------------------------------------------------------

# SGR parameter -> (attribute, value); value None switches the attribute off
_SGR_ATTRIBUTES: dict[int, tuple[str, str | None]] = {
    1: ("bold", "\x1b[1m"),
    2: ("dim", "\x1b[2m"),
    3: ("italic", "\x1b[3m"),
    4: ("underline", "\x1b[4m"),
    5: ("blink", "\x1b[5m"),
    7: ("inverse", "\x1b[7m"),
    8: ("hidden", "\x1b[8m"),
    9: ("strikethrough", "\x1b[9m"),
    23: ("italic", None),
    24: ("underline", None),
    25: ("blink", None),
    27: ("inverse", None),
    28: ("hidden", None),
    29: ("strikethrough", None),
    39: ("fg_color", None),
    49: ("bg_color", None),
}

_ATTRIBUTE_ORDER = (
    "bold",
    "dim",
    "italic",
    "underline",
    "blink",
    "inverse",
    "hidden",
    "strikethrough",
    "fg_color",
    "bg_color",
)


class AnsiCodeTracker:
    """Track active ANSI SGR (Select Graphic Rendition) state.

    Processes CSI SGR sequences (``ESC[...m``) and maintains which attributes
    are currently active so that they can be re-applied after line breaks.
    """

    def __init__(self) -> None:
        self._active: dict[str, str] = {}

    def process(self, code: str) -> None:
        """Update tracked state from an SGR sequence like ``\\x1b[1;31m``."""
        if not code.startswith("\x1b[") or not code.endswith("m"):
            return

        params_str = code[2:-1]
        if not params_str:
            # ESC[m is equivalent to reset
            self.clear()
            return

        params = params_str.split(";")
        i = 0
        while i < len(params):
            try:
                val = int(params[i]) if params[i] else 0
            except ValueError:
                return

            if val == 0:
                self.clear()
            elif val == 22:
                self._active.pop("bold", None)
                self._active.pop("dim", None)
            elif val in _SGR_ATTRIBUTES:
                name, value = _SGR_ATTRIBUTES[val]
                if value is None:
                    self._active.pop(name, None)
                else:
                    self._active[name] = value
            elif 30 <= val <= 37 or 90 <= val <= 97:
                self._active["fg_color"] = f"\x1b[{val}m"
            elif 40 <= val <= 47 or 100 <= val <= 107:
                self._active["bg_color"] = f"\x1b[{val}m"
            elif val in (38, 48):
                # 256-color (38;5;N) or RGB (38;2;R;G;B)
                name = "fg_color" if val == 38 else "bg_color"
                mode = params[i + 1] if i + 1 < len(params) else ""
                extra = 2 if mode == "5" else 4 if mode == "2" else 0
                if extra and i + extra < len(params):
                    joined = ";".join(params[i : i + extra + 1])
                    self._active[name] = f"\x1b[{joined}m"
                    i += extra
                else:
                    i += 1
            i += 1

    def clear(self) -> None:
        """Reset all tracked attributes to off."""
        self._active.clear()

    def get_active_codes(self) -> str:
        """Return a string of ANSI codes that reactivate the current state."""
        return "".join(
            self._active[name] for name in _ATTRIBUTE_ORDER if name in self._active
        )

    def has_active_codes(self) -> bool:
        return bool(self._active)

    def get_line_end_reset(self) -> str:
        """Return a reset sequence if any attribute is active, else empty."""
        return _SGR_RESET if self._active else ""


# ---------------------------------------------------------------------------
# wrap_text
# ---------------------------------------------------------------------------


def wrap_text(text: str, max_width: int, hard: bool = True) -> list[str]:
    """Word-wrap *text* to *max_width* columns, preserving ANSI escape codes.

    Explicit newlines split the text into paragraphs first; each paragraph
    is then filled greedily word by word.  With *hard* set, a word wider
    than *max_width* is split across lines at grapheme boundaries; without
    it, the word overflows on a line of its own.

    A non-positive *max_width* disables wrapping: one line per paragraph.
    Empty paragraphs are kept, so blank lines round-trip.
    """
    if max_width <= 0:
        return text.split("\n")

    tracker = AnsiCodeTracker()
    lines: list[str] = []
    for paragraph in text.split("\n"):
        lines.extend(_wrap_paragraph(paragraph, max_width, hard, tracker))
    return lines


def _wrap_paragraph(
    paragraph: str,
    width: int,
    hard: bool,
    tracker: AnsiCodeTracker,
) -> list[str]:
    """Wrap a single paragraph (no embedded newlines) to *width* columns."""
    rows: list[str] = []
    row: list[str] = [tracker.get_active_codes()]
    row_width = 0
    fresh = True

    def flush() -> None:
        nonlocal row, row_width, fresh
        rows.append("".join(row) + tracker.get_line_end_reset())
        row = [tracker.get_active_codes()]
        row_width = 0
        fresh = True

    def take(word: str) -> None:
        for unit, is_code in _iter_units(word):
            if is_code:
                tracker.process(unit)
        row.append(word)

    for word in paragraph.split(" "):
        word_width = visible_width(word)
        gap = 0 if fresh else 1

        if row_width + gap + word_width <= width:
            if gap:
                row.append(" ")
            take(word)
            row_width += gap + word_width
            fresh = False
            continue

        if hard and word_width > width:
            # Start splitting on this row only if that does not cost a row
            remaining = width - row_width - gap
            if not fresh:
                breaks_here = 1 + (word_width - remaining - 1) // width
                breaks_next = (word_width - 1) // width
                if remaining <= 0 or breaks_next < breaks_here:
                    flush()
                else:
                    row.append(" ")
                    row_width += 1

            for unit, is_code in _iter_units(word):
                if is_code:
                    tracker.process(unit)
                    row.append(unit)
                    continue
                unit_width = visible_width(unit)
                if row_width + unit_width > width and row_width > 0:
                    flush()
                row.append(unit)
                row_width += unit_width
            fresh = False
            continue

        if not fresh:
            flush()
        take(word)
        row_width = word_width
        fresh = False

    rows.append("".join(row) + tracker.get_line_end_reset())
    return rows


# ---------------------------------------------------------------------------
# format_lines
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineStyle:
    """Decoration for one kind of line in :func:`format_lines`.

    ``sides`` stands in for whichever of ``start``/``end`` is not given.
    """

    start: str | None = None
    end: str | None = None
    sides: str | None = None
    style: Callable[[str], str] | None = None


@dataclass(frozen=True)
class _Decoration:
    start: str
    end: str
    style: Callable[[str], str]


def _resolve_style(own: LineStyle | None, default: LineStyle | None) -> _Decoration:
    def pick(key: str) -> str:
        for source in (own, default):
            if source is None:
                continue
            value = getattr(source, key)
            if value is None:
                value = source.sides
            if value is not None:
                return value
        return ""

    style = own.style if own is not None else None
    return _Decoration(pick("start"), pick("end"), style or (lambda line: line))


def _either(primary: Any, fallback: Any) -> Any:
    return primary if primary is not None else fallback


def _merge_styles(
    primary: LineStyle | None, fallback: LineStyle | None
) -> LineStyle | None:
    if primary is None or fallback is None:
        return primary or fallback
    return LineStyle(
        start=_either(primary.start, fallback.start),
        end=_either(primary.end, fallback.end),
        sides=_either(primary.sides, fallback.sides),
        style=_either(primary.style, fallback.style),
    )


def format_lines(
    text: str,
    *,
    first_line: LineStyle | None = None,
    new_line: LineStyle | None = None,
    last_line: LineStyle | None = None,
    default: LineStyle | None = None,
    max_width: int = 80,
) -> str:
    """Wrap *text* and decorate every resulting line.

    The first, middle and last lines each get their own ``start``/``end``
    markers and ``style`` function; *default* fills in markers a position
    leaves unset.  A text that fits on one line uses *first_line*, falling
    back to *last_line* for anything *first_line* does not set.

    Lines are wrapped so that the widest marker pair still fits in
    *max_width*; a non-positive *max_width* disables wrapping.
    """
    first = _resolve_style(first_line, default)
    middle = _resolve_style(new_line, default)
    last = _resolve_style(last_line, default)

    reserved = max(visible_width(d.start + d.end) for d in (first, middle, last)) + 2
    width = max(max_width - reserved, 1) if max_width > 0 else 0
    lines = wrap_text(text, width, hard=True)

    if len(lines) == 1:
        first = _resolve_style(_merge_styles(first_line, last_line), default)

    out: list[str] = []
    for i, line in enumerate(lines):
        if i == 0:
            deco = first
        elif i == len(lines) - 1:
            deco = last
        else:
            deco = middle
        row = deco.style(line)
        if deco.start:
            row = f"{deco.start} {row}"
        if deco.end:
            row = f"{row} {deco.end}"
        out.append(row)
    return "\n".join(out)


# ---------------------------------------------------------------------------
# truncate_to_width
# ---------------------------------------------------------------------------


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Cut *text* to at most *max_width* visible columns.

    When the text does not fit, it is cut at a grapheme boundary and
    *ellipsis* is appended; the ellipsis counts towards the width.  Styling
    still open at the cut is closed with a reset.
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    ellipsis_width = visible_width(ellipsis)
    if ellipsis_width >= max_width:
        return _take_columns(ellipsis, max_width)

    tracker = AnsiCodeTracker()
    prefix = _take_columns(text, max_width - ellipsis_width, tracker)
    return prefix + tracker.get_line_end_reset() + ellipsis


def _take_columns(
    text: str, max_cols: int, tracker: AnsiCodeTracker | None = None
) -> str:
    """Return the longest prefix of *text* within *max_cols* columns."""
    result: list[str] = []
    cols = 0
    for unit, is_code in _iter_units(text):
        if is_code:
            if tracker is not None:
                tracker.process(unit)
            result.append(unit)
            continue
        width = visible_width(unit)
        if cols + width > max_cols:
            break
        result.append(unit)
        cols += width
    return "".join(result)
