"""Default look of the built-in prompts: colors, symbols and frame layout."""

from __future__ import annotations

import os
import sys

from keyprompt.prompt import PromptView, State
from keyprompt.utils import LineStyle, format_lines

# ── ANSI helpers ─────────────────────────────────────────────────────

_RED = "\033[31m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"
_GRAY = "\033[90m"
_DIM = "\033[2m"
_INVERSE = "\033[7m"
_HIDDEN = "\033[8m"
_STRIKETHROUGH = "\033[9m"
_RESET = "\033[0m"


def _paint(code: str, text: str) -> str:
    return f"{code}{text}{_RESET}" if text else text


def red(text: str) -> str:
    return _paint(_RED, text)


def green(text: str) -> str:
    return _paint(_GREEN, text)


def yellow(text: str) -> str:
    return _paint(_YELLOW, text)


def cyan(text: str) -> str:
    return _paint(_CYAN, text)


def gray(text: str) -> str:
    return _paint(_GRAY, text)


def dim(text: str) -> str:
    return _paint(_DIM, text)


def inverse(text: str) -> str:
    return _paint(_INVERSE, text)


def hidden(text: str) -> str:
    return _paint(_HIDDEN, text)


def strikethrough(text: str) -> str:
    return _paint(_STRIKETHROUGH, text)


# ── Symbols ──────────────────────────────────────────────────────────


def _unicode_supported() -> bool:
    if sys.platform != "win32":
        return os.environ.get("TERM") != "linux"
    return bool(os.environ.get("WT_SESSION") or os.environ.get("TERM_PROGRAM"))


_UNICODE = _unicode_supported()


def _s(char: str, fallback: str) -> str:
    return char if _UNICODE else fallback


STEP_ACTIVE = _s("◆", "*")
STEP_CANCEL = _s("■", "x")
STEP_ERROR = _s("▲", "x")
STEP_SUBMIT = _s("◇", "o")

BAR = _s("│", "|")
BAR_END = _s("└", "-")

RADIO_ACTIVE = _s("●", ">")
RADIO_INACTIVE = _s("○", " ")
CHECKBOX_ACTIVE = _s("◻", "[•]")
CHECKBOX_SELECTED = _s("◼", "[+]")
CHECKBOX_INACTIVE = _s("◻", "[ ]")
PASSWORD_MASK = _s("▪", "•")
FOLDER = _s("▸", "+")
FOLDER_OPEN = _s("▾", "-")


def state_symbol(state: State) -> str:
    if state == "cancel":
        return red(STEP_CANCEL)
    if state == "error":
        return yellow(STEP_ERROR)
    if state == "submit":
        return green(STEP_SUBMIT)
    return cyan(STEP_ACTIVE)


# ── Layout ───────────────────────────────────────────────────────────


def _prefix(text: str, start: str) -> str:
    return format_lines(text, default=LineStyle(start=f"{start} "), max_width=0)


def value_with_cursor(value: str, cursor: int) -> str:
    """Show *value* with the character under *cursor* in inverse video."""
    if cursor >= len(value):
        return value + inverse(hidden("_"))
    return value[:cursor] + inverse(value[cursor]) + value[cursor + 1 :]


def placeholder_text(placeholder: str) -> str:
    if not placeholder:
        return inverse(hidden("_"))
    return inverse(placeholder[0]) + dim(placeholder[1:])


def frame(
    view: PromptView,
    message: str,
    value: str,
    *,
    active_value: str | None = None,
    error: str | None = None,
) -> str:
    """Lay out a prompt: a title line with the state symbol, then the value.

    *active_value* replaces *value* while the prompt is being answered (for
    example to show a cursor); *error* replaces the default error footer.
    """
    first, _, rest = message.partition("\n")
    title_lines = [f"{state_symbol(view.state)}  {first}"]
    if rest:
        title_lines.append(_prefix(rest, gray(BAR)))
    title = "\n".join([gray(BAR), *title_lines])

    if view.state == "cancel":
        body = "\n".join(
            f"{gray(BAR)}  {strikethrough(dim(line))}" for line in value.split("\n")
        )
        return f"{title}\n{body}"

    if view.state == "submit":
        body = "\n".join(f"{gray(BAR)}  {dim(line)}" for line in value.split("\n"))
        return f"{title}\n{body}"

    if view.state == "error":
        shown = active_value if active_value is not None else value
        footer = error
        if footer is None:
            lines = view.error.split("\n")
            footer = "\n".join(
                f"{yellow(BAR_END if i == len(lines) - 1 else BAR)}  {yellow(line)}"
                for i, line in enumerate(lines)
            )
        return f"{title}\n{_prefix(shown, yellow(BAR))}\n{footer}"

    shown = active_value if active_value is not None else value
    return f"{title}\n{_prefix(shown, cyan(BAR))}\n{cyan(BAR_END)}"
