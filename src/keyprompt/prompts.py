"""Built-in prompt kinds.

Each builder returns a ready :class:`~keyprompt.prompt.PromptSession` whose
behavior is expressed as a render function plus event subscriptions; none
of them subclass the session.  Run one with ``await session.prompt()``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Sequence

from keyprompt import theme
from keyprompt.prompt import PromptSession, PromptView, Validator, ValueKind
from keyprompt.terminal import KeyInput, Output
from keyprompt.tree import DirectorySource, OptionTree
from keyprompt.utils import truncate_to_width

logger = logging.getLogger(__name__)

DEFAULT_LABEL_WIDTH = 72


@dataclass(frozen=True)
class Option:
    """One choice of a select or multiselect prompt."""

    value: Any
    label: str | None = None
    hint: str | None = None

    @property
    def display(self) -> str:
        return self.label if self.label is not None else str(self.value)


def _label(option: Option, width: int) -> str:
    return truncate_to_width(option.display, width, "…")


def _hint(option: Option) -> str:
    return f" {theme.dim(f'({option.hint})')}" if option.hint else ""


# ---------------------------------------------------------------------------
# Text input
# ---------------------------------------------------------------------------


def text(
    message: str,
    *,
    placeholder: str = "",
    default_value: str | None = None,
    initial_value: str | None = None,
    validate: Validator | None = None,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Free text.  An empty answer falls back to *default_value*."""

    def render(view: PromptView) -> str:
        value = view.value or ""
        if placeholder and not value:
            active = theme.placeholder_text(placeholder)
        else:
            active = theme.value_with_cursor(value, view.cursor)
        return theme.frame(view, message, value, active_value=active)

    session = PromptSession(
        render,
        kind=ValueKind.TEXT,
        validate=validate,
        initial_value=initial_value,
        placeholder=placeholder,
        input=input,
        output=output,
    )

    def on_finalize() -> None:
        if not session.value and default_value is not None:
            session.value = default_value

    session.on("finalize", on_finalize)
    return session


def password(
    message: str,
    *,
    mask: str = theme.PASSWORD_MASK,
    validate: Validator | None = None,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Hidden text: every character is shown as *mask*."""

    def render(view: PromptView) -> str:
        masked = mask * len(view.value or "")
        return theme.frame(
            view, message, masked,
            active_value=theme.value_with_cursor(masked, view.cursor),
        )

    return PromptSession(
        render,
        kind=ValueKind.TEXT,
        validate=validate,
        input=input,
        output=output,
    )


# ---------------------------------------------------------------------------
# Confirm
# ---------------------------------------------------------------------------


def confirm(
    message: str,
    *,
    active: str = "Yes",
    inactive: str = "No",
    initial_value: bool = True,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Yes/no question.  ``y`` and ``n`` answer immediately."""

    def option(selected: bool, label: str) -> str:
        if selected:
            return f"{theme.green(theme.RADIO_ACTIVE)} {label}"
        return f"{theme.dim(theme.RADIO_INACTIVE)} {theme.dim(label)}"

    def render(view: PromptView) -> str:
        if view.state in ("submit", "cancel"):
            return theme.frame(view, message, active if view.value else inactive)
        choices = (
            f"{option(bool(view.value), active)} {theme.dim('/')} "
            f"{option(not view.value, inactive)}"
        )
        return theme.frame(view, message, choices)

    session = PromptSession(
        render,
        kind=ValueKind.BOOLEAN,
        initial_value=bool(initial_value),
        input=input,
        output=output,
    )
    session.cursor = 0 if session.value else 1

    def on_confirm(answer: bool) -> None:
        session.value = answer
        session.cursor = 0 if answer else 1
        session.submit()

    def on_cursor(_action: str) -> None:
        session.value = not session.value
        session.cursor = 0 if session.value else 1

    session.on("confirm", on_confirm)
    session.on("cursor", on_cursor)
    return session


# ---------------------------------------------------------------------------
# Select / multiselect
# ---------------------------------------------------------------------------


class _Window:
    """Sliding window over a long option list, kept around the cursor."""

    def __init__(self, size: int | None, total: int) -> None:
        self.size = total if size is None else max(size, 5)
        self.total = total
        self.start = 0

    def follow(self, cursor: int) -> None:
        if cursor >= self.start + self.size - 3:
            self.start = max(min(cursor - self.size + 3, self.total - self.size), 0)
        elif cursor < self.start + 2:
            self.start = max(cursor - 2, 0)

    @property
    def top_ellipsis(self) -> bool:
        return self.size < self.total and self.start > 0

    @property
    def bottom_ellipsis(self) -> bool:
        return self.size < self.total and self.start + self.size < self.total


def _step(cursor: int, action: str, count: int) -> int:
    if action in ("up", "left"):
        return count - 1 if cursor == 0 else cursor - 1
    if action in ("down", "right"):
        return 0 if cursor == count - 1 else cursor + 1
    return cursor


def select(
    message: str,
    options: Sequence[Option],
    *,
    initial_value: Any = None,
    max_items: int | None = None,
    label_width: int = DEFAULT_LABEL_WIDTH,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Pick exactly one of *options*."""
    if not options:
        raise ValueError("select() needs at least one option")
    options = list(options)
    window = _Window(max_items, len(options))

    def row(option: Option, state: str) -> str:
        label = _label(option, label_width)
        if state == "active":
            return f"{theme.green(theme.RADIO_ACTIVE)} {label}{_hint(option)}"
        if state == "selected":
            return theme.dim(label)
        if state == "cancelled":
            return theme.strikethrough(theme.dim(label))
        return f"{theme.dim(theme.RADIO_INACTIVE)} {theme.dim(label)}"

    def render(view: PromptView) -> str:
        if view.state == "submit":
            return theme.frame(view, message, row(options[view.cursor], "selected"))
        if view.state == "cancel":
            return theme.frame(view, message, row(options[view.cursor], "cancelled"))

        visible = options[window.start : window.start + window.size]
        lines: list[str] = []
        for i, option in enumerate(visible):
            if (i == 0 and window.top_ellipsis) or (
                i == len(visible) - 1 and window.bottom_ellipsis
            ):
                lines.append(theme.dim("..."))
            else:
                index = i + window.start
                lines.append(row(option, "active" if index == view.cursor else "inactive"))
        return theme.frame(view, message, "\n".join(lines))

    cursor = next(
        (i for i, o in enumerate(options) if o.value == initial_value), 0
    )
    session = PromptSession(
        render,
        kind=ValueKind.SELECT,
        initial_value=options[cursor].value,
        input=input,
        output=output,
    )
    session.cursor = cursor
    window.follow(cursor)

    def on_cursor(action: str) -> None:
        session.cursor = _step(session.cursor, action, len(options))
        session.value = options[session.cursor].value
        window.follow(session.cursor)

    session.on("cursor", on_cursor)
    return session


def select_key(
    message: str,
    options: Sequence[Option],
    *,
    initial_value: Any = None,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Pick one of *options* by pressing its key.

    Each option answers to the first character of its value, compared
    case-insensitively; pressing it submits at once.  Arrow keys and
    ``return`` work as in :func:`select`.
    """
    if not options:
        raise ValueError("select_key() needs at least one option")
    options = list(options)
    keys = {str(o.value)[:1].lower(): o for o in reversed(options) if str(o.value)}

    def row(option: Option, state: str) -> str:
        label = option.display
        if state == "selected":
            return theme.dim(label)
        if state == "cancelled":
            return theme.strikethrough(theme.dim(label))
        badge = f" {option.value} "
        if state == "active":
            return f"{theme.cyan(theme.inverse(badge))} {label}{_hint(option)}"
        return f"{theme.dim(theme.inverse(badge))} {theme.dim(label)}{_hint(option)}"

    def render(view: PromptView) -> str:
        if view.state == "submit":
            return theme.frame(view, message, row(options[view.cursor], "selected"))
        if view.state == "cancel":
            return theme.frame(view, message, row(options[view.cursor], "cancelled"))
        lines = [
            row(option, "active" if i == view.cursor else "inactive")
            for i, option in enumerate(options)
        ]
        return theme.frame(view, message, "\n".join(lines))

    cursor = next(
        (i for i, o in enumerate(options) if o.value == initial_value), 0
    )
    session = PromptSession(
        render,
        kind=ValueKind.SELECT,
        initial_value=options[cursor].value,
        input=input,
        output=output,
    )
    session.cursor = cursor

    def on_cursor(action: str) -> None:
        session.cursor = _step(session.cursor, action, len(options))
        session.value = options[session.cursor].value

    def on_key(char: str) -> None:
        option = keys.get(char)
        if option is None:
            return
        session.cursor = options.index(option)
        session.submit(option.value)

    session.on("cursor", on_cursor)
    session.on("key", on_key)
    return session


def multiselect(
    message: str,
    options: Sequence[Option],
    *,
    initial_values: Sequence[Any] = (),
    required: bool = True,
    cursor_at: Any = None,
    label_width: int = DEFAULT_LABEL_WIDTH,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Pick any number of *options*.  ``space`` toggles, ``a`` toggles all."""
    if not options:
        raise ValueError("multiselect() needs at least one option")
    options = list(options)

    def validate(selected: list[Any]) -> str | None:
        if required and not selected:
            return (
                "Please select at least one option.\n"
                f"Press {theme.inverse(' space ')} to select, "
                f"{theme.inverse(' enter ')} to submit"
            )
        return None

    def row(option: Option, state: str) -> str:
        label = _label(option, label_width)
        if state == "active":
            return f"{theme.cyan(theme.CHECKBOX_ACTIVE)} {label}{_hint(option)}"
        if state == "selected":
            return f"{theme.green(theme.CHECKBOX_SELECTED)} {theme.dim(label)}"
        if state == "active-selected":
            return f"{theme.green(theme.CHECKBOX_SELECTED)} {label}{_hint(option)}"
        if state == "submitted":
            return theme.dim(label)
        if state == "cancelled":
            return theme.strikethrough(theme.dim(label))
        return f"{theme.dim(theme.CHECKBOX_INACTIVE)} {theme.dim(label)}"

    def render(view: PromptView) -> str:
        chosen = [o for o in options if o.value in view.value]
        if view.state == "submit":
            return theme.frame(
                view, message,
                theme.dim(", ").join(row(o, "submitted") for o in chosen),
            )
        if view.state == "cancel":
            return theme.frame(
                view, message,
                theme.dim(", ").join(row(o, "cancelled") for o in chosen),
            )

        lines = []
        for i, option in enumerate(options):
            selected = option.value in view.value
            active = i == view.cursor
            if active and selected:
                lines.append(row(option, "active-selected"))
            elif selected:
                lines.append(row(option, "selected"))
            else:
                lines.append(row(option, "active" if active else "inactive"))
        return theme.frame(view, message, "\n".join(lines))

    session = PromptSession(
        render,
        kind=ValueKind.MULTISELECT,
        validate=validate,
        initial_value=list(initial_values),
        input=input,
        output=output,
    )
    session.cursor = next(
        (i for i, o in enumerate(options) if o.value == cursor_at), 0
    )

    def toggle_all() -> None:
        if all(o.value in session.value for o in options):
            session.value = []
        else:
            session.value = [o.value for o in options]

    def toggle(value: Any) -> None:
        if value in session.value:
            session.value = [v for v in session.value if v != value]
        else:
            session.value = [*session.value, value]

    def on_cursor(action: str) -> None:
        if action == "space":
            toggle(options[session.cursor].value)
        else:
            session.cursor = _step(session.cursor, action, len(options))

    def on_key(char: str) -> None:
        if char == "a":
            toggle_all()

    session.on("cursor", on_cursor)
    session.on("key", on_key)
    return session


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------


def path_select(
    message: str,
    *,
    root: str | None = None,
    only_dirs: bool = False,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Browse the filesystem as a tree.

    ``right`` opens a directory, ``left`` closes it (or, at the top, moves
    the tree one directory up).
    """
    tree = OptionTree(DirectorySource(only_dirs), root or os.getcwd())

    def render(view: PromptView) -> str:
        if view.state in ("submit", "cancel"):
            return theme.frame(view, message, view.value)

        lines = []
        for node, depth, selected in tree.rows():
            if node.children:
                marker = theme.FOLDER_OPEN
            elif node.expandable:
                marker = theme.FOLDER
            else:
                marker = " "
            line = f"{'  ' * depth}{marker} {node.name}"
            lines.append(theme.cyan(line) if selected else theme.dim(line))
        return theme.frame(view, message, "\n".join(lines))

    session = PromptSession(
        render,
        kind=ValueKind.TREE,
        initial_value=tree.value,
        input=input,
        output=output,
    )
    session.cursor = tree.cursor

    def on_cursor(action: str) -> None:
        if action not in ("up", "down", "left", "right"):
            return
        tree.navigate(action)  # type: ignore[arg-type]
        session.value = tree.value
        session.cursor = tree.cursor

    session.on("cursor", on_cursor)
    return session


def _completion_hint(value: str, only_dirs: bool) -> str:
    """Return what completes *value* to the first matching directory entry."""
    directory, _, partial = value.rpartition("/")
    directory = os.path.abspath(directory + "/" if "/" in value else ".")
    if not os.path.isdir(directory):
        return ""
    for node in DirectorySource(only_dirs).children([directory]):
        if node.name.startswith(partial):
            return node.name[len(partial) :]
    return ""


def path_text(
    message: str,
    *,
    initial_value: str = "",
    placeholder: str = "",
    only_dirs: bool = False,
    validate: Validator | None = None,
    input: KeyInput | None = None,
    output: Output | None = None,
) -> PromptSession:
    """Type a path with completion.

    The completion hint is shown dimmed after the cursor; ``tab`` (or
    ``right`` at the end of the line) accepts it.  The answer is made
    absolute.
    """
    hint = ""

    def render(view: PromptView) -> str:
        value = view.value or ""
        if placeholder and not value:
            active = theme.placeholder_text(placeholder)
        elif view.cursor >= len(value) and hint:
            active = value + theme.inverse(hint[0]) + theme.dim(hint[1:])
        else:
            active = theme.value_with_cursor(value, view.cursor) + theme.dim(hint)
        return theme.frame(view, message, value, active_value=active)

    session = PromptSession(
        render,
        kind=ValueKind.TEXT,
        validate=validate,
        initial_value=initial_value,
        placeholder=placeholder,
        input=input,
        output=output,
    )

    def refresh_hint() -> None:
        nonlocal hint
        hint = _completion_hint(session.value or "", only_dirs)

    def autocomplete() -> None:
        if not session.value or not hint:
            return
        session.set_value(session.value + hint)
        refresh_hint()

    def on_cursor(action: str) -> None:
        if action == "right" and session.cursor >= len(session.value or ""):
            autocomplete()

    def on_key(char: str) -> None:
        if char == "\t":
            autocomplete()

    def on_finalize() -> None:
        session.value = os.path.abspath(session.value) if session.value else ""

    refresh_hint()
    session.on("value", lambda _value: refresh_hint())
    session.on("cursor", on_cursor)
    session.on("key", on_key)
    session.on("finalize", on_finalize)
    return session
