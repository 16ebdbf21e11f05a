"""Prompt session: the state machine every prompt kind runs on.

A :class:`PromptSession` owns one interactive question.  It acquires the
terminal, turns each :class:`~keyprompt.keys.KeyEvent` into events on its
:class:`~keyprompt.events.EventBus`, re-renders through a
:class:`~keyprompt.renderer.Renderer` after every key and resolves a future
with the final value once the user submits or cancels.

Prompt kinds are built as data on top of a session: a render function plus
event subscriptions (see :mod:`keyprompt.prompts`).

Events emitted by a session:

``cursor`` (action)
    a navigation key: ``up``, ``down``, ``left``, ``right``, ``space`` or
    ``enter``, either pressed directly or reached through a key alias.
``key`` (char)
    any character-producing key, lowercased.  A ``tab`` that fills an empty
    tracked line with the placeholder is consumed and emits nothing.
``confirm`` (bool)
    ``y`` or ``n`` was pressed.
``value`` (value)
    the tracked line changed.
``finalize``
    the session is about to paint its final frame.
``submit`` / ``cancel`` (value)
    the session ended.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal

from keyprompt.errors import OutputBusyError, PromptError
from keyprompt.events import EventBus, Listener
from keyprompt.input import Acquisition, acquire
from keyprompt.keys import CURSOR_KEYS, KeyEvent
from keyprompt.line_buffer import LineBuffer
from keyprompt.renderer import Renderer
from keyprompt.settings import get_settings
from keyprompt.terminal import KeyInput, Output, ProcessInput, ProcessOutput

logger = logging.getLogger(__name__)

State = Literal["initial", "active", "error", "submit", "cancel"]

_ENDED: tuple[str, ...] = ("submit", "cancel")


class ValueKind(enum.Enum):
    """What a session's value is and whether it follows a line buffer."""

    TEXT = "text"
    BOOLEAN = "boolean"
    SELECT = "select"
    MULTISELECT = "multiselect"
    TREE = "tree"

    @property
    def tracked(self) -> bool:
        return self is ValueKind.TEXT


@dataclass(frozen=True)
class PromptView:
    """Immutable snapshot of a session handed to render functions."""

    state: State
    value: Any
    cursor: int
    error: str


class _Cancel:
    __slots__ = ()

    def __repr__(self) -> str:
        return "CANCEL"

    def __bool__(self) -> bool:
        return False


CANCEL: Any = _Cancel()
"""Resolution value of a cancelled session."""


def is_cancel(value: Any) -> bool:
    return value is CANCEL


_UNSET: Any = object()

RenderFn = Callable[[PromptView], "str | None"]
Validator = Callable[[Any], "str | None"]

# Outputs currently painted by an active session, keyed by identity
_active_outputs: dict[int, PromptSession] = {}


class PromptSession:
    """One interactive prompt bound to an input and an output stream."""

    def __init__(
        self,
        render: RenderFn,
        *,
        kind: ValueKind = ValueKind.TEXT,
        validate: Validator | None = None,
        initial_value: Any = None,
        placeholder: str = "",
        input: KeyInput | None = None,
        output: Output | None = None,
    ) -> None:
        self.kind = kind
        self.placeholder = placeholder
        self.input: KeyInput = input if input is not None else ProcessInput()
        self.output: Output = output if output is not None else ProcessOutput()

        self._render_fn = render
        self._validate = validate
        self._events = EventBus()
        self._renderer = Renderer(self.output)
        self._acquisition: Acquisition | None = None
        self._future: asyncio.Future[Any] | None = None

        self._state: State = "initial"
        self.value: Any = initial_value
        self.cursor: int = 0
        self.error: str = ""

        self._line: LineBuffer | None = None
        if kind.tracked:
            self._line = LineBuffer()
            if initial_value is not None:
                self._line.write(str(initial_value))
            self.value = self._line.value
            self.cursor = self._line.cursor

        self._started = False
        self._dispatching = False
        self._finishing = False
        self._closed = False
        self._detached = False

    # -- state ------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @state.setter
    def state(self, value: State) -> None:
        if value != self._state:
            logger.debug("state %s -> %s", self._state, value)
        self._state = value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def frame(self) -> str:
        """The last frame painted on the output."""
        return self._renderer.previous_frame

    def snapshot(self) -> PromptView:
        return PromptView(
            state=self._state, value=self.value, cursor=self.cursor, error=self.error
        )

    def set_value(self, value: Any) -> None:
        """Replace the value; a tracked line is rewritten to match."""
        self.value = value
        if self._line is not None:
            self._line.write("" if value is None else str(value))
            self.cursor = self._line.cursor

    # -- events -----------------------------------------------------------

    def on(self, event: str, callback: Listener) -> None:
        self._events.on(event, callback)

    def once(self, event: str, callback: Listener) -> None:
        self._events.once(event, callback)

    def off(self, event: str, callback: Listener) -> None:
        self._events.off(event, callback)

    def emit(self, event: str, *args: Any) -> None:
        self._events.emit(event, *args)

    # -- lifecycle --------------------------------------------------------

    def start(self) -> asyncio.Future[Any]:
        """Take over the terminal, paint the first frame and return a future.

        The future resolves with the submitted value, or with :data:`CANCEL`.
        Must be called from a running event loop.
        """
        if self._started:
            raise PromptError("prompt session already started")

        owner = _active_outputs.get(id(self.output))
        if owner is not None and not owner.closed:
            raise OutputBusyError("another prompt is active on this output")

        self._future = asyncio.get_running_loop().create_future()
        self._started = True
        _active_outputs[id(self.output)] = self

        try:
            self._acquisition = acquire(
                self.input, self.output, overwrite=False, exit_on_interrupt=False
            )
            self.input.on_key(self.handle_key)
            self.input.on_end(self._on_input_end)
            self.output.on_resize(self._on_resize)
            logger.debug("prompt started (kind=%s)", self.kind.value)
            self.render()
        except Exception:
            self._closed = True
            self._detach()
            raise
        return self._future

    async def prompt(self) -> Any:
        """Run the session to completion and return its value or CANCEL."""
        return await self.start()

    def render(self) -> None:
        self._renderer.render_once(self._render_fn, self)

    def handle_key(self, event: KeyEvent) -> None:
        """Process one keypress."""
        if self._closed:
            return
        self._dispatching = True
        try:
            self._process_key(event)
        except Exception as exc:
            self._abort(exc)
        finally:
            self._dispatching = False

    def submit(self, value: Any = _UNSET) -> None:
        """End the session as submitted, optionally with a new *value*.

        Inside an event handler this only marks the session; the key being
        processed finishes it.
        """
        if self._closed:
            return
        if value is not _UNSET:
            self.value = value
        self._end("submit")

    def cancel(self) -> None:
        """End the session as cancelled."""
        if self._closed:
            return
        self._end("cancel")

    def close(self) -> None:
        """End the session and release the terminal.

        Runs once; later calls are no-ops.  Closing a session that has not
        reached ``submit`` cancels it, with the usual ``finalize`` and final
        frame.  Inside an event handler the key being processed finishes it.
        """
        if self._closed:
            return
        if not self._started:
            self._close()
            return
        self._end(self._state if self._state in _ENDED else "cancel")

    # -- private ----------------------------------------------------------

    def _process_key(self, event: KeyEvent) -> None:
        if self._state == "error":
            self.state = "active"

        plain = not event.ctrl and not event.meta
        tracked = self._line is not None
        alias = get_settings().alias_for(event.char, event.name) if plain else None
        cancelled = event.is_interrupt or (not tracked and alias == "cancel")

        if self._line is not None and not event.is_interrupt:
            if self._line.handle_key(event) and event.name != "return":
                self.value = self._line.value
                self.cursor = self._line.cursor
                self._events.emit("value", self.value)

        # Tab on an empty line takes the placeholder as the answer
        filled = (
            self._line is not None
            and event.name == "tab"
            and not self.value
            and bool(self.placeholder)
        )
        if filled:
            self.set_value(self.placeholder)
            self._events.emit("value", self.value)

        if not tracked and alias is not None and alias != "cancel":
            self._events.emit("cursor", alias)
        if event.name in CURSOR_KEYS:
            self._events.emit("cursor", event.name)

        char = event.char
        if char and not event.is_interrupt and not filled:
            if plain and char.lower() in ("y", "n"):
                self._events.emit("confirm", char.lower() == "y")
            self._events.emit("key", char.lower())

        if event.name == "return" and self._state not in _ENDED:
            problem = self._validate(self.value) if self._validate else None
            if problem:
                self.error = problem
                self.state = "error"
                if self._line is not None:
                    self._line.write("" if self.value is None else str(self.value))
                    self.cursor = self._line.cursor
            else:
                self.state = "submit"

        if cancelled and self._state not in _ENDED:
            self.state = "cancel"

        if self._closed:
            return
        if self._state in _ENDED:
            self._finish()
        else:
            self.render()

    def _end(self, state: State) -> None:
        self.state = state
        if self._dispatching or self._finishing:
            return
        try:
            self._finish()
        except Exception as exc:
            self._abort(exc)

    def _finish(self) -> None:
        self._finishing = True
        self._events.emit("finalize")
        self.render()
        self._close()

    def _close(self) -> None:
        self._closed = True
        if self._state not in _ENDED:
            self.state = "cancel"

        if self._started:
            self.output.write("\n")
        self._detach()
        logger.debug("prompt closed (%s)", self._state)

        try:
            self._events.emit(self._state, self.value)
        finally:
            self._events.unsubscribe_all()

        if self._future is not None and not self._future.done():
            self._future.set_result(
                CANCEL if self._state == "cancel" else self.value
            )

    def _on_input_end(self) -> None:
        # Input closed under us: nothing more can be typed
        if self._closed:
            return
        logger.debug("input ended, cancelling prompt")
        self._end("cancel")

    def _on_resize(self) -> None:
        if self._closed:
            return
        try:
            self.render()
        except Exception as exc:
            self._abort(exc)

    def _detach(self) -> None:
        if self._detached:
            return
        self._detached = True
        if not self._started:
            return
        self.input.off_key(self.handle_key)
        self.input.off_end(self._on_input_end)
        self.output.off_resize(self._on_resize)
        if self._acquisition is not None:
            self._acquisition.release()
        if _active_outputs.get(id(self.output)) is self:
            del _active_outputs[id(self.output)]

    def _abort(self, exc: Exception) -> None:
        logger.debug("prompt failed: %r", exc)
        self._closed = True
        self._detach()
        self._events.unsubscribe_all()
        if self._future is None:
            raise exc
        if not self._future.done():
            self._future.set_exception(exc)
