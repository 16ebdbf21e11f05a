"""Process-wide prompt settings: key aliases and terminal options.

Defaults can be extended from the environment:

* ``KEYPROMPT_ALIASES`` -- extra aliases, e.g. ``"w=up,s=down,q=cancel"``
* ``KEYPROMPT_ESCAPE_TIMEOUT_MS`` -- how long to wait for the rest of an
  escape sequence before flushing it as a plain keypress
* ``KEYPROMPT_WRITE_LOG`` -- append every terminal write to this file
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Literal

logger = logging.getLogger(__name__)

Action = Literal["up", "down", "left", "right", "space", "enter", "cancel"]

ACTIONS: frozenset[str] = frozenset(
    {"up", "down", "left", "right", "space", "enter", "cancel"}
)

DEFAULT_ALIASES: dict[str, Action] = {
    "k": "up",
    "j": "down",
    "h": "left",
    "l": "right",
}

DEFAULT_ESCAPE_TIMEOUT_MS = 50


@dataclass
class PromptSettings:
    """Settings shared by every prompt session in the process."""

    aliases: dict[str, Action] = field(
        default_factory=lambda: dict(DEFAULT_ALIASES)
    )
    escape_timeout_ms: int = DEFAULT_ESCAPE_TIMEOUT_MS
    write_log_path: str = ""

    def alias_for(self, *candidates: str | None) -> Action | None:
        """Return the action aliased to the first matching candidate."""
        for candidate in candidates:
            if candidate and candidate in self.aliases:
                return self.aliases[candidate]
        return None

    @classmethod
    def from_env(cls) -> PromptSettings:
        settings = cls()
        raw_aliases = os.environ.get("KEYPROMPT_ALIASES", "")
        if raw_aliases:
            settings.aliases.update(_parse_aliases(raw_aliases))

        raw_timeout = os.environ.get("KEYPROMPT_ESCAPE_TIMEOUT_MS", "")
        if raw_timeout:
            try:
                settings.escape_timeout_ms = max(0, int(raw_timeout))
            except ValueError:
                logger.warning(
                    "Ignoring invalid KEYPROMPT_ESCAPE_TIMEOUT_MS=%r", raw_timeout
                )

        settings.write_log_path = os.environ.get("KEYPROMPT_WRITE_LOG", "")
        return settings


def _parse_aliases(raw: str) -> dict[str, Action]:
    aliases: dict[str, Action] = {}
    for entry in raw.split(","):
        key, sep, action = entry.strip().partition("=")
        if not sep or not key or action not in ACTIONS:
            logger.warning("Ignoring invalid key alias %r", entry)
            continue
        aliases[key] = action  # type: ignore[assignment]
    return aliases


_global_settings: PromptSettings | None = None


def get_settings() -> PromptSettings:
    global _global_settings
    if _global_settings is None:
        _global_settings = PromptSettings.from_env()
    return _global_settings


def set_settings(settings: PromptSettings | None) -> None:
    """Replace the global settings; ``None`` re-reads the environment lazily."""
    global _global_settings
    _global_settings = settings


def set_global_aliases(pairs: Iterable[tuple[str, Action]]) -> None:
    """Add or override key aliases for every session in the process.

    Raises ``ValueError`` for an action outside :data:`ACTIONS`.
    """
    settings = get_settings()
    for key, action in pairs:
        if action not in ACTIONS:
            raise ValueError(f"Unknown key action: {action!r}")
        settings.aliases[key] = action
