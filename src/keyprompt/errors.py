"""Exceptions raised by prompt sessions."""

from __future__ import annotations


class PromptError(Exception):
    """Base class for prompt engine errors."""


class OutputBusyError(PromptError):
    """Raised when a second session tries to start on an output stream that
    another active session already owns."""
