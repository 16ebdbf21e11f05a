"""Shared fixtures for keyprompt tests."""

from __future__ import annotations

from typing import Iterator

import pytest

from keyprompt import prompt
from keyprompt.settings import PromptSettings, set_settings


@pytest.fixture(autouse=True)
def default_settings() -> Iterator[PromptSettings]:
    """Run every test with default settings, whatever the environment says."""
    settings = PromptSettings()
    set_settings(settings)
    yield settings
    set_settings(None)
    prompt._active_outputs.clear()
