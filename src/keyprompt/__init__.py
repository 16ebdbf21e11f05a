"""keyprompt: interactive terminal prompts with differential rendering."""

__version__ = "0.1.0"

# Errors
from keyprompt.errors import OutputBusyError, PromptError

# Event register
from keyprompt.events import EventBus

# Terminal acquisition
from keyprompt.input import Acquisition, acquire, is_cancel_key

# Keyboard input handling
from keyprompt.keys import KeyEvent, parse_keypress

# Line editing
from keyprompt.line_buffer import LineBuffer

# Prompt session
from keyprompt.prompt import (
    CANCEL,
    PromptSession,
    PromptView,
    State,
    ValueKind,
    is_cancel,
)

# Built-in prompt kinds
from keyprompt.prompts import (
    Option,
    confirm,
    multiselect,
    password,
    path_select,
    path_text,
    select,
    select_key,
    text,
)

# Rendering
from keyprompt.renderer import Renderer, diff_lines

# Settings
from keyprompt.settings import (
    PromptSettings,
    get_settings,
    set_global_aliases,
    set_settings,
)

# Input buffering
from keyprompt.stdin_buffer import StdinBuffer

# Terminal interface and implementations
from keyprompt.terminal import KeyInput, Output, ProcessInput, ProcessOutput

# Option tree
from keyprompt.tree import DirectorySource, OptionNode, OptionSource, OptionTree

# Utilities
from keyprompt.utils import (
    LineStyle,
    format_lines,
    strip_ansi,
    truncate_to_width,
    visible_width,
    wrap_text,
)

__all__ = [
    # Errors
    "OutputBusyError",
    "PromptError",
    # Events
    "EventBus",
    # Acquisition
    "Acquisition",
    "acquire",
    "is_cancel_key",
    # Keys
    "KeyEvent",
    "parse_keypress",
    # Line editing
    "LineBuffer",
    # Prompt session
    "CANCEL",
    "PromptSession",
    "PromptView",
    "State",
    "ValueKind",
    "is_cancel",
    # Prompt kinds
    "Option",
    "confirm",
    "multiselect",
    "password",
    "path_select",
    "path_text",
    "select",
    "select_key",
    "text",
    # Rendering
    "Renderer",
    "diff_lines",
    # Settings
    "PromptSettings",
    "get_settings",
    "set_global_aliases",
    "set_settings",
    # Stdin buffer
    "StdinBuffer",
    # Terminal
    "KeyInput",
    "Output",
    "ProcessInput",
    "ProcessOutput",
    # Option tree
    "DirectorySource",
    "OptionNode",
    "OptionSource",
    "OptionTree",
    # Utilities
    "LineStyle",
    "format_lines",
    "strip_ansi",
    "truncate_to_width",
    "visible_width",
    "wrap_text",
]
