"""Session layer tracking which open documents are Unicode CSV files."""

from .tracker import (
    SessionState,
    SessionTracker,
    on_before_save,
    on_closed,
    on_opened,
    on_saved_as_unicode,
    suppress_next_save,
)

__all__ = [
    "SessionState",
    "SessionTracker",
    "on_before_save",
    "on_closed",
    "on_opened",
    "on_saved_as_unicode",
    "suppress_next_save",
]
