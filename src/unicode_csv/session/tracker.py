"""Host session state for Unicode CSV documents.

A spreadsheet host opens, saves and closes documents; the ones that were
opened from Unicode CSV files have to be written back through
``save_as_unicode_csv`` instead of the host's own save. This module keeps that
bookkeeping as an immutable ``SessionState`` and a set of pure transition
functions, plus a small ``SessionTracker`` wrapper for hosts that prefer an
object holding the current state.

A host save issued by the Unicode save itself must not be intercepted again;
``suppress_next_save`` places a one-shot token that the next
``on_before_save`` for that path consumes.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Callable, FrozenSet, Optional, Tuple

from ..api.saver import is_csv_path, save_as_unicode_csv
from ..character.encoding import Encoding, EncodingDetector, PathType
from ..character.stream import ConversionResult
from ..shared.config import ConverterConfig
from ..shared.logging import get_logger
from ..shared.result import HostBusyError, NotACsvPathError

BusyPredicate = Callable[[], bool]

logger = get_logger(__name__, None, "session")


def _key(path: PathType) -> str:
    return os.fspath(path)


@dataclass(frozen=True)
class SessionState:
    """Paths opened as Unicode CSV and pending save suppressions."""

    tracked: FrozenSet[str] = field(default_factory=frozenset)
    suppressed: FrozenSet[str] = field(default_factory=frozenset)

    def is_tracked(self, path: PathType) -> bool:
        return _key(path) in self.tracked


def on_opened(state: SessionState, path: PathType, encoding: Encoding) -> SessionState:
    """Track ``path`` if it is a .csv file with a unicode byte order mark."""
    if is_csv_path(path) and encoding.is_unicode:
        return replace(state, tracked=state.tracked | {_key(path)})
    return state


def on_closed(state: SessionState, path: PathType) -> SessionState:
    """Forget ``path`` and any suppression pending for it."""
    key = _key(path)
    return SessionState(
        tracked=state.tracked - {key},
        suppressed=state.suppressed - {key},
    )


def suppress_next_save(state: SessionState, path: PathType) -> SessionState:
    """Let the next host save of ``path`` through without interception."""
    return replace(state, suppressed=state.suppressed | {_key(path)})


def on_before_save(
    state: SessionState, path: PathType, save_as_ui: bool
) -> Tuple[SessionState, bool]:
    """Decide whether a host save of ``path`` must be replaced.

    Args:
        state: Current session state
        path: Document being saved
        save_as_ui: Whether the host is showing its own Save As dialog

    Returns:
        Tuple of (new state, intercept). A pending suppression for ``path`` is
        consumed whatever the outcome.
    """
    key = _key(path)
    if key in state.suppressed:
        return replace(state, suppressed=state.suppressed - {key}), False
    intercept = not save_as_ui and key in state.tracked
    return state, intercept


def on_saved_as_unicode(state: SessionState, path: PathType) -> SessionState:
    """Track a document that was just written as a Unicode CSV."""
    return replace(state, tracked=state.tracked | {_key(path)})


class SessionTracker:
    """Mutable holder of a SessionState for one host session.

    Not thread-safe; a host drives it from its UI thread.
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        busy: Optional[BusyPredicate] = None,
    ) -> None:
        """Initialize the tracker.

        Args:
            config: Configuration used for detection and saving
            busy: Host predicate, True while the document cannot be saved
                (for example while a cell is being edited)
        """
        self.config = config or ConverterConfig()
        self.busy = busy or (lambda: False)
        self.state = SessionState()
        self._detector = EncodingDetector(self.config.detection)

    def opened(self, path: PathType) -> Encoding:
        """Handle a document-opened event; returns the detected encoding."""
        encoding = Encoding.SYSTEM_DEFAULT
        if is_csv_path(path):
            encoding = self._detector.detect(path)
        self.state = on_opened(self.state, path, encoding)
        if self.state.is_tracked(path):
            logger.info("Opened as Unicode CSV", extra={"path": _key(path)})
        return encoding

    def closed(self, path: PathType) -> None:
        """Handle a document-closed event."""
        self.state = on_closed(self.state, path)

    def before_save(self, path: PathType, save_as_ui: bool = False) -> bool:
        """Handle a before-save event; True means the host save must be cancelled."""
        self.state, intercept = on_before_save(self.state, path, save_as_ui)
        return intercept

    def suppress_next_save(self, path: PathType) -> None:
        """Let the next host save of ``path`` pass through."""
        self.state = suppress_next_save(self.state, path)

    def save(
        self,
        exported_path: PathType,
        target_path: PathType,
        target_delimiter: Optional[str] = None,
    ) -> ConversionResult:
        """Finish a save: convert the host's tab-delimited export to ``target_path``.

        Raises:
            HostBusyError: If the host reports it is busy
            NotACsvPathError: If ``target_path`` is not a .csv file name
            TranscodeIOError: If the conversion failed
        """
        if not is_csv_path(target_path):
            raise NotACsvPathError(f"Not a CSV file name: {_key(target_path)}")
        if self.busy():
            raise HostBusyError("Finish editing before saving")

        result = save_as_unicode_csv(
            exported_path,
            target_path,
            target_delimiter=target_delimiter,
            config=self.config,
        )
        self.state = on_saved_as_unicode(self.state, target_path)
        return result
