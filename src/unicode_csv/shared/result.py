"""Result objects, diagnostics and exceptions for Unicode CSV conversion.

This module defines the result types returned by the transcoder and the save
workflow, together with the exception hierarchy raised when a caller asks for
a failure to be escalated.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Conditions worth surfacing to the caller
    ERROR = auto()      # Conversion failed


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class PerformanceMetrics:
    """Performance metrics for a single conversion job."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    bytes_read: int = 0
    bytes_written: int = 0
    characters_processed: int = 0
    chunks_processed: int = 0

    @property
    def characters_per_second(self) -> float:
        """Calculate characters processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.characters_processed * 1000.0) / self.processing_time_ms

    @property
    def size_delta(self) -> int:
        """Difference in bytes between output and input."""
        return self.bytes_written - self.bytes_read


class ConversionStage(Enum):
    """Where in a conversion an I/O failure happened."""

    STAT = "stat"
    OPEN = "open"
    READ = "read"
    DECODE = "decode"
    WRITE = "write"
    REPLACE = "replace"


@dataclass(frozen=True)
class ConversionFailure:
    """Typed I/O failure carried by an unsuccessful conversion.

    Attributes:
        detail: Message of the underlying error
        stage: Conversion stage that failed
        path: File the failing operation was acting on, when known
    """
    detail: str
    stage: ConversionStage
    path: Optional[str] = None

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"{self.stage.value} failed{location}: {self.detail}"


class UnicodeCsvError(Exception):
    """Base exception for Unicode CSV conversion errors."""


class TranscodeIOError(UnicodeCsvError):
    """Raised when a delimiter conversion failed on I/O, decode or encode."""

    def __init__(self, failure: ConversionFailure):
        super().__init__(str(failure))
        self.failure = failure


class NotACsvPathError(UnicodeCsvError):
    """Raised when a save target does not carry a .csv file name."""


class HostBusyError(UnicodeCsvError):
    """Raised when the host reports it cannot be saved from right now."""
