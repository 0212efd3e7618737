"""Chunked delimiter transcoding that preserves the file's text encoding.

The transcoder replaces every occurrence of one delimiter character with
another while leaving every other byte of the file as it was. Small files are
decoded, replaced and re-encoded in one pass; larger files are streamed in
fixed-size character blocks through an incremental decoder, so a multi-byte
sequence that straddles a block boundary is never split.
"""

import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import psutil

from ..shared.config import (
    CHUNK_SIZE_CHARS,
    DEFAULT_DELIMITER,
    SIZE_THRESHOLD_BYTES,
    SOURCE_DELIMITER,
    TranscodeConfig,
)
from ..shared.logging import get_logger, new_correlation_id
from ..shared.result import (
    ConversionFailure,
    ConversionStage,
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    TranscodeIOError,
)
from .encoding import Encoding, PathType

__all__ = [
    "CHUNK_SIZE_CHARS",
    "SIZE_THRESHOLD_BYTES",
    "ConversionResult",
    "ConversionStrategy",
    "DelimiterTranscoder",
    "convert_delimiters",
]

COMPONENT = "delimiter_transcoder"


class ConversionStrategy(Enum):
    """How a file is read and written during conversion."""

    AUTO = "auto"            # Decide from the file size
    IN_MEMORY = "in-memory"  # Whole file decoded at once
    CHUNKED = "chunked"      # Fixed-size character blocks


@dataclass
class ConversionResult:
    """Outcome of one delimiter conversion.

    Attributes:
        source_path: File that was read
        dest_path: File that was written
        encoding: Encoding the file was read and written in
        strategy: Strategy actually used (AUTO if the job failed before sizing)
        success: Whether the destination holds the converted text
        replacements: Number of delimiters replaced
        failure: Typed I/O failure when ``success`` is False
        metrics: Size, throughput and memory figures for the job
        diagnostics: Diagnostic entries recorded during the job
        correlation_id: ID shared by every log line of the job
    """
    source_path: str
    dest_path: str
    encoding: Encoding
    strategy: ConversionStrategy
    success: bool
    replacements: int = 0
    failure: Optional[ConversionFailure] = None
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate that failures and success flags agree."""
        if self.success and self.failure is not None:
            raise ValueError("A successful conversion cannot carry a failure")
        if not self.success and self.failure is None:
            raise ValueError("A failed conversion must carry a failure")

    def raise_for_failure(self) -> "ConversionResult":
        """Raise TranscodeIOError if the conversion failed, else return self."""
        if self.failure is not None:
            raise TranscodeIOError(self.failure)
        return self


class _StageTracker:
    """Remembers which step of a conversion is running and on which file."""

    def __init__(self, source_path: str, dest_path: str) -> None:
        self.source_path = source_path
        self.dest_path = dest_path
        self.stage = ConversionStage.STAT
        self.path = source_path

    def enter(self, stage: ConversionStage, path: str) -> None:
        self.stage = stage
        self.path = path

    def failure_for(self, error: Exception) -> ConversionFailure:
        stage = self.stage
        path = self.path
        if isinstance(error, UnicodeDecodeError):
            stage, path = ConversionStage.DECODE, self.source_path
        elif isinstance(error, UnicodeEncodeError):
            stage, path = ConversionStage.WRITE, self.dest_path
        return ConversionFailure(detail=str(error), stage=stage, path=path)


class DelimiterTranscoder:
    """Rewrites one delimiter character to another, encoding untouched.

    Each call opens its own file handles and holds no state between calls, so
    separate files can be converted from separate threads without locking.
    """

    def __init__(
        self,
        config: Optional[TranscodeConfig] = None,
        track_memory: bool = True,
    ) -> None:
        """Initialize the transcoder.

        Args:
            config: Threshold, chunk size, system codec and error policy
            track_memory: Record resident memory growth in the job metrics
        """
        self.config = config or TranscodeConfig()
        self.track_memory = track_memory
        self.logger = get_logger(__name__, None, COMPONENT)

    def choose_strategy(self, size_bytes: int) -> ConversionStrategy:
        """Pick the in-memory path up to the threshold, chunks above it."""
        if size_bytes <= self.config.size_threshold_bytes:
            return ConversionStrategy.IN_MEMORY
        return ConversionStrategy.CHUNKED

    def convert(
        self,
        source_path: PathType,
        dest_path: PathType,
        source_delimiter: str = SOURCE_DELIMITER,
        dest_delimiter: str = DEFAULT_DELIMITER,
        encoding: Encoding = Encoding.SYSTEM_DEFAULT,
        strategy: ConversionStrategy = ConversionStrategy.AUTO,
    ) -> ConversionResult:
        """Convert ``source_path`` into ``dest_path``.

        ``dest_path`` must not be the same file as ``source_path``; write to a
        temporary file and replace the original once the result is successful.

        Returns:
            ConversionResult; I/O, decode and encode errors are reported in it

        Raises:
            ValueError: If a delimiter is not exactly one character
        """
        _validate_delimiter("source_delimiter", source_delimiter)
        _validate_delimiter("dest_delimiter", dest_delimiter)

        source = os.fspath(source_path)
        dest = os.fspath(dest_path)
        codec = encoding.codec_name(self.config.system_encoding)
        correlation_id = new_correlation_id()
        logger = self.logger.bind(correlation_id)
        tracker = _StageTracker(source, dest)
        metrics = PerformanceMetrics()
        resolved = ConversionStrategy.AUTO
        process = psutil.Process() if self.track_memory else None
        memory_start = process.memory_info().rss if process else 0
        start = time.perf_counter()

        try:
            tracker.enter(ConversionStage.STAT, source)
            size = os.stat(source).st_size
            resolved = (
                self.choose_strategy(size)
                if strategy is ConversionStrategy.AUTO else strategy
            )
            logger.debug(
                "Converting delimiters",
                extra={
                    "source": source,
                    "dest": dest,
                    "size_bytes": size,
                    "encoding": encoding.name,
                    "strategy": resolved.value,
                },
            )
            if resolved is ConversionStrategy.IN_MEMORY:
                replacements = self._convert_in_memory(
                    tracker, codec, source_delimiter, dest_delimiter, metrics
                )
            else:
                replacements = self._convert_chunked(
                    tracker, codec, source_delimiter, dest_delimiter, metrics
                )
            metrics.bytes_read = size
        except (OSError, UnicodeError, LookupError) as e:
            failure = tracker.failure_for(e)
            metrics.processing_time_ms = (time.perf_counter() - start) * 1000.0
            logger.error(
                "Delimiter conversion failed",
                extra={"stage": failure.stage.value, "error": failure.detail},
            )
            return ConversionResult(
                source_path=source,
                dest_path=dest,
                encoding=encoding,
                strategy=resolved,
                success=False,
                failure=failure,
                metrics=metrics,
                diagnostics=[
                    DiagnosticEntry(
                        severity=DiagnosticSeverity.ERROR,
                        message=str(failure),
                        component=COMPONENT,
                        correlation_id=correlation_id,
                    )
                ],
                correlation_id=correlation_id,
            )

        metrics.processing_time_ms = (time.perf_counter() - start) * 1000.0
        if process:
            metrics.memory_used_bytes = max(0, process.memory_info().rss - memory_start)

        diagnostics = []
        if replacements == 0:
            diagnostics.append(
                DiagnosticEntry(
                    severity=DiagnosticSeverity.WARNING,
                    message="No source delimiters found",
                    component=COMPONENT,
                    correlation_id=correlation_id,
                )
            )

        logger.info(
            "Delimiter conversion complete",
            extra={
                "replacements": replacements,
                "chunks": metrics.chunks_processed,
                "processing_time_ms": round(metrics.processing_time_ms, 3),
            },
        )
        return ConversionResult(
            source_path=source,
            dest_path=dest,
            encoding=encoding,
            strategy=resolved,
            success=True,
            replacements=replacements,
            metrics=metrics,
            diagnostics=diagnostics,
            correlation_id=correlation_id,
        )

    def _convert_in_memory(
        self,
        tracker: _StageTracker,
        codec: str,
        source_delimiter: str,
        dest_delimiter: str,
        metrics: PerformanceMetrics,
    ) -> int:
        errors = self.config.errors

        tracker.enter(ConversionStage.OPEN, tracker.source_path)
        with open(tracker.source_path, "rb") as reader:
            tracker.enter(ConversionStage.READ, tracker.source_path)
            data = reader.read()

        tracker.enter(ConversionStage.DECODE, tracker.source_path)
        text = data.decode(codec, errors)
        replacements = text.count(source_delimiter)
        output = text.replace(source_delimiter, dest_delimiter).encode(codec, errors)

        tracker.enter(ConversionStage.OPEN, tracker.dest_path)
        with open(tracker.dest_path, "wb") as writer:
            tracker.enter(ConversionStage.WRITE, tracker.dest_path)
            writer.write(output)

        metrics.characters_processed = len(text)
        metrics.chunks_processed = 1
        metrics.bytes_written = len(output)
        return replacements

    def _convert_chunked(
        self,
        tracker: _StageTracker,
        codec: str,
        source_delimiter: str,
        dest_delimiter: str,
        metrics: PerformanceMetrics,
    ) -> int:
        errors = self.config.errors
        chunk_size = self.config.chunk_size_chars
        replacements = 0

        # newline="" on both sides keeps CR/LF bytes exactly as they are.
        tracker.enter(ConversionStage.OPEN, tracker.source_path)
        with open(
            tracker.source_path, "r", encoding=codec, errors=errors, newline=""
        ) as reader:
            tracker.enter(ConversionStage.OPEN, tracker.dest_path)
            with open(
                tracker.dest_path, "w", encoding=codec, errors=errors, newline=""
            ) as writer:
                while True:
                    tracker.enter(ConversionStage.READ, tracker.source_path)
                    # The incremental decoder holds back an incomplete byte
                    # sequence until the next read, so no block ends mid-character.
                    block = reader.read(chunk_size)
                    if not block:
                        break
                    tracker.enter(ConversionStage.WRITE, tracker.dest_path)
                    writer.write(block.replace(source_delimiter, dest_delimiter))
                    replacements += block.count(source_delimiter)
                    metrics.characters_processed += len(block)
                    metrics.chunks_processed += 1
                # Buffered output is flushed when the writer closes.
                tracker.enter(ConversionStage.WRITE, tracker.dest_path)

        tracker.enter(ConversionStage.STAT, tracker.dest_path)
        metrics.bytes_written = os.stat(tracker.dest_path).st_size
        return replacements


def _validate_delimiter(name: str, value: str) -> None:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"{name} must be a single character, got {value!r}")


def convert_delimiters(
    source_path: PathType,
    dest_path: PathType,
    source_delimiter: str = SOURCE_DELIMITER,
    dest_delimiter: str = DEFAULT_DELIMITER,
    encoding: Encoding = Encoding.SYSTEM_DEFAULT,
    config: Optional[TranscodeConfig] = None,
    strategy: ConversionStrategy = ConversionStrategy.AUTO,
) -> ConversionResult:
    """Replace ``source_delimiter`` with ``dest_delimiter`` from one file into another.

    Args:
        source_path: File to read
        dest_path: File to create or overwrite
        source_delimiter: Character to replace, tab by default
        dest_delimiter: Replacement character
        encoding: Encoding of the source, kept for the destination
        config: Optional transcode configuration
        strategy: Force a strategy instead of deciding by size

    Returns:
        ConversionResult describing the job
    """
    return DelimiterTranscoder(config).convert(
        source_path,
        dest_path,
        source_delimiter=source_delimiter,
        dest_delimiter=dest_delimiter,
        encoding=encoding,
        strategy=strategy,
    )
