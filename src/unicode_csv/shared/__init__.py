"""Shared utilities for Unicode CSV conversion.

This module provides configuration objects, result and diagnostic types,
exceptions and logging helpers used across the detector, the transcoder and
their callers.
"""

from .config import (
    CHUNK_SIZE_CHARS,
    DEFAULT_DELIMITER,
    SIZE_THRESHOLD_BYTES,
    SOURCE_DELIMITER,
    ConfigError,
    ConfigValidationError,
    ConverterConfig,
    DelimiterConfig,
    DetectionConfig,
    GlobalConfig,
    TranscodeConfig,
    locale_list_separator,
)
from .logging import (
    CorrelationLogger,
    get_logger,
    new_correlation_id,
)
from .result import (
    ConversionFailure,
    ConversionStage,
    DiagnosticEntry,
    DiagnosticSeverity,
    HostBusyError,
    NotACsvPathError,
    PerformanceMetrics,
    TranscodeIOError,
    UnicodeCsvError,
)

__all__ = [
    "CHUNK_SIZE_CHARS",
    "DEFAULT_DELIMITER",
    "SIZE_THRESHOLD_BYTES",
    "SOURCE_DELIMITER",
    "ConfigError",
    "ConfigValidationError",
    "ConverterConfig",
    "DelimiterConfig",
    "DetectionConfig",
    "GlobalConfig",
    "TranscodeConfig",
    "locale_list_separator",
    "CorrelationLogger",
    "get_logger",
    "new_correlation_id",
    "ConversionFailure",
    "ConversionStage",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "HostBusyError",
    "NotACsvPathError",
    "PerformanceMetrics",
    "TranscodeIOError",
    "UnicodeCsvError",
]
