"""Configuration classes for Unicode CSV detection and conversion.

This module provides configuration objects for the encoding detector, the
delimiter transcoder and the callers around them. Component configurations
validate themselves in ``__post_init__``; ``ConverterConfig`` aggregates them
into one immutable value that can be serialized to and from JSON.
"""

import codecs
import json
import locale
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

# Files at or below this size are converted in memory, larger ones in chunks
SIZE_THRESHOLD_BYTES = 1024 * 1024

# Characters decoded per block on the chunked path
CHUNK_SIZE_CHARS = 100 * 1024

# Structural delimiter of tab-separated "Unicode text" exports
SOURCE_DELIMITER = "\t"

# Used when no locale list separator is available
DEFAULT_DELIMITER = ","

VALID_ERROR_HANDLERS = ("strict", "surrogateescape")

COMPONENT_FIELDS = ("detection", "transcode", "delimiters", "global_")


def _preferred_encoding() -> str:
    return locale.getpreferredencoding(False) or "utf-8"


def locale_list_separator() -> str:
    """Best-effort list separator of the user's locale.

    Locales that write decimals with a comma separate list items with a
    semicolon. Falls back to ``DEFAULT_DELIMITER`` when the locale cannot be
    queried. Only callers use this; the converter takes its delimiter from
    configuration.
    """
    try:
        previous = locale.setlocale(locale.LC_NUMERIC)
        try:
            locale.setlocale(locale.LC_NUMERIC, "")
            decimal_point = locale.localeconv()["decimal_point"]
        finally:
            locale.setlocale(locale.LC_NUMERIC, previous)
    except (locale.Error, ValueError, KeyError):
        return DEFAULT_DELIMITER
    return ";" if decimal_point == "," else DEFAULT_DELIMITER


@dataclass
class DetectionConfig:
    """Configuration for the BOM probe."""

    log_failures: bool = True


@dataclass
class TranscodeConfig:
    """Configuration for the delimiter transcoder."""

    size_threshold_bytes: int = SIZE_THRESHOLD_BYTES
    chunk_size_chars: int = CHUNK_SIZE_CHARS
    system_encoding: str = field(default_factory=_preferred_encoding)
    errors: str = "strict"

    def __post_init__(self) -> None:
        """Validate transcode configuration."""
        if self.size_threshold_bytes < 0:
            raise ValueError("size_threshold_bytes must be >= 0")
        if self.chunk_size_chars <= 0:
            raise ValueError("chunk_size_chars must be > 0")
        try:
            codecs.lookup(self.system_encoding)
        except LookupError as e:
            raise ValueError(
                f"Unknown system_encoding: {self.system_encoding}"
            ) from e
        if self.errors not in VALID_ERROR_HANDLERS:
            raise ValueError(f"errors must be one of {list(VALID_ERROR_HANDLERS)}")


@dataclass
class DelimiterConfig:
    """Source and target delimiters for a conversion."""

    source_delimiter: str = SOURCE_DELIMITER
    target_delimiter: str = DEFAULT_DELIMITER

    def __post_init__(self) -> None:
        """Validate delimiter configuration."""
        if self.source_delimiter != SOURCE_DELIMITER:
            raise ValueError("source_delimiter is fixed to the tab character")
        if len(self.target_delimiter) != 1:
            raise ValueError("target_delimiter must be a single character")
        if self.target_delimiter == self.source_delimiter:
            raise ValueError("target_delimiter must differ from source_delimiter")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ConverterConfig:
    """Immutable configuration for detection, conversion and their callers.

    Thread-safe due to frozen dataclass implementation; derive variants with
    ``override``.
    """

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    transcode: TranscodeConfig = field(default_factory=TranscodeConfig)
    delimiters: DelimiterConfig = field(default_factory=DelimiterConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete converter configuration."""
        try:
            self.transcode.__post_init__()
            self.delimiters.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.transcode.chunk_size_chars > max(self.transcode.size_threshold_bytes, 1):
            raise ConfigValidationError(
                "transcode.chunk_size_chars exceeds transcode.size_threshold_bytes",
                field_name="transcode.chunk_size_chars",
                suggestions=["Reduce transcode.chunk_size_chars",
                             "Increase transcode.size_threshold_bytes"],
            )

    def override(self, **kwargs: Any) -> "ConverterConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ConverterConfig()
            >>> new_config = config.override(
            ...     delimiters__target_delimiter=";",
            ...     transcode__chunk_size_chars=4096,
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.rsplit("__", 1)
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for field_name in COMPONENT_FIELDS:
            current_config = getattr(self, field_name)
            if field_name in nested_overrides:
                new_fields[field_name] = replace(
                    current_config, **nested_overrides[field_name]
                )
            else:
                new_fields[field_name] = current_config

        for key, value in nested_overrides.items():
            if key not in COMPONENT_FIELDS:
                new_fields[key] = value

        return replace(self, **new_fields)

    @property
    def target_delimiter(self) -> str:
        return self.delimiters.target_delimiter

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConverterConfig":
        """Create configuration from dictionary.

        Unknown keys are ignored; missing keys keep their defaults.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                field_type = field_info.type
                if hasattr(field_type, "__dataclass_fields__"):
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"{field_name} must be an object",
                            field_name=field_name,
                        )
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                else:
                    field_values[field_name] = value
            return target_class(**field_values)

        try:
            result = _dict_to_dataclass(data, cls)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e
        if not isinstance(result, cls):
            raise ConfigValidationError(f"Failed to deserialize to {cls.__name__}")
        return result

    @classmethod
    def from_json(cls, json_str: str) -> "ConverterConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ConverterConfig":
        """Comma target delimiter, 1 MiB threshold, 100K-character chunks."""
        return cls(name="default")

    @classmethod
    def from_locale(cls) -> "ConverterConfig":
        """Target delimiter taken from the user's locale list separator."""
        return cls(
            delimiters=DelimiterConfig(target_delimiter=locale_list_separator()),
            name="from_locale",
            description="Target delimiter resolved from the current locale",
        )

    @classmethod
    def low_memory(cls) -> "ConverterConfig":
        """Chunk anything above 64 KiB in 8K-character blocks."""
        return cls(
            transcode=TranscodeConfig(
                size_threshold_bytes=64 * 1024,
                chunk_size_chars=8 * 1024,
            ),
            name="low_memory",
            description="Small in-memory threshold and chunks for constrained hosts",
        )
