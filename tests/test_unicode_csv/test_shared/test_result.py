"""Tests for result objects, diagnostics and exceptions."""

import pytest

from unicode_csv.shared.logging import CorrelationLogger, get_logger, new_correlation_id
from unicode_csv.shared.result import (
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


class TestDiagnosticEntry:
    """Test DiagnosticEntry validation."""

    def test_valid_entry(self):
        """Test a complete entry."""
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.WARNING,
            message="No source delimiters found",
            component="delimiter_transcoder",
        )

        assert entry.timestamp > 0
        assert entry.details is None

    def test_empty_message(self):
        """Test an empty message is rejected."""
        with pytest.raises(ValueError, match="message cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "saver")

    def test_empty_component(self):
        """Test an empty component is rejected."""
        with pytest.raises(ValueError, match="component cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "saved", "")


class TestPerformanceMetrics:
    """Test derived metrics."""

    def test_characters_per_second(self):
        """Test throughput calculation."""
        metrics = PerformanceMetrics(processing_time_ms=500.0, characters_processed=1000)

        assert metrics.characters_per_second == 2000.0

    def test_zero_time(self):
        """Test throughput without elapsed time."""
        assert PerformanceMetrics(characters_processed=10).characters_per_second == 0.0

    def test_size_delta(self):
        """Test output minus input size."""
        metrics = PerformanceMetrics(bytes_read=100, bytes_written=90)

        assert metrics.size_delta == -10


class TestConversionFailure:
    """Test ConversionFailure formatting."""

    def test_str_with_path(self):
        """Test the message names stage and path."""
        failure = ConversionFailure("Permission denied", ConversionStage.REPLACE, "out.csv")

        assert str(failure) == "replace failed (out.csv): Permission denied"

    def test_str_without_path(self):
        """Test the message without a path."""
        failure = ConversionFailure("boom", ConversionStage.READ)

        assert str(failure) == "read failed: boom"

    def test_frozen(self):
        """Test failures are immutable."""
        failure = ConversionFailure("boom", ConversionStage.READ)

        with pytest.raises(AttributeError):
            failure.detail = "other"


class TestExceptions:
    """Test the exception hierarchy."""

    def test_hierarchy(self):
        """Test every error derives from UnicodeCsvError."""
        assert issubclass(TranscodeIOError, UnicodeCsvError)
        assert issubclass(NotACsvPathError, UnicodeCsvError)
        assert issubclass(HostBusyError, UnicodeCsvError)

    def test_transcode_error_carries_failure(self):
        """Test the failure is kept on the exception."""
        failure = ConversionFailure("disk full", ConversionStage.WRITE, "out.csv")

        error = TranscodeIOError(failure)

        assert error.failure is failure
        assert str(error) == "write failed (out.csv): disk full"


class TestCorrelationLogger:
    """Test correlation-aware logging."""

    def test_records_carry_component_and_id(self, caplog):
        """Test extra fields are attached to every record."""
        logger = get_logger("unicode_csv.test", "abc123", "saver")

        with caplog.at_level("INFO", logger="unicode_csv.test"):
            logger.info("Saved", extra={"path": "out.csv"})

        record = caplog.records[-1]
        assert record.component == "saver"
        assert record.correlation_id == "abc123"
        assert record.path == "out.csv"

    def test_error_with_traceback(self, caplog):
        """Test error records can carry the active exception."""
        logger = get_logger("unicode_csv.test", "job-2", "saver")

        with caplog.at_level("ERROR", logger="unicode_csv.test"):
            try:
                raise OSError("disk full")
            except OSError:
                logger.error("Replacing destination failed", exc_info=True)

        record = caplog.records[-1]
        assert record.exc_info[0] is OSError
        assert record.correlation_id == "job-2"

    def test_component_defaults_to_module_name(self):
        """Test the component falls back to the last name segment."""
        assert CorrelationLogger("unicode_csv.api.saver").component == "saver"

    def test_bind(self):
        """Test binding keeps the component and swaps the job ID."""
        logger = get_logger("unicode_csv.test", None, "session")

        bound = logger.bind("job-1")

        assert bound.correlation_id == "job-1"
        assert bound.component == "session"
        assert logger.correlation_id is None

    def test_new_correlation_ids_are_unique(self):
        """Test generated IDs differ."""
        assert new_correlation_id() != new_correlation_id()
