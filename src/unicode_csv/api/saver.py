"""File-level conversion workflows built on the detector and the transcoder.

The transcoder never writes over the file it reads. These helpers convert into
a temporary file in the destination's directory and only move it over the
destination with ``os.replace`` once the conversion succeeded, so a failure
never leaves a half-written document behind.
"""

import os
import shutil
import tempfile
from dataclasses import replace
from typing import Optional

from ..character.encoding import Encoding, EncodingDetector, PathType
from ..character.stream import ConversionResult, ConversionStrategy, DelimiterTranscoder
from ..shared.config import SOURCE_DELIMITER, ConverterConfig
from ..shared.logging import get_logger
from ..shared.result import (
    ConversionFailure,
    ConversionStage,
    DiagnosticEntry,
    DiagnosticSeverity,
    NotACsvPathError,
    TranscodeIOError,
)

CSV_SUFFIX = ".csv"

logger = get_logger(__name__, None, "saver")


def is_csv_path(path: PathType) -> bool:
    """Whether ``path`` names a .csv file (case-insensitive)."""
    return os.fspath(path).lower().endswith(CSV_SUFFIX)


def _temp_path_beside(path: str) -> str:
    directory = os.path.dirname(os.path.abspath(path)) or "."
    fd, temp_path = tempfile.mkstemp(prefix=".unicode_csv_", suffix=".tmp", dir=directory)
    os.close(fd)
    return temp_path


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temporary file", extra={"path": path, "error": str(e)})


def _failed(
    source: str, dest: str, encoding: Encoding, stage: ConversionStage, error: OSError
) -> ConversionResult:
    return ConversionResult(
        source_path=source,
        dest_path=dest,
        encoding=encoding,
        strategy=ConversionStrategy.AUTO,
        success=False,
        failure=ConversionFailure(str(error), stage, dest),
    )


def _default_file_mode() -> int:
    """Mode a plain ``open(path, "w")`` would give a new file."""
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def _promote(result: ConversionResult, temp_path: str, dest: str) -> ConversionResult:
    """Move a successful conversion from ``temp_path`` over ``dest``.

    An existing destination keeps its permission bits; a new one gets the
    umask default instead of the 0600 of ``mkstemp``.
    """
    try:
        if os.path.exists(dest):
            shutil.copymode(dest, temp_path)
        else:
            os.chmod(temp_path, _default_file_mode())
        os.replace(temp_path, dest)
    except OSError as e:
        failure = ConversionFailure(str(e), ConversionStage.REPLACE, dest)
        logger.bind(result.correlation_id).error(
            "Replacing destination failed", extra={"path": dest, "error": str(e)}
        )
        return replace(
            result,
            dest_path=dest,
            success=False,
            failure=failure,
            diagnostics=result.diagnostics + [
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=str(failure),
                    component="saver",
                    correlation_id=result.correlation_id,
                )
            ],
        )
    return replace(result, dest_path=dest)


def convert_file(
    source_path: PathType,
    dest_path: Optional[PathType] = None,
    target_delimiter: Optional[str] = None,
    config: Optional[ConverterConfig] = None,
    force: bool = False,
    strategy: ConversionStrategy = ConversionStrategy.AUTO,
) -> Optional[ConversionResult]:
    """Detect the encoding of a tab-delimited file and convert its delimiters.

    Args:
        source_path: File to convert
        dest_path: Where to write the result; the source itself when None
        target_delimiter: Replacement for tabs, the configured delimiter when None
        config: Converter configuration
        force: Also convert files without a unicode byte order mark
        strategy: Force a transcoding strategy

    Returns:
        ConversionResult, or None when the file was skipped as non-unicode
    """
    config = config or ConverterConfig()
    source = os.fspath(source_path)
    dest = os.fspath(dest_path) if dest_path is not None else source
    delimiter = target_delimiter or config.target_delimiter

    encoding = EncodingDetector(config.detection).detect(source)
    if not encoding.is_unicode and not force:
        logger.info("Skipping file without unicode byte order mark", extra={"path": source})
        return None

    transcoder = DelimiterTranscoder(config.transcode, track_memory=config.global_.enable_metrics)
    try:
        temp_path = _temp_path_beside(dest)
    except OSError as e:
        return _failed(source, dest, encoding, ConversionStage.OPEN, e)
    try:
        result = transcoder.convert(
            source, temp_path, SOURCE_DELIMITER, delimiter, encoding, strategy
        )
        if result.success:
            result = _promote(result, temp_path, dest)
    finally:
        _discard(temp_path)
    return result


def save_as_unicode_csv(
    exported_path: PathType,
    target_path: PathType,
    target_delimiter: Optional[str] = None,
    encoding: Optional[Encoding] = None,
    config: Optional[ConverterConfig] = None,
    cleanup_exported: bool = True,
    strategy: ConversionStrategy = ConversionStrategy.AUTO,
) -> ConversionResult:
    """Turn a tab-delimited Unicode text export into a Unicode CSV file.

    The host application writes the workbook as tab-delimited UTF-16 text to
    ``exported_path``; this replaces the tabs with ``target_delimiter`` and
    atomically moves the result to ``target_path``. The export is removed
    afterwards, whether the conversion succeeded or not, unless
    ``cleanup_exported`` is False.

    Args:
        exported_path: Tab-delimited export written by the host
        target_path: .csv file to create or replace
        target_delimiter: Replacement for tabs, the configured delimiter when None
        encoding: Encoding of the export, detected from its BOM when None
        config: Converter configuration
        cleanup_exported: Delete ``exported_path`` when done
        strategy: Force a transcoding strategy

    Returns:
        Successful ConversionResult whose ``dest_path`` is ``target_path``

    Raises:
        NotACsvPathError: If ``target_path`` is not a .csv file name
        TranscodeIOError: If the conversion or the final replace failed
    """
    if not is_csv_path(target_path):
        raise NotACsvPathError(f"Not a CSV file name: {os.fspath(target_path)}")

    config = config or ConverterConfig()
    exported = os.fspath(exported_path)
    target = os.fspath(target_path)
    delimiter = target_delimiter or config.target_delimiter

    try:
        if encoding is None:
            encoding = EncodingDetector(config.detection).detect(exported)
        transcoder = DelimiterTranscoder(
            config.transcode, track_memory=config.global_.enable_metrics
        )
        try:
            temp_path = _temp_path_beside(target)
        except OSError as e:
            raise TranscodeIOError(
                ConversionFailure(str(e), ConversionStage.OPEN, target)
            ) from e
        try:
            result = transcoder.convert(
                exported, temp_path, SOURCE_DELIMITER, delimiter, encoding, strategy
            )
            if result.success:
                result = _promote(result, temp_path, target)
        finally:
            _discard(temp_path)
    finally:
        if cleanup_exported:
            _discard(exported)

    result.raise_for_failure()
    logger.info(
        "Saved as Unicode CSV",
        extra={"path": target, "encoding": encoding.name, "replacements": result.replacements},
    )
    return result
