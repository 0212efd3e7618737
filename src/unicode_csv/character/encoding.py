"""Byte-order-mark encoding detection with never-fail guarantee.

Classifies a file as UTF-8, UTF-16LE, UTF-16BE or unmarked system default
text by looking at its first three bytes only. Any problem opening or reading
the file is treated exactly like an unmarked file: detection never raises an
I/O error to its caller.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional, Union

from ..shared.config import DetectionConfig
from ..shared.logging import get_logger

PathType = Union[str, "os.PathLike[str]"]

# Unicode file byte order marks, uppercase hex without separators
UTF_16BE_BOM = "FEFF"
UTF_16LE_BOM = "FFFE"
UTF_8_BOM = "EFBBBF"

# Detection never reads past this many bytes
PROBE_SIZE = 3


class Encoding(Enum):
    """Text encodings recognised by the detector and kept by the transcoder."""

    UTF16_BE = "utf-16-be"
    UTF16_LE = "utf-16-le"
    UTF8 = "utf-8"
    SYSTEM_DEFAULT = "system-default"

    @property
    def is_unicode(self) -> bool:
        """Whether the encoding was identified by a byte order mark."""
        return self is not Encoding.SYSTEM_DEFAULT

    @property
    def bom(self) -> Optional[str]:
        """Hex byte order mark of the encoding, None for the system default."""
        return BOMDetector.BOM_PATTERNS.get(self)

    def codec_name(self, system_encoding: str) -> str:
        """Python codec used to read and write files in this encoding.

        The explicit-endian codecs neither strip nor add a BOM: a mark present
        in the file decodes to U+FEFF and is written back unchanged.
        """
        if self is Encoding.SYSTEM_DEFAULT:
            return system_encoding
        return self.value


@dataclass(frozen=True)
class DetectionResult:
    """Detected encoding together with what the probe saw.

    Attributes:
        encoding: Detected encoding
        probe_hex: Uppercase hex of the bytes that were inspected
        error: Message of a swallowed I/O error, if any
    """
    encoding: Encoding
    probe_hex: str = ""
    error: Optional[str] = None


class BOMDetector:
    """Progressive hex matcher over the UTF-8 and UTF-16 byte order marks."""

    BOM_PATTERNS: ClassVar[Dict[Encoding, str]] = {
        Encoding.UTF16_BE: UTF_16BE_BOM,
        Encoding.UTF16_LE: UTF_16LE_BOM,
        Encoding.UTF8: UTF_8_BOM,
    }

    def match(self, data: bytes) -> Encoding:
        """Classify a probe of exactly ``PROBE_SIZE`` bytes.

        The hex string is grown one byte at a time and compared after each
        byte, so the two-byte UTF-16 marks match before the third byte is
        looked at. A shorter probe is never a match.
        """
        if len(data) < PROBE_SIZE:
            return Encoding.SYSTEM_DEFAULT

        hex_string = ""
        for byte in data[:PROBE_SIZE]:
            hex_string += f"{byte:02X}"
            for encoding, bom in self.BOM_PATTERNS.items():
                if hex_string == bom:
                    return encoding

        return Encoding.SYSTEM_DEFAULT


class EncodingDetector:
    """File-level encoding detection with never-fail guarantee."""

    def __init__(self, config: Optional[DetectionConfig] = None) -> None:
        self.config = config or DetectionConfig()
        self.bom_detector = BOMDetector()
        self.logger = get_logger(__name__, None, "encoding_detector")

    def detect_prefix(self, data: bytes) -> Encoding:
        """Classify the leading bytes of a file already in memory."""
        return self.bom_detector.match(data[:PROBE_SIZE])

    def detect(self, path: PathType) -> Encoding:
        """Detect the encoding of the file at ``path``.

        Returns:
            Detected Encoding, SYSTEM_DEFAULT when unmarked or unreadable

        Raises:
            Never raises on I/O errors
        """
        return self.detect_with_details(path).encoding

    def detect_with_details(self, path: PathType) -> DetectionResult:
        """Detect the encoding of ``path`` and report what was probed."""
        try:
            # Python opens files without denying other readers or writers,
            # so files held open by another application can still be probed.
            with open(path, "rb") as stream:
                probe = stream.read(PROBE_SIZE)
        except (OSError, ValueError) as e:
            if self.config.log_failures:
                self.logger.debug(
                    "Encoding probe failed, treating file as unmarked",
                    extra={"path": os.fspath(path), "error": str(e)},
                )
            return DetectionResult(Encoding.SYSTEM_DEFAULT, "", str(e))

        encoding = self.bom_detector.match(probe)
        self.logger.debug(
            "Encoding probe complete",
            extra={"path": os.fspath(path), "encoding": encoding.name},
        )
        return DetectionResult(encoding, probe.hex().upper())


def detect_encoding(path: PathType) -> Encoding:
    """Detect the encoding of a file from its byte order mark.

    Args:
        path: File to inspect

    Returns:
        One of UTF16_BE, UTF16_LE, UTF8 or SYSTEM_DEFAULT
    """
    return EncodingDetector().detect(path)
