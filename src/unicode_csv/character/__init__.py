"""Character layer: encoding detection and delimiter transcoding.

This module provides the two primitives the rest of the package is built on:
byte-order-mark detection over a three byte probe, and delimiter replacement
that keeps the detected encoding intact.
"""

from .encoding import (
    PROBE_SIZE,
    UTF_8_BOM,
    UTF_16BE_BOM,
    UTF_16LE_BOM,
    BOMDetector,
    DetectionResult,
    Encoding,
    EncodingDetector,
    detect_encoding,
)
from .stream import (
    ConversionResult,
    ConversionStrategy,
    DelimiterTranscoder,
    convert_delimiters,
)

__all__ = [
    # Encoding detection
    "PROBE_SIZE",
    "UTF_8_BOM",
    "UTF_16BE_BOM",
    "UTF_16LE_BOM",
    "BOMDetector",
    "DetectionResult",
    "Encoding",
    "EncodingDetector",
    "detect_encoding",
    # Delimiter transcoding
    "ConversionResult",
    "ConversionStrategy",
    "DelimiterTranscoder",
    "convert_delimiters",
]
