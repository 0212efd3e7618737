"""Unicode CSV.

Detects whether a text file is UTF-8, UTF-16LE, UTF-16BE or unmarked from its
byte order mark, and rewrites tab-delimited content to another delimiter while
keeping the file's encoding byte for byte.

Progressive API Disclosure:
- Level 1: Simple functions - detect_encoding(), convert_delimiters()
- Level 2: File workflows - convert_file(), save_as_unicode_csv()
- Level 3: Host integration - SessionTracker and the session transitions
"""

__version__ = "0.1.0"
__author__ = "Unicode CSV Team"

# Level 1: Core primitives
from .character.encoding import Encoding, detect_encoding
from .character.stream import ConversionResult, ConversionStrategy, convert_delimiters

# Level 2: File workflows
from .api.saver import convert_file, save_as_unicode_csv

# Level 3: Host integration
from .session.tracker import SessionState, SessionTracker

# Configuration and errors
from .shared.config import ConverterConfig
from .shared.result import ConversionFailure, TranscodeIOError, UnicodeCsvError

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Core primitives
    "Encoding",
    "detect_encoding",
    "convert_delimiters",
    "ConversionResult",
    "ConversionStrategy",

    # Level 2: File workflows
    "convert_file",
    "save_as_unicode_csv",

    # Level 3: Host integration
    "SessionState",
    "SessionTracker",

    # Configuration and errors
    "ConverterConfig",
    "ConversionFailure",
    "TranscodeIOError",
    "UnicodeCsvError",
]
