"""File-level workflows: convert a file in place or finish a host save."""

from .saver import (
    CSV_SUFFIX,
    convert_file,
    is_csv_path,
    save_as_unicode_csv,
)

__all__ = [
    "CSV_SUFFIX",
    "convert_file",
    "is_csv_path",
    "save_as_unicode_csv",
]
