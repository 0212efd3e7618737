"""Command-line interface module for Unicode CSV.

This module provides CLI tools to detect file encodings, convert tab-delimited
Unicode text files to CSV and finish host saves from tab-delimited exports.
"""

from .main import main

__all__ = ["main"]
