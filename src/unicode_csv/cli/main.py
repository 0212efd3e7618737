"""Main CLI entry point for the unicode-csv command-line tool.

Provides commands to detect the encoding of files, convert tab-delimited
Unicode text files to CSV in place, and finish a host save from a
tab-delimited export.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from unicode_csv import __version__
from unicode_csv.api.saver import convert_file, save_as_unicode_csv
from unicode_csv.character.encoding import Encoding, EncodingDetector
from unicode_csv.character.stream import ConversionResult, ConversionStrategy
from unicode_csv.shared.config import (
    ConfigError,
    ConverterConfig,
    locale_list_separator,
)
from unicode_csv.shared.result import UnicodeCsvError


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.converter_config = ConverterConfig.default()

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a ConverterConfig JSON file."""
        config = cls()
        if config_path.exists():
            try:
                config.converter_config = ConverterConfig.from_json(
                    config_path.read_text(encoding="utf-8")
                )
            except (OSError, ConfigError) as e:
                print(f"Warning: Could not load config file: {e}", file=sys.stderr)
        return config


def _load_config(args: argparse.Namespace) -> CLIConfig:
    if getattr(args, "config", None):
        cli_config = CLIConfig.from_file(args.config)
    else:
        cli_config = CLIConfig()
    # --verbose and --quiet win over the configured level
    if not (args.verbose or args.quiet):
        level = cli_config.converter_config.global_.logging_level
        logging.getLogger("unicode_csv").setLevel(level)
    return cli_config


def _resolve_delimiter(args: argparse.Namespace, config: ConverterConfig) -> str:
    if getattr(args, "locale", False):
        return locale_list_separator()
    return args.delimiter or config.target_delimiter


def _conversion_row(path: Path, result: Optional[ConversionResult]) -> Dict[str, Any]:
    if result is None:
        return {"file": str(path), "status": "skipped"}
    row: Dict[str, Any] = {
        "file": str(path),
        "status": "converted" if result.success else "failed",
        "dest": result.dest_path,
        "encoding": result.encoding.name,
        "strategy": result.strategy.value,
        "replacements": result.replacements,
        "processing_time_ms": round(result.metrics.processing_time_ms, 3),
    }
    if result.failure is not None:
        row["error"] = str(result.failure)
    return row


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="unicode-csv",
        description="Detect Unicode text files and convert their tab delimiters to CSV"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Detect command
    detect_parser = subparsers.add_parser("detect", help="Detect file encodings")
    detect_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Files to inspect"
    )
    detect_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Convert command
    convert_parser = subparsers.add_parser(
        "convert", help="Replace tabs with a delimiter, keeping the encoding"
    )
    convert_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Tab-delimited files to convert"
    )
    delimiter_group = convert_parser.add_mutually_exclusive_group()
    delimiter_group.add_argument(
        "--delimiter", "-d",
        help="Replacement delimiter (default: from configuration)"
    )
    delimiter_group.add_argument(
        "--locale",
        action="store_true",
        help="Use the current locale's list separator"
    )
    convert_parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        help="Write converted files here instead of in place"
    )
    convert_parser.add_argument(
        "--force",
        action="store_true",
        help="Also convert files without a unicode byte order mark"
    )
    convert_parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in ConversionStrategy],
        default=ConversionStrategy.AUTO.value,
        help="Force in-memory or chunked conversion"
    )
    convert_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Save command
    save_parser = subparsers.add_parser(
        "save", help="Convert a tab-delimited export into a Unicode CSV file"
    )
    save_parser.add_argument("exported", type=Path, help="Tab-delimited export")
    save_parser.add_argument("target", type=Path, help="CSV file to write")
    save_parser.add_argument(
        "--delimiter", "-d",
        help="Replacement delimiter (default: from configuration)"
    )
    save_parser.add_argument(
        "--encoding", "-e",
        choices=[encoding.name for encoding in Encoding],
        help="Encoding of the export (default: detected)"
    )
    save_parser.add_argument(
        "--keep-exported",
        action="store_true",
        help="Do not delete the export afterwards"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )

    return parser


def format_detections(rows: List[Dict[str, Any]], format_type: str) -> str:
    """Format encoding detection rows for output."""
    if format_type == "json":
        return json.dumps(rows, indent=2)

    lines = []
    for row in rows:
        line = f"{row['file']}: {row['encoding']}"
        if row.get("error"):
            line += f" (unreadable: {row['error']})"
        lines.append(line)
    return "\n".join(lines)


def format_conversions(rows: List[Dict[str, Any]], format_type: str) -> str:
    """Format conversion rows for output."""
    if format_type == "json":
        return json.dumps(rows, indent=2)

    if not rows:
        return "No files to convert."

    converted = sum(1 for r in rows if r["status"] == "converted")
    lines = [f"Converted {converted} of {len(rows)} files", "-" * 60]
    for row in rows:
        status = row["status"]
        if status == "converted":
            lines.append(
                f"✓ {row['file']} ({row['encoding']}, {row['strategy']}, "
                f"{row['replacements']} delimiters)"
            )
        elif status == "skipped":
            lines.append(f"- {row['file']} (no unicode byte order mark)")
        else:
            lines.append(f"✗ {row['file']}")
            lines.append(f"   Error: {row.get('error', '')}")
    return "\n".join(lines)


def cmd_detect(args: argparse.Namespace) -> int:
    """Handle detect command."""
    config = _load_config(args).converter_config
    detector = EncodingDetector(config.detection)
    rows = []
    for path in args.paths:
        detection = detector.detect_with_details(path)
        rows.append({
            "file": str(path),
            "encoding": detection.encoding.name,
            "probe": detection.probe_hex,
            "error": detection.error,
        })
    print(format_detections(rows, args.format))
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    cli_config = _load_config(args)
    config = cli_config.converter_config
    delimiter = _resolve_delimiter(args, config)
    strategy = ConversionStrategy(args.strategy)

    if args.output_dir:
        args.output_dir.mkdir(parents=True, exist_ok=True)

    rows = []
    for path in args.paths:
        dest = args.output_dir / path.name if args.output_dir else None
        try:
            result = convert_file(
                path,
                dest_path=dest,
                target_delimiter=delimiter,
                config=config,
                force=args.force,
                strategy=strategy,
            )
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        rows.append(_conversion_row(path, result))

    print(format_conversions(rows, args.format))
    failed = sum(1 for r in rows if r["status"] == "failed")
    return 0 if failed == 0 else 1


def cmd_save(args: argparse.Namespace) -> int:
    """Handle save command."""
    cli_config = _load_config(args)
    config = cli_config.converter_config
    encoding = Encoding[args.encoding] if args.encoding else None

    try:
        result = save_as_unicode_csv(
            args.exported,
            args.target,
            target_delimiter=args.delimiter or config.target_delimiter,
            encoding=encoding,
            config=config,
            cleanup_exported=not args.keep_exported,
        )
    except (UnicodeCsvError, ValueError) as e:
        print(f"Error occurred while saving as Unicode CSV: {e}", file=sys.stderr)
        return 1

    print(f"{args.target.name} has been saved as a Unicode CSV "
          f"({result.replacements} delimiters replaced)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "detect":
            return cmd_detect(args)
        elif args.command == "convert":
            return cmd_convert(args)
        elif args.command == "save":
            return cmd_save(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
