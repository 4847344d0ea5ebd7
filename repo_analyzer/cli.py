"""
CLI interface for repo_analyzer.

Provides the command-line interface for analyzing a source tree.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import yaml

from repo_analyzer import __version__
from repo_analyzer.analyzer import Analyzer
from repo_analyzer.config import (
    DEFAULT_CONFIG,
    DEFAULT_EXCLUDE,
    get_config_template,
    load_config,
)
from repo_analyzer.loader import load_source_files
from repo_analyzer.reports import render_security_report, render_summary

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="repo-analyzer",
        description="Inventory code entities and flag risky patterns in a source tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
QUICK START
  repo-analyzer .                              # Analyze current directory
  repo-analyzer ./web -o analysis.json         # Write JSON to a file
  repo-analyzer . --summary                    # Markdown overview only
  repo-analyzer . --security-report SECURITY.md

CONFIGURATION
  repo-analyzer --init-config > analyzer.yaml  # Starter config
  repo-analyzer . --config analyzer.yaml

DISCLAIMER
This tool uses regular expressions, not compilers. It may miss unusual
syntax and may flag patterns that only look risky. Always verify critical
findings against actual source code.
        """,
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to analyze (default: current directory)",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a Markdown summary instead of the JSON analysis",
    )
    parser.add_argument(
        "--security-report",
        metavar="FILE",
        help="Also write a Markdown security report to FILE",
    )
    parser.add_argument(
        "--templates",
        metavar="DIR",
        help="Directory with custom report templates (summary.md.j2, security.md.j2)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Threads for per-file analysis (default: from config)",
    )
    parser.add_argument(
        "--exclude",
        nargs="+",
        help="Additional patterns to exclude",
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        metavar="BYTES",
        help="Skip files larger than BYTES (default: from config)",
    )

    # Configuration options
    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--config",
        metavar="FILE",
        help="Load config from YAML file",
    )
    config_group.add_argument(
        "--init-config",
        action="store_true",
        help="Print a starter config file and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"repo_analyzer {__version__}",
    )

    return parser


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_exclude(args: argparse.Namespace, config: dict[str, Any]) -> tuple[list[str], set[str]]:
    """Combine default, CLI and config exclusions into (patterns, extensions)."""
    exclude = DEFAULT_EXCLUDE.copy()
    if args.exclude:
        exclude.extend(args.exclude)

    config_exclude = config.get("exclude", {})
    exclude.extend(config_exclude.get("directories") or [])
    exclude.extend(config_exclude.get("patterns") or [])

    # Normalize extensions to have a leading dot
    exclude_extensions: set[str] = set()
    for ext in config_exclude.get("extensions") or []:
        if not ext.startswith("."):
            ext = "." + ext
        exclude_extensions.add(ext.lower())

    return exclude, exclude_extensions


def write_output(text: str, output: str | None, verbose: bool) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        if verbose:
            print(f"Output written to: {output}", file=sys.stderr)
    else:
        print(text)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    # Handle --init-config: just output the template and exit
    if args.init_config:
        print(get_config_template())
        return

    # Load config if specified
    config = DEFAULT_CONFIG
    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file '{config_path}' does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            config = load_config(config_path)
        except yaml.YAMLError as e:
            print(f"Error: Invalid YAML in '{config_path}': {e}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if args.verbose:
            print(f"Loaded config: {config_path}", file=sys.stderr)

    root = Path(args.path).resolve()
    if not root.is_dir():
        print(f"Error: Path '{root}' does not exist or is not a directory", file=sys.stderr)
        sys.exit(1)

    exclude, exclude_extensions = build_exclude(args, config)
    max_file_bytes = args.max_file_size
    if max_file_bytes is None:
        max_file_bytes = config.get("exclude", {}).get("max_file_bytes")

    if args.verbose:
        print(f"Analyzing: {root}", file=sys.stderr)
    files = load_source_files(root, exclude, exclude_extensions, max_file_bytes)

    analysis = Analyzer(config, workers=args.workers).analyze(files)
    if args.verbose:
        print(
            f"  {analysis.stats.total_files} files, {len(analysis.functions)} functions, "
            f"{len(analysis.api_routes)} routes, security {analysis.security_score}/100, "
            f"quality {analysis.quality_score}/100",
            file=sys.stderr,
        )

    template_dir = Path(args.templates) if args.templates else None
    if args.security_report:
        with open(args.security_report, "w", encoding="utf-8") as f:
            f.write(render_security_report(analysis, template_dir))
        if args.verbose:
            print(f"Security report written to: {args.security_report}", file=sys.stderr)

    # Summary only mode
    if args.summary:
        write_output(render_summary(analysis, template_dir), args.output, args.verbose)
        return

    result = {
        "meta": {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "tool_version": __version__,
            "root": str(root),
        },
        **analysis.to_dict(),
    }
    write_output(json.dumps(result, indent=2, default=str), args.output, args.verbose)
