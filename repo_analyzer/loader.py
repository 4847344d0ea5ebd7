"""
Disk loader for repo_analyzer.

Walks a directory and materializes SourceFile values for the analyzer. The
analysis engine itself never touches the file system; only the CLI uses this.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from repo_analyzer.config import DEFAULT_EXCLUDE
from repo_analyzer.models import SourceFile
from repo_analyzer.utils import should_exclude

if TYPE_CHECKING:
    from typing import Iterator

logger = logging.getLogger(__name__)

BINARY_SNIFF_BYTES = 8192


def walk_files(root: Path, exclude: list[str]) -> Iterator[Path]:
    """Walk directory and yield files that are not excluded, in sorted order."""
    for current, dirs, files in os.walk(root):
        # Filter out excluded directories
        dirs[:] = sorted(
            d for d in dirs
            if not should_exclude(Path(current) / d, exclude)
        )
        for filename in sorted(files):
            filepath = Path(current) / filename
            if not should_exclude(filepath, exclude):
                yield filepath


def is_binary(data: bytes) -> bool:
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def load_source_files(
    root: Path,
    exclude: list[str] | None = None,
    exclude_extensions: set[str] | None = None,
    max_file_bytes: int | None = 1_000_000,
) -> list[SourceFile]:
    """
    Load text files under a directory.

    Args:
        root: Root directory to scan.
        exclude: Patterns to exclude (directories, file patterns).
        exclude_extensions: File extensions to skip (e.g. {".md"}).
        max_file_bytes: Files larger than this are skipped; None for no cap.

    Returns:
        SourceFiles with paths relative to root (forward slashes). Binary
        and unreadable files are skipped.
    """
    root = root.resolve()
    exclude = DEFAULT_EXCLUDE.copy() if exclude is None else exclude
    exclude_extensions = {ext.lower() for ext in (exclude_extensions or set())}

    files: list[SourceFile] = []
    for filepath in walk_files(root, exclude):
        rel_path = filepath.relative_to(root).as_posix()
        if exclude_extensions and filepath.suffix.lower() in exclude_extensions:
            continue
        try:
            if max_file_bytes is not None and filepath.stat().st_size > max_file_bytes:
                logger.debug("Skipping large file %s", rel_path)
                continue
            data = filepath.read_bytes()
        except OSError as e:
            logger.warning("Could not read %s: %s", rel_path, e)
            continue
        if is_binary(data):
            logger.debug("Skipping binary file %s", rel_path)
            continue
        files.append(SourceFile(path=rel_path, content=data.decode("utf-8", errors="replace")))

    logger.debug("Loaded %d files from %s", len(files), root)
    return files
