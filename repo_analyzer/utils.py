"""
Utility functions for repo_analyzer.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


def categorize_file(filepath: str, categories: dict[str, str]) -> str:
    """
    Categorize a file based on path patterns.

    Args:
        filepath: Relative path to the file.
        categories: Dict mapping regex patterns to category names.

    Returns:
        Category name, or "other" if no pattern matches.
    """
    target = anchored_path(filepath)
    for pattern, category in categories.items():
        try:
            if re.match(pattern, target):
                return category
        except re.error as e:
            logger.warning("Invalid category pattern %r: %s", pattern, e)
    return "other"


def should_exclude(path: Path, exclude_patterns: list[str]) -> bool:
    """
    Check if path should be excluded based on patterns.

    Args:
        path: Path to check.
        exclude_patterns: List of patterns. Patterns starting with '*'
            match suffixes, others match directory or file names.

    Returns:
        True if the path should be excluded.
    """
    path_str = path.as_posix()
    parts = path.parts
    for pattern in exclude_patterns:
        if pattern.startswith("*"):
            # Suffix match (e.g., "*.pyc"); inner wildcards match a substring
            suffix = pattern[1:]
            if "*" in suffix:
                head, _, tail = suffix.partition("*")
                if head in path.name and path.name.endswith(tail):
                    return True
            elif path_str.endswith(suffix):
                return True
        elif pattern in parts:
            return True
    return False


def anchored_path(filepath: str) -> str:
    """
    Normalize a relative path to forward slashes with a leading "/".

    Path conventions like "/api/" or "/tests/" then also match at the
    repository root.
    """
    normalized = filepath.replace("\\", "/")
    return normalized if normalized.startswith("/") else "/" + normalized


def file_stem(filepath: str) -> str:
    """Return the file name without its last extension ("user.service.ts" -> "user.service")."""
    return PurePosixPath(filepath.replace("\\", "/")).stem


def split_lines(content: str) -> list[str]:
    """
    Split text on line feeds only, the same breaks LineIndex counts.

    str.splitlines() also breaks on U+2028, form feeds and other separators
    that can sit inside string literals, which would shift line numbers.
    A trailing newline does not start another line; carriage returns are dropped.
    """
    if not content:
        return []
    lines = [line.rstrip("\r") for line in content.split("\n")]
    if lines[-1] == "":
        lines.pop()
    return lines


def truncate_string(text: str | None, max_length: int = 200) -> str | None:
    """
    Truncate a string to a maximum length.

    Args:
        text: String to truncate.
        max_length: Maximum length.

    Returns:
        First line of the text, truncated with "..." if needed, or None if empty.
    """
    if not text:
        return None
    first_line = text.split("\n")[0].strip()
    if len(first_line) > max_length:
        return first_line[:max_length] + "..."
    return first_line
