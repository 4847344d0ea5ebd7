"""
Complexity analyzer for repo_analyzer.

Approximates cyclomatic complexity by counting decision-point tokens and
flags long functions and deeply indented files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_analyzer.utils import split_lines

if TYPE_CHECKING:
    from typing import Any, Iterable

    from repo_analyzer.models import FileInfo, FunctionRecord, SourceFile

logger = logging.getLogger(__name__)


# Each occurrence adds one decision point. The ternary pattern skips
# optional chaining (?.), nullish coalescing (??) and optional markers (?:).
DECISION_PATTERNS = (
    re.compile(r"\bif\b"),
    re.compile(r"\belse\b"),
    re.compile(r"\bfor\b"),
    re.compile(r"\bwhile\b"),
    re.compile(r"\bcase\b"),
    re.compile(r"\bcatch\b"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    re.compile(r"(?<!\?)\?(?![?.:])"),
)


def calculate_complexity(code: str) -> int:
    """
    Calculate approximate cyclomatic complexity of a code snippet.

    Args:
        code: Function or method body.

    Returns:
        1 plus the number of decision-point tokens; 1 for empty input.
    """
    if not code:
        return 1
    return 1 + sum(len(pattern.findall(code)) for pattern in DECISION_PATTERNS)


def max_indentation(content: str, tab_width: int = 4) -> int:
    """Widest leading whitespace over the non-blank lines of a file."""
    deepest = 0
    for line in split_lines(content):
        if not line.strip():
            continue
        expanded = line.expandtabs(tab_width)
        deepest = max(deepest, len(expanded) - len(expanded.lstrip()))
    return deepest


@dataclass(frozen=True)
class ComplexityReport:
    average_complexity: float
    long_functions: tuple[str, ...]
    deeply_nested_files: tuple[str, ...]


class ComplexityAnalyzer:
    """Flag long functions and deeply nested files."""

    def __init__(
        self,
        long_function_lines: int = 100,
        nesting_indent: int = 24,
        tab_width: int = 4,
    ):
        """
        Initialize the complexity analyzer.

        Args:
            long_function_lines: A function whose line span exceeds this is long.
            nesting_indent: A file whose indentation exceeds this is deeply nested.
            tab_width: Columns per tab when measuring indentation.
        """
        self.long_function_lines = long_function_lines
        self.nesting_indent = nesting_indent
        self.tab_width = tab_width

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ComplexityAnalyzer":
        settings = config.get("complexity", {})
        return cls(
            long_function_lines=settings.get("long_function_lines", 100),
            nesting_indent=settings.get("nesting_indent", 24),
            tab_width=settings.get("tab_width", 4),
        )

    def analyze(
        self,
        functions: Iterable[FunctionRecord],
        files: Iterable[tuple[SourceFile, FileInfo]],
    ) -> ComplexityReport:
        """
        Analyze functions and structural files.

        Args:
            functions: Extracted top-level functions.
            files: (source, classification) pairs.

        Returns:
            ComplexityReport with the average and the flagged items.
        """
        functions = list(functions)
        average = (
            sum(f.complexity for f in functions) / len(functions) if functions else 0.0
        )
        long_functions = tuple(
            f"{f.file_path}:{f.name}"
            for f in functions
            if f.line_end - f.line_start + 1 > self.long_function_lines
        )
        nested = tuple(
            info.path
            for source, info in files
            if info.structural
            and max_indentation(source.content, self.tab_width) > self.nesting_indent
        )
        if long_functions or nested:
            logger.debug(
                "Complexity: %d long functions, %d deeply nested files",
                len(long_functions),
                len(nested),
            )
        return ComplexityReport(
            average_complexity=average,
            long_functions=long_functions,
            deeply_nested_files=nested,
        )
