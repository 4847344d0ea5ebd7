"""
Statistics aggregator for repo_analyzer.

Line counts (code / comment / blank), per-language file counts, the largest
files and the most complex functions.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repo_analyzer.models import CodeStats, ComplexFunction, LargestFile, frozen_mapping
from repo_analyzer.utils import split_lines

if TYPE_CHECKING:
    from typing import Iterable, Sequence

    from repo_analyzer.models import FileInfo, FunctionRecord, SourceFile

logger = logging.getLogger(__name__)


C_STYLE_COMMENTS = ("//", "/*", "*")
HASH_COMMENTS = ("#",)

# Languages whose line comments start with "#"
HASH_LANGUAGES = frozenset({"py", "sh", "yaml", "toml", "rb", "dockerfile", "dotenv"})


def comment_prefixes(language: str) -> tuple[str, ...]:
    """Line-comment prefixes for a language family."""
    if language in HASH_LANGUAGES:
        return HASH_COMMENTS
    return C_STYLE_COMMENTS


def count_lines(content: str, language: str) -> tuple[int, int, int, int]:
    """
    Count lines of one file.

    Returns:
        (total, code, comment, blank)
    """
    prefixes = comment_prefixes(language)
    code = comment = blank = 0
    lines = split_lines(content)
    for line in lines:
        stripped = line.strip()
        if not stripped:
            blank += 1
        elif stripped.startswith(prefixes):
            comment += 1
        else:
            code += 1
    return len(lines), code, comment, blank


class StatsAggregator:
    """Aggregate code statistics over classified files and extracted entities."""

    def __init__(self, top_n: int = 10) -> None:
        self.top_n = top_n

    def aggregate(
        self,
        files: Iterable[tuple[SourceFile, FileInfo]],
        functions: Sequence[FunctionRecord] = (),
        total_classes: int = 0,
        total_components: int = 0,
        total_routes: int = 0,
    ) -> CodeStats:
        """
        Build CodeStats.

        Every ordering has a full tie-break, so the result does not depend on
        the input order of files.

        Args:
            files: (source, classification) pairs.
            functions: Top-level functions.
            total_classes: Number of classes.
            total_components: Number of UI components.
            total_routes: Number of API routes.

        Returns:
            CodeStats; all zeros for empty input.
        """
        total = code = comment = blank = 0
        languages: dict[str, int] = {}
        sizes: list[LargestFile] = []

        for source, info in files:
            lines, code_lines, comment_lines, blank_lines = count_lines(source.content, info.language)
            total += lines
            code += code_lines
            comment += comment_lines
            blank += blank_lines
            languages[info.language] = languages.get(info.language, 0) + 1
            sizes.append(LargestFile(path=info.path, lines=lines))

        largest = sorted(sizes, key=lambda f: (-f.lines, f.path))[:self.top_n]
        complex_functions = sorted(
            functions,
            key=lambda f: (-f.complexity, f.file_path, f.line_start, f.name),
        )[:self.top_n]

        return CodeStats(
            total_files=len(sizes),
            total_lines=total,
            code_lines=code,
            comment_lines=comment,
            blank_lines=blank,
            total_functions=len(functions),
            total_classes=total_classes,
            total_components=total_components,
            total_routes=total_routes,
            languages=frozen_mapping(dict(sorted(languages.items()))),
            largest_files=tuple(largest),
            most_complex_functions=tuple(
                ComplexFunction(
                    name=f.name,
                    file_path=f.file_path,
                    line_start=f.line_start,
                    complexity=f.complexity,
                )
                for f in complex_functions
            ),
        )
