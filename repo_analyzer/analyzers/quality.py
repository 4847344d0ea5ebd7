"""
Quality scorer for repo_analyzer.

Detects framework and architecture patterns by presence-testing fixed
markers across the file set, then turns complexity findings and detected
patterns into a 0-100 quality score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_analyzer.config import DEFAULT_CONFIG
from repo_analyzer.utils import anchored_path

if TYPE_CHECKING:
    from typing import Any, Iterable

    from repo_analyzer.analyzers.complexity import ComplexityReport
    from repo_analyzer.models import SourceFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternMarker:
    """
    A pattern is present when any file matches any of its markers.

    ``content`` markers are substrings of file text, ``paths`` are fragments
    of the anchored lower-cased path and ``suffixes`` are path endings.
    """

    name: str
    content: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()

    def matches(self, path: str, content: str) -> bool:
        if self.suffixes and path.endswith(self.suffixes):
            return True
        if any(fragment in path for fragment in self.paths):
            return True
        return any(marker in content for marker in self.content)


PATTERN_MARKERS: tuple[PatternMarker, ...] = (
    PatternMarker("React", content=("from 'react'", 'from "react"', "React.")),
    PatternMarker("Next.js", content=("from 'next", 'from "next'), paths=("/next.config.",)),
    PatternMarker("Prisma ORM", content=("@prisma/client", "PrismaClient"), suffixes=(".prisma",)),
    PatternMarker("Express.js", content=("from 'express'", 'from "express"', "require('express')", 'require("express")')),
    PatternMarker("TypeScript", suffixes=(".ts", ".tsx"), paths=("/tsconfig.json",)),
    PatternMarker("Tailwind CSS", content=("@tailwind", "tailwindcss"), paths=("/tailwind.config.",)),
    PatternMarker("Zod Validation", content=("from 'zod'", 'from "zod"', "require('zod')")),
    PatternMarker("Redux", content=("@reduxjs/toolkit", "from 'redux'", 'from "redux"', "createStore(")),
    PatternMarker("GraphQL", content=("from 'graphql", 'from "graphql', "@apollo/", "gql`"), suffixes=(".graphql", ".gql")),
    PatternMarker("Service Layer", paths=("/services/", ".service.")),
    PatternMarker("MVC Pattern", paths=("/controllers/", ".controller.")),
    PatternMarker("Middleware Pattern", paths=("middleware",)),
    PatternMarker("Utility Modules", paths=("/utils/", "/util/", "/helpers/", "/lib/")),
    PatternMarker("Test Coverage", paths=(".test.", ".spec.", "/tests/", "/__tests__/")),
)


def detect_patterns(
    files: Iterable[SourceFile],
    markers: tuple[PatternMarker, ...] = PATTERN_MARKERS,
) -> tuple[str, ...]:
    """
    Detect framework and architecture patterns.

    Args:
        files: Input files.
        markers: Pattern markers to test.

    Returns:
        Names of detected patterns in marker declaration order.
    """
    remaining = list(markers)
    found: set[str] = set()
    for source in files:
        if not remaining:
            break
        path = anchored_path(source.path).lower()
        for marker in list(remaining):
            if marker.matches(path, source.content):
                found.add(marker.name)
                remaining.remove(marker)
    return tuple(marker.name for marker in markers if marker.name in found)


class QualityScorer:
    """Score code quality from complexity findings and detected patterns."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        settings = (config or DEFAULT_CONFIG).get("quality", {})
        defaults = DEFAULT_CONFIG["quality"]
        self.average_penalties: list[tuple[float, int]] = sorted(
            (tuple(pair) for pair in settings.get("average_complexity_penalties", defaults["average_complexity_penalties"])),
            reverse=True,
        )
        self.long_function_penalty: int = settings.get("long_function_penalty", defaults["long_function_penalty"])
        self.deep_nesting_penalty: int = settings.get("deep_nesting_penalty", defaults["deep_nesting_penalty"])
        self.bonuses: dict[str, int] = settings.get("bonuses", defaults["bonuses"])

    def score(self, report: ComplexityReport, patterns: Iterable[str]) -> int:
        """
        Compute the quality score.

        Starts at 100. The first average-complexity threshold exceeded
        (highest first) applies its penalty; each long function and each
        deeply nested file costs a fixed amount; detected patterns with a
        configured bonus add to the score.

        Args:
            report: Complexity findings.
            patterns: Detected pattern names.

        Returns:
            Score clamped to [0, 100].
        """
        score = 100
        for threshold, penalty in self.average_penalties:
            if report.average_complexity > threshold:
                score -= penalty
                break
        score -= self.long_function_penalty * len(report.long_functions)
        score -= self.deep_nesting_penalty * len(report.deeply_nested_files)
        score += sum(self.bonuses.get(name, 0) for name in set(patterns))
        score = max(0, min(100, int(score)))
        logger.debug("Quality score: %d", score)
        return score
