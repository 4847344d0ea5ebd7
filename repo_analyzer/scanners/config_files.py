"""
Configuration file scanner for repo_analyzer.

Recognizes well-known tooling config files by name and labels their purpose.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repo_analyzer.models import ConfigFileRecord

if TYPE_CHECKING:
    from typing import Iterable

    from repo_analyzer.models import FileInfo

logger = logging.getLogger(__name__)


# (file name fragment, purpose). First match wins, so specific names go first.
CONFIG_PATTERNS: tuple[tuple[str, str], ...] = (
    ("package.json", "Package dependencies and scripts"),
    ("tsconfig", "TypeScript configuration"),
    ("jsconfig", "JavaScript project configuration"),
    ("next.config", "Next.js configuration"),
    ("vite.config", "Vite build configuration"),
    ("tailwind.config", "Tailwind CSS styling"),
    ("postcss", "PostCSS processing"),
    ("eslint", "Code linting rules"),
    ("prettier", "Code formatting"),
    ("jest.config", "Test runner configuration"),
    ("vitest.config", "Test runner configuration"),
    ("schema.prisma", "Database schema"),
    ("pyproject.toml", "Python project metadata"),
    ("docker-compose", "Container orchestration"),
    ("dockerfile", "Container configuration"),
    ("docker", "Container configuration"),
    (".env", "Environment variables"),
)

TYPE_BY_SUFFIX: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".json",), "json"),
    ((".yaml", ".yml"), "yaml"),
    ((".toml",), "toml"),
    ((".js", ".cjs", ".mjs"), "js"),
    ((".ts", ".cts", ".mts"), "ts"),
)


def config_file_type(path: str) -> str:
    """File format of a config file from its suffix."""
    lowered = path.lower()
    for suffixes, kind in TYPE_BY_SUFFIX:
        if lowered.endswith(suffixes):
            return kind
    return "other"


class ConfigFileScanner:
    """Identify configuration files among the analyzed files."""

    def __init__(self, patterns: tuple[tuple[str, str], ...] = CONFIG_PATTERNS) -> None:
        self.patterns = patterns

    def scan(self, files: Iterable[FileInfo]) -> tuple[ConfigFileRecord, ...]:
        """
        Scan classified files for configuration files.

        Args:
            files: Classified files in input order.

        Returns:
            ConfigFileRecords in input order, at most one per file.
        """
        configs: list[ConfigFileRecord] = []
        for info in files:
            name = info.path.replace("\\", "/").rsplit("/", 1)[-1]
            lowered = name.lower()
            for fragment, purpose in self.patterns:
                if fragment in lowered:
                    configs.append(ConfigFileRecord(
                        name=name,
                        file_path=info.path,
                        type=config_file_type(name),
                        purpose=purpose,
                    ))
                    break
        logger.debug("Found %d config files", len(configs))
        return tuple(configs)
