"""
File classifier for repo_analyzer.

Tags every input file with a short language identifier and decides whether
structural extraction applies. Classification never raises: anything that
cannot be recognized becomes "unknown".
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from repo_analyzer.config import DEFAULT_CONFIG
from repo_analyzer.models import FileInfo, SourceFile
from repo_analyzer.utils import categorize_file, split_lines

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


EXTENSION_LANGUAGES = {
    ".ts": "ts",
    ".mts": "ts",
    ".cts": "ts",
    ".tsx": "tsx",
    ".js": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".jsx": "jsx",
    ".py": "py",
    ".pyi": "py",
    ".prisma": "prisma",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".md": "md",
    ".mdx": "mdx",
    ".css": "css",
    ".scss": "scss",
    ".sass": "scss",
    ".html": "html",
    ".htm": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".graphql": "graphql",
    ".gql": "graphql",
    ".sql": "sql",
    ".sh": "sh",
    ".bash": "sh",
    ".go": "go",
    ".rs": "rs",
    ".java": "java",
    ".kt": "kt",
    ".rb": "rb",
    ".php": "php",
    ".cs": "cs",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
}

FILENAME_LANGUAGES = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
    "procfile": "procfile",
}

# Caller-supplied language names mapped to the short identifiers used here
LANGUAGE_ALIASES = {
    "typescript": "ts",
    "typescriptreact": "tsx",
    "javascript": "js",
    "javascriptreact": "jsx",
    "node": "js",
    "python": "py",
    "python3": "py",
    "markdown": "md",
    "shell": "sh",
    "bash": "sh",
    "golang": "go",
    "rust": "rs",
    "ruby": "rb",
    "csharp": "cs",
    "c++": "cpp",
    "kotlin": "kt",
}

SHEBANG_PATTERN = re.compile(r"^#!\s*(?:/usr/bin/env\s+)?\S*?(node|python3?|bash|sh|deno|bun)\b")

SHEBANG_LANGUAGES = {
    "node": "js",
    "deno": "ts",
    "bun": "ts",
    "python": "py",
    "python3": "py",
    "bash": "sh",
    "sh": "sh",
}


class FileClassifier:
    """Assign language, structural flag and category to source files."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        config = config or DEFAULT_CONFIG
        languages = config.get("languages", {})
        self.structural = frozenset(languages.get("structural", ["ts", "tsx", "js", "jsx"]))
        self.extensions = {**EXTENSION_LANGUAGES}
        for ext, language in (languages.get("extensions") or {}).items():
            ext = ext.lower()
            self.extensions[ext if ext.startswith(".") else "." + ext] = language
        self.categories: dict[str, str] = config.get("categories", {})

    def classify(self, source: SourceFile) -> FileInfo:
        """
        Classify one file.

        Args:
            source: The input file.

        Returns:
            FileInfo with language, structural flag, category and size.
        """
        language = self.detect_language(source.path, source.content, source.language)
        content = source.content or ""
        return FileInfo(
            path=source.path,
            language=language,
            structural=language in self.structural,
            category=categorize_file(source.path, self.categories),
            lines=len(split_lines(content)),
            size_bytes=len(content.encode("utf-8", errors="replace")),
        )

    def detect_language(self, path: str, content: str | None, hint: str | None = None) -> str:
        """Resolve the language from a caller hint, the file name, or a shebang line."""
        if hint:
            normalized = hint.strip().lower()
            normalized = LANGUAGE_ALIASES.get(normalized, normalized)
            if normalized:
                return normalized

        name = PurePosixPath(path.replace("\\", "/")).name
        lowered = name.lower()
        suffix = PurePosixPath(lowered).suffix
        if suffix in self.extensions:
            return self.extensions[suffix]
        if lowered.startswith(".env"):
            return "dotenv"
        if lowered.startswith("dockerfile"):
            return "dockerfile"
        if lowered in FILENAME_LANGUAGES:
            return FILENAME_LANGUAGES[lowered]

        if content and content.startswith("#!"):
            match = SHEBANG_PATTERN.match(content)
            if match:
                return SHEBANG_LANGUAGES.get(match.group(1), "unknown")

        return "unknown"
