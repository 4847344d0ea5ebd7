"""
Environment variables scanner for repo_analyzer.

Finds environment variable usage in code and declarations in .env files.
Note: Only extracts variable NAMES, never values.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_analyzer.models import EnvVarRecord

if TYPE_CHECKING:
    from typing import Iterable, Mapping

logger = logging.getLogger(__name__)


ENV_NAME = r"[A-Za-z_][A-Za-z0-9_]*"

USAGE_PATTERNS = (
    # process.env.VAR_NAME
    re.compile(rf"\bprocess\.env\.({ENV_NAME})"),
    # process.env["VAR_NAME"] or process.env['VAR_NAME']
    re.compile(rf"\bprocess\.env\[\s*[\"']({ENV_NAME})[\"']\s*\]"),
    # import.meta.env.VITE_VAR (Vite)
    re.compile(rf"\bimport\.meta\.env\.({ENV_NAME})"),
    # env("VAR") helpers (Laravel-style configs, t3-env)
    re.compile(rf"(?<![\w$.])env\(\s*[\"']({ENV_NAME})[\"']"),
    # os.environ["VAR"] or os.environ.get("VAR")
    re.compile(rf"\bos\.environ(?:\.get\s*\(|\s*\[)\s*[\"']({ENV_NAME})[\"']"),
    # os.getenv("VAR")
    re.compile(rf"\bos\.getenv\s*\(\s*[\"']({ENV_NAME})[\"']"),
)

# A default after the access makes the variable optional
FALLBACK = re.compile(r"^\s*(?:\)|\])?\s*(?:\|\||\?\?)")
PYTHON_DEFAULT = re.compile(r"^\s*,")

DOTENV_LINE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")


@dataclass(frozen=True)
class EnvUsage:
    """One read of an environment variable."""

    name: str
    file_path: str
    has_fallback: bool


class EnvScanner:
    """Scan file contents for environment variable usage (names only, no values)."""

    def scan_usage(self, path: str, content: str) -> list[EnvUsage]:
        """
        Find environment variable reads in one file.

        Args:
            path: File path, recorded in the result.
            content: File text.

        Returns:
            Usages in source order.
        """
        found: list[tuple[int, EnvUsage]] = []
        for pattern in USAGE_PATTERNS:
            for match in pattern.finditer(content):
                tail = content[match.end():match.end() + 40]
                has_fallback = bool(FALLBACK.match(tail))
                if not has_fallback and match.group(0).startswith(("os.environ.get", "os.getenv", "env(")):
                    has_fallback = bool(PYTHON_DEFAULT.match(tail.lstrip("\"'")))
                found.append((match.start(), EnvUsage(match.group(1), path, has_fallback)))
        found.sort(key=lambda item: item[0])
        return [usage for _, usage in found]

    def parse_dotenv(self, content: str) -> list[str]:
        """
        Parse .env file content for variable names (NOT values).

        Args:
            content: Text of a .env file.

        Returns:
            List of variable names.
        """
        env_vars: list[str] = []
        for line in content.splitlines():
            line = line.strip()
            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue
            match = DOTENV_LINE.match(line)
            if match:
                env_vars.append(match.group(1))
        return env_vars

    def merge(
        self,
        usages: Iterable[EnvUsage],
        declarations: Mapping[str, list[str]] | None = None,
    ) -> tuple[EnvVarRecord, ...]:
        """
        Combine usages and .env declarations into one record per name.

        A variable is required unless every usage supplies a fallback.
        Variables only declared in .env files are reported as not required.

        Args:
            usages: Usages from all files.
            declarations: Mapping of .env file path to declared names.

        Returns:
            EnvVarRecords sorted by name; file lists are sorted too.
        """
        used_in: dict[str, set[str]] = {}
        required: dict[str, bool] = {}
        for usage in usages:
            used_in.setdefault(usage.name, set()).add(usage.file_path)
            required[usage.name] = required.get(usage.name, False) or not usage.has_fallback

        declared_in: dict[str, set[str]] = {}
        for path, names in (declarations or {}).items():
            for name in names:
                declared_in.setdefault(name, set()).add(path)

        records = []
        for name in sorted(set(used_in) | set(declared_in)):
            records.append(EnvVarRecord(
                name=name,
                used_in=tuple(sorted(used_in.get(name, ()))),
                declared_in=tuple(sorted(declared_in.get(name, ()))),
                is_required=required.get(name, False),
            ))
        logger.debug("Found %d environment variables", len(records))
        return tuple(records)
