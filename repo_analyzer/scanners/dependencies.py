"""
Dependencies scanner for repo_analyzer.

Reads package.json, requirements*.txt and pyproject.toml among the analyzed
files for declared dependencies. A malformed manifest is logged and
contributes nothing; it never fails the analysis.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_analyzer.models import DependencyRecord

if TYPE_CHECKING:
    from typing import Any, Iterable

    from repo_analyzer.models import SourceFile

logger = logging.getLogger(__name__)


REQUIREMENT = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)(?:\[[^\]]*\])?\s*(.*)$")
DEV_REQUIREMENTS = re.compile(r"(?:dev|test|lint|docs|ci)", re.IGNORECASE)


@dataclass(frozen=True)
class DependencyScan:
    """Runtime and development dependencies."""

    dependencies: tuple[DependencyRecord, ...] = ()
    dev_dependencies: tuple[DependencyRecord, ...] = ()


def _depth(path: str) -> int:
    return path.replace("\\", "/").strip("/").count("/")


def _file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def _root_most(files: list[SourceFile]) -> SourceFile | None:
    """The manifest closest to the repository root, ties broken by path."""
    if not files:
        return None
    return min(files, key=lambda f: (_depth(f.path), f.path))


def _split_requirement(spec: str) -> tuple[str, str] | None:
    """Split "pkg[extra]>=1.0; python_version<'3.12'" into name and version."""
    spec = spec.split(";", 1)[0].split("#", 1)[0].strip()
    match = REQUIREMENT.match(spec)
    if not match:
        return None
    return match.group(1).lower(), match.group(2).strip() or "*"


class DependenciesScanner:
    """Scan for project dependencies from package.json, requirements.txt, pyproject.toml."""

    def scan(self, files: Iterable[SourceFile]) -> DependencyScan:
        """
        Scan manifests among the given files.

        Only the root-most package.json and pyproject.toml are read, so
        nested fixtures and workspace packages do not leak into the result.
        Requirements files at the shallowest depth are all read.

        Args:
            files: Input files.

        Returns:
            DependencyScan with runtime and development dependencies.
        """
        package_jsons: list[SourceFile] = []
        pyprojects: list[SourceFile] = []
        requirements: list[SourceFile] = []
        for source in files:
            name = _file_name(source.path)
            if name == "package.json":
                package_jsons.append(source)
            elif name == "pyproject.toml":
                pyprojects.append(source)
            elif name.startswith("requirements") and name.endswith(".txt"):
                requirements.append(source)

        runtime: list[DependencyRecord] = []
        dev: list[DependencyRecord] = []

        package_json = _root_most(package_jsons)
        if package_json is not None:
            deps, dev_deps = self._parse_package_json(package_json)
            runtime.extend(deps)
            dev.extend(dev_deps)

        pyproject = _root_most(pyprojects)
        if pyproject is not None:
            deps, dev_deps = self._parse_pyproject(pyproject)
            runtime.extend(deps)
            dev.extend(dev_deps)

        if requirements:
            shallowest = min(_depth(f.path) for f in requirements)
            for req_file in sorted(requirements, key=lambda f: f.path):
                if _depth(req_file.path) != shallowest:
                    continue
                deps = self._parse_requirements(req_file)
                if DEV_REQUIREMENTS.search(_file_name(req_file.path)):
                    dev.extend(deps)
                else:
                    runtime.extend(deps)

        return DependencyScan(tuple(_dedupe(runtime)), tuple(_dedupe(dev)))

    def _parse_package_json(self, source: SourceFile) -> tuple[list[DependencyRecord], list[DependencyRecord]]:
        """
        Parse package.json for dependencies.

        Returns:
            (dependencies, devDependencies); both empty when the file is malformed.
        """
        try:
            data = json.loads(source.content)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError is a ValueError; RecursionError on pathological nesting
            logger.warning("Could not parse %s: %s", source.path, e)
            return [], []
        if not isinstance(data, dict):
            logger.warning("Could not parse %s: top level is not an object", source.path)
            return [], []

        def records(section: str) -> list[DependencyRecord]:
            entries = data.get(section) or {}
            if not isinstance(entries, dict):
                logger.warning("Ignoring malformed %s in %s", section, source.path)
                return []
            return [
                DependencyRecord(name=name, version=str(version), ecosystem="npm", source_file=source.path)
                for name, version in entries.items()
            ]

        return records("dependencies"), records("devDependencies")

    def _parse_requirements(self, source: SourceFile) -> list[DependencyRecord]:
        deps: list[DependencyRecord] = []
        for line in source.content.splitlines():
            line = line.strip()
            # Skip comments, empty lines, and options like -r / --index-url
            if not line or line.startswith(("#", "-")):
                continue
            parsed = _split_requirement(line)
            if parsed:
                name, version = parsed
                deps.append(DependencyRecord(name=name, version=version, ecosystem="pypi", source_file=source.path))
        return deps

    def _parse_pyproject(self, source: SourceFile) -> tuple[list[DependencyRecord], list[DependencyRecord]]:
        """
        Parse pyproject.toml (PEP 621 and Poetry layouts).

        Optional dependency groups and Poetry groups count as development
        dependencies. Self-references such as "pkg[extra]" are skipped.
        Sections of the wrong shape are logged and ignored.
        """
        try:
            data = tomllib.loads(source.content)
        except (ValueError, RecursionError) as e:
            # TOMLDecodeError is a ValueError
            logger.warning("Could not parse %s: %s", source.path, e)
            return [], []

        def table(parent: dict[str, Any], key: str, where: str) -> dict[str, Any]:
            value = parent.get(key, {})
            if not isinstance(value, dict):
                logger.warning("Ignoring malformed %s in %s", where, source.path)
                return {}
            return value

        def array(parent: dict[str, Any], key: str, where: str) -> list[Any]:
            value = parent.get(key, [])
            if not isinstance(value, list):
                logger.warning("Ignoring malformed %s in %s", where, source.path)
                return []
            return value

        project = table(data, "project", "[project]")
        project_name = str(project.get("name", "")).lower()
        runtime: list[DependencyRecord] = []
        dev: list[DependencyRecord] = []

        def add(target: list[DependencyRecord], name: str, version: str) -> None:
            if name.lower() in (project_name, "python"):
                return
            target.append(DependencyRecord(name=name.lower(), version=version, ecosystem="pypi", source_file=source.path))

        # [project.dependencies]
        for dep in array(project, "dependencies", "project.dependencies"):
            parsed = _split_requirement(str(dep))
            if parsed:
                add(runtime, *parsed)

        # [project.optional-dependencies]
        optional = table(project, "optional-dependencies", "project.optional-dependencies")
        for group_name in optional:
            for dep in array(optional, group_name, f"project.optional-dependencies.{group_name}"):
                parsed = _split_requirement(str(dep))
                if parsed:
                    add(dev, *parsed)

        poetry = table(table(data, "tool", "[tool]"), "poetry", "[tool.poetry]")
        # [tool.poetry.dependencies]
        for name, value in table(poetry, "dependencies", "tool.poetry.dependencies").items():
            add(runtime, name, _poetry_version(value))
        # [tool.poetry.dev-dependencies] and [tool.poetry.group.*.dependencies]
        for name, value in table(poetry, "dev-dependencies", "tool.poetry.dev-dependencies").items():
            add(dev, name, _poetry_version(value))
        groups = table(poetry, "group", "tool.poetry.group")
        for group_name in groups:
            group = table(groups, group_name, f"tool.poetry.group.{group_name}")
            for name, value in table(group, "dependencies", f"tool.poetry.group.{group_name}.dependencies").items():
                add(dev, name, _poetry_version(value))

        return runtime, dev


def _poetry_version(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("version", "*"))
    return str(value)


def _dedupe(records: list[DependencyRecord]) -> list[DependencyRecord]:
    """Keep the first record per (ecosystem, name)."""
    seen: dict[tuple[str, str], DependencyRecord] = {}
    for record in records:
        seen.setdefault((record.ecosystem, record.name), record)
    return list(seen.values())
