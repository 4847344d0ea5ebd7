"""
Record types produced by repo_analyzer.

Every record is a frozen dataclass. Sequences are stored as tuples and
mappings as read-only proxies so an analysis can be shared freely once built.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any


class Severity(str, Enum):
    """Severity of a security finding."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Most severe first; used for ordering summaries and reports.
SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)


def _to_plain(value: Any) -> Any:
    """Convert records, enums and containers into JSON-friendly values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_plain(v) for v in value]
    return value


def frozen_mapping(data: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    """Wrap a dict copy in a read-only proxy."""
    return MappingProxyType(dict(data or {}))


class Record:
    """Mixin giving every record a ``to_dict`` method."""

    def to_dict(self) -> dict[str, Any]:
        return _to_plain(self)


# =============================================================================
# Input and classification
# =============================================================================


@dataclass(frozen=True)
class SourceFile(Record):
    """One input file: repository-relative path, text content, optional language tag."""

    path: str
    content: str
    language: str | None = None


@dataclass(frozen=True)
class FileInfo(Record):
    """Classification of one input file."""

    path: str
    language: str
    structural: bool
    category: str
    lines: int
    size_bytes: int


# =============================================================================
# Code entities
# =============================================================================


@dataclass(frozen=True)
class ParameterRecord(Record):
    name: str
    type: str | None = None
    is_optional: bool = False
    default_value: str | None = None


@dataclass(frozen=True)
class PropertyRecord(Record):
    name: str
    type: str | None = None
    is_optional: bool = False
    is_private: bool = False


@dataclass(frozen=True)
class FunctionRecord(Record):
    """A function, arrow function or class method."""

    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    parameters: tuple[ParameterRecord, ...] = ()
    return_type: str | None = None
    is_async: bool = False
    is_exported: bool = False
    complexity: int = 1
    calls_to: tuple[str, ...] = ()
    called_by: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    methods: tuple[FunctionRecord, ...] = ()
    properties: tuple[PropertyRecord, ...] = ()
    extends: str | None = None
    implements: tuple[str, ...] = ()
    is_exported: bool = False
    is_abstract: bool = False


@dataclass(frozen=True)
class InterfaceRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    properties: tuple[PropertyRecord, ...] = ()
    extends: tuple[str, ...] = ()
    is_exported: bool = False


@dataclass(frozen=True)
class TypeRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    definition: str
    is_exported: bool = False


@dataclass(frozen=True)
class APIRouteRecord(Record):
    """An HTTP endpoint. ``is_protected`` is a heuristic over the enclosing file."""

    method: str
    path: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    parameters: tuple[ParameterRecord, ...] = ()
    is_protected: bool = False
    framework: str = "nextjs"
    middleware: tuple[str, ...] = ()


@dataclass(frozen=True)
class ServiceRecord(Record):
    name: str
    file_path: str
    methods: tuple[FunctionRecord, ...] = ()
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class ControllerRecord(Record):
    name: str
    file_path: str
    routes: tuple[APIRouteRecord, ...] = ()
    methods: tuple[FunctionRecord, ...] = ()


@dataclass(frozen=True)
class MiddlewareRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    applies_to: str | None = None


@dataclass(frozen=True)
class UtilityRecord(Record):
    name: str
    file_path: str
    functions: tuple[FunctionRecord, ...] = ()


@dataclass(frozen=True)
class ModelRecord(Record):
    """A persisted data model (Prisma schema block or ORM entity class)."""

    name: str
    file_path: str
    line_start: int
    fields: tuple[PropertyRecord, ...] = ()
    relations: tuple[str, ...] = ()
    table_name: str | None = None
    source: str = "prisma"


@dataclass(frozen=True)
class HookRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class ComponentRecord(Record):
    name: str
    file_path: str
    line_start: int
    line_end: int
    code: str
    props: tuple[PropertyRecord, ...] = ()
    hooks: tuple[str, ...] = ()
    is_client_component: bool = False


@dataclass(frozen=True)
class EnvVarRecord(Record):
    name: str
    used_in: tuple[str, ...] = ()
    declared_in: tuple[str, ...] = ()
    is_required: bool = True


@dataclass(frozen=True)
class ConfigFileRecord(Record):
    name: str
    file_path: str
    type: str
    purpose: str


@dataclass(frozen=True)
class DependencyRecord(Record):
    name: str
    version: str
    ecosystem: str
    source_file: str


# =============================================================================
# Findings and metrics
# =============================================================================


@dataclass(frozen=True)
class SecurityIssue(Record):
    """A risky practice (secrets, weak crypto, missing auth, debug output)."""

    rule_id: str
    type: str
    severity: Severity
    title: str
    message: str
    file_path: str
    line: int
    code: str
    recommendation: str
    cwe_id: str | None = None


@dataclass(frozen=True)
class Vulnerability(Record):
    """An exploitable flaw class (injection, XSS, traversal, redirects)."""

    rule_id: str
    name: str
    category: str
    severity: Severity
    description: str
    file_path: str
    line: int
    code: str
    recommendation: str
    cwe_id: str | None = None


@dataclass(frozen=True)
class SecuritySummary(Record):
    total: int = 0
    by_severity: Mapping[str, int] = field(default_factory=frozen_mapping)
    by_category: Mapping[str, int] = field(default_factory=frozen_mapping)
    affected_files: int = 0
    score: int = 100
    grade: str = "A"


@dataclass(frozen=True)
class LargestFile(Record):
    path: str
    lines: int


@dataclass(frozen=True)
class ComplexFunction(Record):
    name: str
    file_path: str
    line_start: int
    complexity: int


@dataclass(frozen=True)
class CodeStats(Record):
    total_files: int = 0
    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    total_functions: int = 0
    total_classes: int = 0
    total_components: int = 0
    total_routes: int = 0
    languages: Mapping[str, int] = field(default_factory=frozen_mapping)
    largest_files: tuple[LargestFile, ...] = ()
    most_complex_functions: tuple[ComplexFunction, ...] = ()


@dataclass(frozen=True)
class ExtractionError(Record):
    """A per-file failure that was caught and skipped."""

    file_path: str
    extractor: str
    message: str


@dataclass(frozen=True)
class ComprehensiveAnalysis(Record):
    """The complete, immutable result of one ``analyze()`` call."""

    files: tuple[FileInfo, ...] = ()
    functions: tuple[FunctionRecord, ...] = ()
    classes: tuple[ClassRecord, ...] = ()
    interfaces: tuple[InterfaceRecord, ...] = ()
    types: tuple[TypeRecord, ...] = ()
    api_routes: tuple[APIRouteRecord, ...] = ()
    services: tuple[ServiceRecord, ...] = ()
    controllers: tuple[ControllerRecord, ...] = ()
    middlewares: tuple[MiddlewareRecord, ...] = ()
    utilities: tuple[UtilityRecord, ...] = ()
    models: tuple[ModelRecord, ...] = ()
    hooks: tuple[HookRecord, ...] = ()
    components: tuple[ComponentRecord, ...] = ()
    env_vars: tuple[EnvVarRecord, ...] = ()
    config_files: tuple[ConfigFileRecord, ...] = ()
    dependencies: tuple[DependencyRecord, ...] = ()
    dev_dependencies: tuple[DependencyRecord, ...] = ()
    security_issues: tuple[SecurityIssue, ...] = ()
    vulnerabilities: tuple[Vulnerability, ...] = ()
    security_score: int = 100
    security_summary: SecuritySummary = field(default_factory=SecuritySummary)
    quality_score: int = 100
    patterns: tuple[str, ...] = ()
    stats: CodeStats = field(default_factory=CodeStats)
    errors: tuple[ExtractionError, ...] = ()
