"""
Analysis assembler for repo_analyzer.

Coordinates the classifier, entity extractors, scanners and analyzers to
produce one immutable ComprehensiveAnalysis. This is the only place that
knows the order components run in; it does no parsing itself.
"""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from repo_analyzer.analyzers import (
    AuthDetector,
    ComplexityAnalyzer,
    QualityScorer,
    SecurityScanner,
    StatsAggregator,
    detect_patterns,
)
from repo_analyzer.classifier import FileClassifier
from repo_analyzer.config import merge_config
from repo_analyzer.extractors import ExtractorRegistry, FileContext
from repo_analyzer.models import ComprehensiveAnalysis, ExtractionError
from repo_analyzer.scanners import ConfigFileScanner, DependenciesScanner, DependencyScan, EnvScanner

if TYPE_CHECKING:
    from typing import Any, Iterable

    from repo_analyzer.analyzers.security import Finding
    from repo_analyzer.extractors import BaseExtractor
    from repo_analyzer.models import FileInfo, FunctionRecord, SourceFile
    from repo_analyzer.scanners import EnvUsage

logger = logging.getLogger(__name__)


# ComprehensiveAnalysis field for each extractor kind
KIND_FIELDS = {
    "functions": "functions",
    "classes": "classes",
    "interfaces": "interfaces",
    "types": "types",
    "routes": "api_routes",
    "services": "services",
    "controllers": "controllers",
    "middlewares": "middlewares",
    "utilities": "utilities",
    "models": "models",
    "hooks": "hooks",
    "components": "components",
}


@dataclass
class FileResult:
    """Everything one per-file task produces. Owned by that task alone."""

    records: dict[str, list[Any]] = field(default_factory=dict)
    env_usages: list[EnvUsage] = field(default_factory=list)
    dotenv_names: list[str] | None = None
    findings: list[Finding] = field(default_factory=list)
    errors: list[ExtractionError] = field(default_factory=list)


def cross_reference(functions: Iterable[FunctionRecord]) -> tuple[FunctionRecord, ...]:
    """
    Fill ``called_by`` from the ``calls_to`` lists of the other functions.

    Matching is by name only, since there is no cross-file resolution.

    Returns:
        New records in the same order; callers are sorted and exclude the
        function itself.
    """
    functions = list(functions)
    callers: dict[str, set[str]] = {}
    for func in functions:
        for callee in func.calls_to:
            if callee != func.name:
                callers.setdefault(callee, set()).add(func.name)
    return tuple(
        dataclasses.replace(func, called_by=tuple(sorted(callers.get(func.name, ()))))
        for func in functions
    )


class Analyzer:
    """
    Static analysis engine entry point.

    Usage:
        analyzer = Analyzer()
        analysis = analyzer.analyze([SourceFile("src/app.ts", text)])
        print(analysis.security_score)

    An Analyzer holds configuration only. Every ``analyze`` call builds its
    own extractors and accumulators, so calls never share state.
    """

    def __init__(self, config: dict[str, Any] | None = None, workers: int | None = None):
        """
        Initialize the analyzer.

        Args:
            config: Configuration dictionary (merged with defaults).
            workers: Thread count for per-file work; overrides config["workers"].
        """
        self.config = merge_config(config)
        self.workers = max(1, workers if workers is not None else int(self.config.get("workers", 1)))

        self.classifier = FileClassifier(self.config)
        self.auth = AuthDetector().configure(self.config)
        self.env_scanner = EnvScanner()
        self.env_languages = frozenset(self.config.get("env", {}).get("languages", []))
        self.deps_scanner = DependenciesScanner()
        self.config_scanner = ConfigFileScanner()
        self.security_scanner = SecurityScanner(self.config, auth=self.auth)
        self.complexity_analyzer = ComplexityAnalyzer.from_config(self.config)
        self.quality_scorer = QualityScorer(self.config)
        self.stats = StatsAggregator(top_n=self.config.get("stats", {}).get("top_n", 10))

    def analyze(self, files: Iterable[SourceFile]) -> ComprehensiveAnalysis:
        """
        Analyze a list of files.

        Never raises for content problems: failures inside one file and one
        extractor are logged and recorded in ``errors``.

        Args:
            files: Input files.

        Returns:
            Complete, immutable analysis.
        """
        sources = list(files)
        infos = [self.classifier.classify(source) for source in sources]
        pairs = list(zip(sources, infos))
        extractors = ExtractorRegistry.create_all(self.config)
        logger.debug("Analyzing %d files with %d workers", len(pairs), self.workers)

        def task(pair: tuple[SourceFile, FileInfo]) -> FileResult:
            return self._analyze_file(pair[0], pair[1], extractors)

        if self.workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                # map() yields in input order, which keeps the output deterministic
                results = list(executor.map(task, pairs))
        else:
            results = [task(pair) for pair in pairs]

        # Merge per-file results by concatenation in input order
        merged: dict[str, list[Any]] = {kind: [] for kind in KIND_FIELDS}
        usages: list[EnvUsage] = []
        declarations: dict[str, list[str]] = {}
        findings: list[Finding] = []
        errors: list[ExtractionError] = []
        for (source, _), result in zip(pairs, results):
            for kind, records in result.records.items():
                merged.setdefault(kind, []).extend(records)
            usages.extend(result.env_usages)
            if result.dotenv_names is not None:
                declarations[source.path] = result.dotenv_names
            findings.extend(result.findings)
            errors.extend(result.errors)

        functions = tuple(merged["functions"])
        if self.config.get("cross_reference", True):
            functions = cross_reference(functions)

        try:
            deps = self.deps_scanner.scan(sources)
        except Exception as e:
            logger.warning("Dependency scan failed: %s", e)
            deps = DependencyScan()
            errors.append(ExtractionError(file_path="", extractor="dependencies", message=str(e)))
        security = self.security_scanner.build_report(findings)
        complexity = self.complexity_analyzer.analyze(functions, pairs)
        patterns = detect_patterns(sources)
        quality = self.quality_scorer.score(complexity, patterns)
        stats = self.stats.aggregate(
            pairs,
            functions,
            total_classes=len(merged["classes"]),
            total_components=len(merged["components"]),
            total_routes=len(merged["routes"]),
        )

        entity_fields = {KIND_FIELDS[kind]: tuple(records) for kind, records in merged.items() if kind in KIND_FIELDS}
        entity_fields["functions"] = functions
        return ComprehensiveAnalysis(
            files=tuple(infos),
            **entity_fields,
            env_vars=self.env_scanner.merge(usages, declarations),
            config_files=self.config_scanner.scan(infos),
            dependencies=deps.dependencies,
            dev_dependencies=deps.dev_dependencies,
            security_issues=security.issues,
            vulnerabilities=security.vulnerabilities,
            security_score=security.score,
            security_summary=security.summary,
            quality_score=quality,
            patterns=patterns,
            stats=stats,
            errors=tuple(errors),
        )

    def _analyze_file(
        self,
        source: SourceFile,
        info: FileInfo,
        extractors: dict[str, BaseExtractor],
    ) -> FileResult:
        """Run every per-file component on one file, isolating failures."""
        result = FileResult()
        content = source.content or ""

        # Each extractor decides via applies_to; prisma schemas are not structural
        ctx = FileContext(info=info, content=content, extractors=extractors)
        for kind in extractors:
            try:
                result.records[kind] = list(ctx.results(kind))
            except Exception as e:
                logger.warning("%s extractor failed on %s: %s", kind, info.path, e)
                ctx.discard(kind)
                result.errors.append(ExtractionError(file_path=info.path, extractor=kind, message=str(e)))

        try:
            if info.language == "dotenv":
                result.dotenv_names = self.env_scanner.parse_dotenv(content)
            elif info.language in self.env_languages:
                result.env_usages = self.env_scanner.scan_usage(info.path, content)
        except Exception as e:
            logger.warning("Environment scan failed on %s: %s", info.path, e)
            result.errors.append(ExtractionError(file_path=info.path, extractor="env", message=str(e)))

        if info.structural:
            try:
                result.findings = self.security_scanner.scan_file(info.path, content)
            except Exception as e:
                logger.warning("Security scan failed on %s: %s", info.path, e)
                result.errors.append(ExtractionError(file_path=info.path, extractor="security", message=str(e)))

        return result


def analyze(files: Iterable[SourceFile], config: dict[str, Any] | None = None) -> ComprehensiveAnalysis:
    """
    Analyze files with a fresh Analyzer.

    Args:
        files: Input files.
        config: Optional configuration (merged with defaults).

    Returns:
        Complete, immutable analysis.
    """
    return Analyzer(config).analyze(files)
