"""
Repo Analyzer - static inventory and risk analysis for JavaScript/TypeScript code.

Extracts functions, classes, interfaces, routes, services, data models, hooks
and components with ordered regex rules, then derives complexity, security
findings, a quality score and aggregate statistics.
"""

__version__ = "1.0.0"

from repo_analyzer.analyzer import Analyzer, analyze
from repo_analyzer.config import DEFAULT_CONFIG, DEFAULT_EXCLUDE
from repo_analyzer.models import ComprehensiveAnalysis, SourceFile

__all__ = [
    "Analyzer",
    "analyze",
    "ComprehensiveAnalysis",
    "SourceFile",
    "DEFAULT_CONFIG",
    "DEFAULT_EXCLUDE",
    "__version__",
]
