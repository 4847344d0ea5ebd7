"""
Code analyzers for repo_analyzer.

These analyzers derive metrics from extracted entities and raw file text:
complexity, authentication markers, security findings, quality score and
aggregate statistics.
"""

from repo_analyzer.analyzers.auth import AuthDetector
from repo_analyzer.analyzers.complexity import ComplexityAnalyzer, ComplexityReport, calculate_complexity
from repo_analyzer.analyzers.quality import QualityScorer, detect_patterns
from repo_analyzer.analyzers.security import SecurityReport, SecurityRule, SecurityScanner, default_rules
from repo_analyzer.analyzers.stats import StatsAggregator

__all__ = [
    "AuthDetector",
    "ComplexityAnalyzer",
    "ComplexityReport",
    "calculate_complexity",
    "QualityScorer",
    "detect_patterns",
    "SecurityReport",
    "SecurityRule",
    "SecurityScanner",
    "default_rules",
    "StatsAggregator",
]
