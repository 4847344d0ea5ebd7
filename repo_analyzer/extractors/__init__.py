"""
Entity extractors for repo_analyzer.

Importing this package registers every extractor with ExtractorRegistry,
in the order the assembler runs them. Custom extractors can be added by
inheriting from BaseExtractor and registering a new kind.
"""

from repo_analyzer.extractors.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileContext,
    MatchSpan,
    Matcher,
    RegexMatcher,
    scan_rules,
)
from repo_analyzer.extractors.functions import FunctionExtractor
from repo_analyzer.extractors.classes import ClassExtractor
from repo_analyzer.extractors.typescript import InterfaceExtractor, TypeAliasExtractor
from repo_analyzer.extractors.routes import RouteExtractor
from repo_analyzer.extractors.layers import (
    ControllerExtractor,
    MiddlewareExtractor,
    ServiceExtractor,
    UtilityExtractor,
)
from repo_analyzer.extractors.data_models import DataModelExtractor
from repo_analyzer.extractors.react import ComponentExtractor, HookExtractor

__all__ = [
    "BaseExtractor",
    "ExtractorRegistry",
    "FileContext",
    "MatchSpan",
    "Matcher",
    "RegexMatcher",
    "scan_rules",
    "FunctionExtractor",
    "ClassExtractor",
    "InterfaceExtractor",
    "TypeAliasExtractor",
    "RouteExtractor",
    "ServiceExtractor",
    "ControllerExtractor",
    "MiddlewareExtractor",
    "UtilityExtractor",
    "DataModelExtractor",
    "HookExtractor",
    "ComponentExtractor",
]
