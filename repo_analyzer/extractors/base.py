"""
Base extractor class, matcher abstraction and registry.

To add a new entity kind:
1. Create a class inheriting from BaseExtractor
2. Implement ``extract(ctx)`` returning a list of records
3. Register it with the @ExtractorRegistry.register decorator

Example:
    @ExtractorRegistry.register("enums")
    class EnumExtractor(BaseExtractor):
        RULES = (RegexMatcher("enum", r"^export\\s+enum\\s+(?P<name>\\w+)"),)

        def extract(self, ctx):
            return [...]
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Protocol

from repo_analyzer.config import DEFAULT_CONFIG
from repo_analyzer.extractors.blocks import BLOCK_FALLBACK_LENGTH, MAX_BLOCK_SCAN, LineIndex
from repo_analyzer.utils import anchored_path

if TYPE_CHECKING:
    from typing import Any, Callable, Iterable, Type

    from repo_analyzer.models import FileInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchSpan:
    """One rule match: the rule name, header offsets and named groups."""

    rule: str
    start: int
    end: int
    groups: dict[str, str | None] = field(default_factory=dict)

    def group(self, name: str) -> str | None:
        return self.groups.get(name)


class Matcher(Protocol):
    """Anything that can report matches over a text."""

    name: str

    def scan(self, text: str) -> list[MatchSpan]:
        ...


class RegexMatcher:
    """A named regex rule. Multiline mode is on so ``^`` anchors lines."""

    def __init__(self, name: str, pattern: str, flags: int = re.MULTILINE) -> None:
        self.name = name
        self.pattern = re.compile(pattern, flags)

    def scan(self, text: str) -> list[MatchSpan]:
        return [
            MatchSpan(self.name, m.start(), m.end(), m.groupdict())
            for m in self.pattern.finditer(text)
        ]

    def __repr__(self) -> str:
        return f"RegexMatcher({self.name!r})"


def scan_rules(rules: Iterable[Matcher], text: str) -> list[MatchSpan]:
    """
    Run an ordered rule set over a text.

    Spans are ordered by position; when two rules match at the same place
    the one declared first wins, and a span starting inside an accepted
    header is dropped.

    Args:
        rules: Matchers in priority order.
        text: Text to scan.

    Returns:
        Non-overlapping spans sorted by start offset.
    """
    candidates: list[tuple[int, int, MatchSpan]] = []
    for order, rule in enumerate(rules):
        for span in rule.scan(text):
            candidates.append((span.start, order, span))
    candidates.sort(key=lambda item: (item[0], item[1]))

    accepted: list[MatchSpan] = []
    header_end = -1
    for start, _, span in candidates:
        if start < header_end:
            continue
        accepted.append(span)
        header_end = span.end
    return accepted


@dataclass
class FileContext:
    """
    Per-file working state shared by extractors during one analysis.

    Results are memoized per kind so dependent extractors (services reuse
    functions, controllers reuse routes) do the work once per file.
    """

    info: FileInfo
    content: str
    extractors: dict[str, "BaseExtractor"]
    _results: dict[str, list[Any]] = field(default_factory=dict, repr=False)
    _lines: LineIndex | None = field(default=None, repr=False)

    @property
    def path(self) -> str:
        return self.info.path

    @property
    def language(self) -> str:
        return self.info.language

    @property
    def anchored_path(self) -> str:
        """Lower-cased path with a leading "/" for convention checks."""
        return anchored_path(self.info.path).lower()

    def line_of(self, index: int) -> int:
        if self._lines is None:
            self._lines = LineIndex(self.content)
        return self._lines.line_of(index)

    def results(self, kind: str) -> list[Any]:
        """Records of ``kind`` for this file, computed on first use."""
        if kind not in self._results:
            extractor = self.extractors.get(kind)
            if extractor is None or not extractor.applies_to(self):
                self._results[kind] = []
            else:
                self._results[kind] = extractor.extract(self)
        return self._results[kind]

    def discard(self, kind: str) -> None:
        """Record ``kind`` as empty so dependent extractors skip a failed kind."""
        self._results[kind] = []


class BaseExtractor(ABC):
    """
    Abstract base class for entity extractors.

    Subclasses declare ``kind`` (set by the registry), optionally restrict
    ``languages``, and implement ``extract``.
    """

    kind: ClassVar[str] = ""
    # None means every structural language
    languages: ClassVar[frozenset[str] | None] = None

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config: dict[str, Any] = config or DEFAULT_CONFIG
        limits = self.config.get("limits", {})
        self.code_caps: dict[str, int] = limits.get("code", {})
        self.fallback_length: int = limits.get("block_fallback_length", BLOCK_FALLBACK_LENGTH)
        self.max_block_scan: int = limits.get("max_block_scan", MAX_BLOCK_SCAN)
        self.max_signature_scan: int = limits.get("max_signature_scan", 5000)
        self.max_properties: int = limits.get("max_properties", 50)

    def applies_to(self, ctx: FileContext) -> bool:
        """Whether this extractor should run on the file."""
        if not ctx.info.structural:
            return False
        return self.languages is None or ctx.language in self.languages

    def cap(self, kind: str, code: str) -> str:
        """Cut a code snippet to the configured cap for ``kind``."""
        limit = self.code_caps.get(kind)
        return code[:limit] if limit and len(code) > limit else code

    @abstractmethod
    def extract(self, ctx: FileContext) -> list[Any]:
        """
        Extract records from one file.

        Args:
            ctx: The file being analyzed.

        Returns:
            Records in source order.
        """
        ...


class ExtractorRegistry:
    """
    Registry of extractor classes, in registration order.

    Only classes are stored; ``create_all`` builds fresh instances so no
    extractor state is shared between analyzers.
    """

    _extractor_classes: ClassVar[dict[str, Type[BaseExtractor]]] = {}

    @classmethod
    def register(cls, kind: str) -> Callable[[Type[BaseExtractor]], Type[BaseExtractor]]:
        """
        Decorator to register an extractor class under an entity kind.

        Example:
            @ExtractorRegistry.register("functions")
            class FunctionExtractor(BaseExtractor):
                ...
        """
        def decorator(extractor_class: Type[BaseExtractor]) -> Type[BaseExtractor]:
            extractor_class.kind = kind
            cls._extractor_classes[kind] = extractor_class
            logger.debug("Registered extractor for %s", kind)
            return extractor_class
        return decorator

    @classmethod
    def create_all(cls, config: dict[str, Any] | None = None) -> dict[str, BaseExtractor]:
        """Instantiate every registered extractor with the given config."""
        return {kind: extractor_class(config) for kind, extractor_class in cls._extractor_classes.items()}
