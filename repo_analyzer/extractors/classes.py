"""
Class extractor for repo_analyzer.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.extractors.base import ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import (
    CALL_KEYWORDS,
    extract_block,
    parse_class_properties,
    split_top_level,
)
from repo_analyzer.extractors.functions import GENERICS, IDENTIFIER, CallableExtractor
from repo_analyzer.models import ClassRecord, FunctionRecord

if TYPE_CHECKING:
    from repo_analyzer.extractors.base import FileContext

logger = logging.getLogger(__name__)


METHOD_HEADER = re.compile(
    r"^[ \t]*(?P<head>(?:@[\w$.]+(?:\([^)\n]*\))?\s+)*"
    r"(?:(?:public|private|protected)\s+)?(?:static\s+)?(?:(?:override|abstract)\s+)*"
    r"(?P<async>async\s+)?(?:(?:get|set)\s+(?=[#\w$]))?\*?\s*"
    rf"(?P<name>#?{IDENTIFIER})\s*{GENERICS}\s*\()",
    re.MULTILINE,
)


@ExtractorRegistry.register("classes")
class ClassExtractor(CallableExtractor):
    """Extract classes with their methods and fields."""

    RULES = (
        RegexMatcher(
            "class",
            r"^(?P<export>export\s+(?:default\s+)?)?(?:declare\s+)?(?P<abstract>abstract\s+)?"
            rf"class\s+(?P<name>{IDENTIFIER})(?:\s*<[^{{\n]*?>)?"
            r"(?:\s+extends\s+(?P<extends>[\w$.]+)(?:\s*<[^{\n]*?>)?)?"
            r"(?:\s+implements\s+(?P<implements>[^{]+?))?\s*\{",
        ),
    )

    def extract(self, ctx: FileContext) -> list[ClassRecord]:
        content = ctx.content
        classes: list[ClassRecord] = []

        for span in scan_rules(self.RULES, content):
            code = extract_block(
                content,
                span.start,
                search_from=span.end - 1,
                fallback_length=self.fallback_length,
                max_scan=self.max_block_scan,
            )
            end = span.start + len(code)
            inner_start = span.end
            inner_end = end - 1 if code.endswith("}") else end

            implements = span.group("implements")
            line_start = ctx.line_of(span.start)
            classes.append(ClassRecord(
                name=span.group("name") or "",
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("class", code),
                methods=self._extract_methods(ctx, inner_start, inner_end),
                properties=parse_class_properties(content[inner_start:inner_end], self.max_properties),
                extends=span.group("extends"),
                implements=tuple(split_top_level(implements, ",")) if implements else (),
                is_exported=bool(span.group("export")),
                is_abstract=bool(span.group("abstract")),
            ))

        return classes

    def _extract_methods(self, ctx: FileContext, inner_start: int, inner_end: int) -> tuple[FunctionRecord, ...]:
        """Find method definitions sitting directly in the class body."""
        content = ctx.content
        methods: list[FunctionRecord] = []
        depth = 0
        last = inner_start

        for match in METHOD_HEADER.finditer(content, inner_start, inner_end):
            depth += content.count("{", last, match.start()) - content.count("}", last, match.start())
            last = match.start()
            if depth != 0:
                continue

            name = match.group("name")
            if name in CALL_KEYWORDS:
                continue
            span = self.read_callable(content, match.end() - 1, arrow=False)
            if span is None:
                continue
            methods.append(self.build_function(
                ctx,
                name,
                match.start("head"),
                span,
                is_async=bool(match.group("async")),
            ))

        return tuple(methods)
