"""
Function extractor for repo_analyzer.

Recognizes top-level function declarations, arrow functions and function
expressions assigned to const/let/var. Nested functions are not reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_analyzer.analyzers.complexity import calculate_complexity
from repo_analyzer.extractors.base import BaseExtractor, ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import (
    extract_block,
    find_calls,
    find_expression_end,
    parse_parameters,
    read_balanced,
    read_return_type,
    skip_whitespace,
)
from repo_analyzer.models import FunctionRecord

if TYPE_CHECKING:
    from repo_analyzer.extractors.base import FileContext, MatchSpan

logger = logging.getLogger(__name__)

IDENTIFIER = r"[A-Za-z_$][\w$]*"
GENERICS = r"(?:<[^(){}\n]*>)?"


@dataclass(frozen=True)
class CallableSpan:
    """Offsets of a parsed signature and body."""

    params: str
    params_end: int
    return_type: str | None
    body_start: int
    end: int
    is_arrow: bool


class CallableExtractor(BaseExtractor):
    """Shared signature and body handling for anything function-shaped."""

    def read_callable(self, content: str, paren_index: int, arrow: bool | None = None) -> CallableSpan | None:
        """
        Parse ``(params): ReturnType { body }`` or ``(params) => body``.

        Args:
            content: File text.
            paren_index: Offset of the opening parenthesis.
            arrow: True to require "=>", False to forbid it, None for either.

        Returns:
            CallableSpan, or None when the parameters never close or no body
            follows (overload signatures, ambient declarations, plain
            parenthesized expressions).
        """
        close = read_balanced(content, paren_index, self.max_signature_scan)
        if close is None:
            return None
        params = content[paren_index + 1:close]
        return_type, index = read_return_type(content, close + 1, self.max_signature_scan)
        index = skip_whitespace(content, index)

        if content.startswith("=>", index):
            if arrow is False:
                return None
            return self.read_arrow_body(content, params, close + 1, return_type, index + 2)
        if arrow:
            return None
        if content.startswith("{", index):
            block = extract_block(content, index, max_scan=self.max_block_scan)
            return CallableSpan(params, close + 1, return_type, index, index + len(block), False)
        return None

    def read_arrow_body(
        self,
        content: str,
        params: str,
        params_end: int,
        return_type: str | None,
        after_arrow: int,
    ) -> CallableSpan:
        """Bound an arrow body: a braced block or a single expression."""
        body = skip_whitespace(content, after_arrow)
        if content.startswith("{", body):
            block = extract_block(content, body, max_scan=self.max_block_scan)
            end = body + len(block)
        else:
            end = find_expression_end(content, body, self.max_block_scan)
        return CallableSpan(params, params_end, return_type, body, end, True)

    def build_function(
        self,
        ctx: FileContext,
        name: str,
        start: int,
        span: CallableSpan,
        exported: bool = False,
        is_async: bool = False,
        cap_kind: str = "function",
    ) -> FunctionRecord:
        """Turn a parsed callable into a FunctionRecord."""
        code = ctx.content[start:span.end].rstrip()
        line_start = ctx.line_of(start)
        return FunctionRecord(
            name=name,
            file_path=ctx.path,
            line_start=line_start,
            line_end=line_start + code.count("\n"),
            code=self.cap(cap_kind, code),
            parameters=parse_parameters(span.params),
            return_type=span.return_type,
            is_async=is_async,
            is_exported=exported,
            complexity=calculate_complexity(code),
            calls_to=find_calls(ctx.content[span.params_end:span.end]),
        )

    def callable_from_span(self, content: str, span: MatchSpan) -> CallableSpan | None:
        """
        Parse the callable behind a rule match.

        Rules ending in "(" are read from that parenthesis; the
        "arrow_single" rule carries its lone parameter in a group.
        """
        if span.rule == "arrow_single":
            params = span.group("param") or ""
            return self.read_arrow_body(content, params, span.end - 2, None, span.end)
        return self.read_callable(content, span.end - 1, arrow=span.rule == "arrow")


@ExtractorRegistry.register("functions")
class FunctionExtractor(CallableExtractor):
    """Extract top-level functions from JavaScript and TypeScript files."""

    RULES = (
        RegexMatcher(
            "declaration",
            rf"^(?P<export>export\s+(?:default\s+)?)?(?:declare\s+)?(?P<async>async\s+)?"
            rf"function\s*\*?\s*(?P<name>{IDENTIFIER})\s*{GENERICS}\s*\(",
        ),
        RegexMatcher(
            "arrow",
            rf"^(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>{IDENTIFIER})\s*(?::[^=\n]+)?="
            rf"\s*(?P<async>async\s*)?{GENERICS}\s*\(",
        ),
        RegexMatcher(
            "arrow_single",
            rf"^(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>{IDENTIFIER})\s*="
            rf"\s*(?P<async>async\s+)?(?P<param>{IDENTIFIER})\s*=>",
        ),
        RegexMatcher(
            "expression",
            rf"^(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>{IDENTIFIER})\s*(?::[^=\n]+)?="
            rf"\s*(?P<async>async\s+)?function\b\s*\*?\s*(?:{IDENTIFIER})?\s*{GENERICS}\s*\(",
        ),
    )

    def extract(self, ctx: FileContext) -> list[FunctionRecord]:
        """
        Extract functions from one file.

        Args:
            ctx: The file being analyzed.

        Returns:
            FunctionRecords in source order. Constructs whose signature or
            body cannot be bounded are skipped.
        """
        functions: list[FunctionRecord] = []
        for span in scan_rules(self.RULES, ctx.content):
            callable_span = self.callable_from_span(ctx.content, span)
            if callable_span is None:
                logger.debug("Skipping unbounded function %s in %s", span.group("name"), ctx.path)
                continue
            functions.append(self.build_function(
                ctx,
                span.group("name") or "anonymous",
                span.start,
                callable_span,
                exported=bool(span.group("export")),
                is_async=bool(span.group("async")),
            ))
        return functions
