"""
Interface and type alias extractors for TypeScript files.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repo_analyzer.extractors.base import BaseExtractor, ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import (
    extract_block,
    parse_interface_members,
    read_type_definition,
    split_top_level,
)
from repo_analyzer.extractors.functions import IDENTIFIER
from repo_analyzer.models import InterfaceRecord, TypeRecord

if TYPE_CHECKING:
    from typing import Any

    from repo_analyzer.extractors.base import FileContext

logger = logging.getLogger(__name__)


class TypedExtractor(BaseExtractor):
    """Runs only on the configured typed languages (ts, tsx by default)."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__(config)
        self.typed_languages = frozenset(self.config.get("languages", {}).get("typed", ["ts", "tsx"]))

    def applies_to(self, ctx: FileContext) -> bool:
        return ctx.info.structural and ctx.language in self.typed_languages


@ExtractorRegistry.register("interfaces")
class InterfaceExtractor(TypedExtractor):
    """Extract interface declarations and their members."""

    RULES = (
        RegexMatcher(
            "interface",
            r"^(?P<export>export\s+(?:default\s+)?)?(?:declare\s+)?"
            rf"interface\s+(?P<name>{IDENTIFIER})(?:\s*<[^{{\n]*?>)?"
            r"(?:\s+extends\s+(?P<extends>[^{]+?))?\s*\{",
        ),
    )

    def extract(self, ctx: FileContext) -> list[InterfaceRecord]:
        content = ctx.content
        interfaces: list[InterfaceRecord] = []

        for span in scan_rules(self.RULES, content):
            code = extract_block(
                content,
                span.start,
                search_from=span.end - 1,
                fallback_length=self.fallback_length,
                max_scan=self.max_block_scan,
            )
            end = span.start + len(code)
            inner_end = end - 1 if code.endswith("}") else end
            extends = span.group("extends")
            line_start = ctx.line_of(span.start)

            interfaces.append(InterfaceRecord(
                name=span.group("name") or "",
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("interface", code),
                properties=parse_interface_members(content[span.end:inner_end], self.max_properties),
                extends=tuple(split_top_level(extends, ",")) if extends else (),
                is_exported=bool(span.group("export")),
            ))

        return interfaces


@ExtractorRegistry.register("types")
class TypeAliasExtractor(TypedExtractor):
    """Extract ``type Name = ...`` aliases."""

    RULES = (
        RegexMatcher(
            "type",
            r"^(?P<export>export\s+)?(?:declare\s+)?"
            rf"type\s+(?P<name>{IDENTIFIER})(?:\s*<[^=\n]*?>)?\s*=",
        ),
    )

    def extract(self, ctx: FileContext) -> list[TypeRecord]:
        content = ctx.content
        max_length = self.config.get("limits", {}).get("max_type_definition", 2000)
        types: list[TypeRecord] = []

        for span in scan_rules(self.RULES, content):
            end = read_type_definition(content, span.end, max_length)
            definition = content[span.end:end].strip()
            if not definition:
                continue
            if content.startswith(";", end):
                end += 1
            code = content[span.start:end]
            line_start = ctx.line_of(span.start)

            types.append(TypeRecord(
                name=span.group("name") or "",
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("type", code),
                definition=definition,
                is_exported=bool(span.group("export")),
            ))

        return types
