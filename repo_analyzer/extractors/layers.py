"""
Architecture layer extractors: services, controllers, middleware, utilities.

Layers are recognized by path conventions (``services/``, ``*.controller.ts``,
``middleware.ts``, ``lib/``) and reuse the function, class and route records
already extracted for the same file.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.extractors.base import BaseExtractor, ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import extract_block, find_expression_end, find_imports
from repo_analyzer.extractors.functions import GENERICS, IDENTIFIER, CallableExtractor
from repo_analyzer.models import (
    ControllerRecord,
    FunctionRecord,
    MiddlewareRecord,
    ServiceRecord,
    UtilityRecord,
)
from repo_analyzer.utils import file_stem

if TYPE_CHECKING:
    from repo_analyzer.extractors.base import FileContext

logger = logging.getLogger(__name__)


CLASS_NAME = re.compile(rf"\bclass\s+({IDENTIFIER})")
NEXT_MIDDLEWARE_CONFIG = re.compile(r"^export\s+const\s+config\s*=", re.MULTILINE)
MATCHER_VALUE = re.compile(r"matcher\s*:\s*(\[[^\]]*\]|'[^']*'|\"[^\"]*\")")


def layer_name(ctx: FileContext) -> str:
    """First class name in the file, else the file name without extension."""
    match = CLASS_NAME.search(ctx.content)
    return match.group(1) if match else file_stem(ctx.path)


def file_methods(ctx: FileContext) -> tuple[FunctionRecord, ...]:
    """Top-level functions followed by class methods of one file."""
    methods = list(ctx.results("functions"))
    for cls in ctx.results("classes"):
        methods.extend(cls.methods)
    return tuple(methods)


class PathConventionExtractor(BaseExtractor):
    """Applies to structural files whose path contains one of ``markers``."""

    markers: tuple[str, ...] = ()

    def applies_to(self, ctx: FileContext) -> bool:
        if not super().applies_to(ctx):
            return False
        path = ctx.anchored_path
        return any(marker in path for marker in self.markers)


@ExtractorRegistry.register("services")
class ServiceExtractor(PathConventionExtractor):
    markers = ("service",)

    def extract(self, ctx: FileContext) -> list[ServiceRecord]:
        return [ServiceRecord(
            name=layer_name(ctx),
            file_path=ctx.path,
            methods=file_methods(ctx),
            dependencies=find_imports(ctx.content),
        )]


@ExtractorRegistry.register("controllers")
class ControllerExtractor(PathConventionExtractor):
    markers = ("controller",)

    def extract(self, ctx: FileContext) -> list[ControllerRecord]:
        return [ControllerRecord(
            name=layer_name(ctx),
            file_path=ctx.path,
            routes=tuple(ctx.results("routes")),
            methods=file_methods(ctx),
        )]


@ExtractorRegistry.register("middlewares")
class MiddlewareExtractor(CallableExtractor):
    """
    Extract exported middleware functions from middleware files.

    A Next.js ``export const config = { matcher: ... }`` block is not a
    middleware itself; its matcher becomes ``applies_to`` for the others.
    """

    RULES = (
        RegexMatcher(
            "declaration",
            rf"^export\s+(?:default\s+)?(?:async\s+)?function\s+(?P<name>{IDENTIFIER})\s*{GENERICS}\s*\(",
        ),
        RegexMatcher(
            "const",
            rf"^export\s+(?:const|let)\s+(?P<name>{IDENTIFIER})\s*(?::[^=\n]+)?=",
        ),
    )

    def applies_to(self, ctx: FileContext) -> bool:
        return super().applies_to(ctx) and "middleware" in ctx.anchored_path

    def extract(self, ctx: FileContext) -> list[MiddlewareRecord]:
        content = ctx.content
        applies_to = self._matcher(content)
        middlewares: list[MiddlewareRecord] = []

        for span in scan_rules(self.RULES, content):
            name = span.group("name") or ""
            if name == "config":
                continue
            end = None
            if span.rule == "declaration":
                callable_span = self.read_callable(content, span.end - 1, arrow=False)
                end = callable_span.end if callable_span else None
                if end is None:
                    end = span.start + len(extract_block(
                        content, span.start, search_from=span.end,
                        fallback_length=self.fallback_length, max_scan=self.max_block_scan,
                    ))
            else:
                end = find_expression_end(content, span.end, self.max_block_scan)

            code = content[span.start:end].rstrip()
            line_start = ctx.line_of(span.start)
            middlewares.append(MiddlewareRecord(
                name=name,
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("middleware", code),
                applies_to=applies_to,
            ))

        return middlewares

    def _matcher(self, content: str) -> str | None:
        match = NEXT_MIDDLEWARE_CONFIG.search(content)
        if not match:
            return None
        block = extract_block(content, match.start(), search_from=match.end(), max_scan=self.max_block_scan)
        value = MATCHER_VALUE.search(block)
        return " ".join(value.group(1).split()) if value else None


@ExtractorRegistry.register("utilities")
class UtilityExtractor(PathConventionExtractor):
    """A utility module is any util/helper/lib file that defines functions."""

    markers = ("util", "helper", "lib/")

    def extract(self, ctx: FileContext) -> list[UtilityRecord]:
        functions = tuple(ctx.results("functions"))
        if not functions:
            return []
        return [UtilityRecord(name=file_stem(ctx.path), file_path=ctx.path, functions=functions)]
