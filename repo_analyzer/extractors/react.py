"""
React extractors: custom hooks and function components.

Hooks follow the ``useSomething`` naming convention. Components are exported
functions with an upper-case name in JSX-capable files.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.extractors.base import ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import (
    find_top_level,
    parse_interface_members,
    read_balanced,
    split_top_level,
)
from repo_analyzer.extractors.functions import GENERICS, IDENTIFIER, CallableExtractor
from repo_analyzer.models import ComponentRecord, HookRecord, PropertyRecord

if TYPE_CHECKING:
    from typing import Any

    from repo_analyzer.extractors.base import FileContext

logger = logging.getLogger(__name__)


BUILTIN_HOOKS = re.compile(
    r"\b(use(?:State|Effect|LayoutEffect|InsertionEffect|Memo|Callback|Ref|Context|Reducer"
    r"|Transition|DeferredValue|Id|SyncExternalStore|ImperativeHandle|DebugValue"
    r"|Optimistic|ActionState|FormStatus))\s*\("
)
ANY_HOOK = re.compile(r"(?<![\w$.])(use[A-Z]\w*)\s*\(")
USE_CLIENT = re.compile(r"""^\s*['"]use client['"]""")
COMPONENT_TYPE = re.compile(r"\b(?:React\.)?(?:FC|FunctionComponent|VFC)\s*<\s*(?P<props>[\w$.]+)")


def _exported_callable_rules(name_pattern: str) -> tuple[RegexMatcher, ...]:
    """Function declaration and const forms for exported names matching ``name_pattern``."""
    return (
        RegexMatcher(
            "declaration",
            rf"^export\s+(?:default\s+)?(?P<async>async\s+)?function\s+(?P<name>{name_pattern})\s*{GENERICS}\s*\(",
        ),
        RegexMatcher(
            "arrow",
            rf"^export\s+const\s+(?P<name>{name_pattern})\s*(?::(?P<annotation>[^=\n]+))?="
            rf"\s*(?P<async>async\s*)?{GENERICS}\s*\(",
        ),
        RegexMatcher(
            "arrow_single",
            rf"^export\s+const\s+(?P<name>{name_pattern})\s*="
            rf"\s*(?P<async>async\s+)?(?P<param>{IDENTIFIER})\s*=>",
        ),
        RegexMatcher(
            "expression",
            rf"^export\s+const\s+(?P<name>{name_pattern})\s*(?::(?P<annotation>[^=\n]+))?="
            rf"\s*(?P<async>async\s+)?function\b\s*(?:{IDENTIFIER})?\s*{GENERICS}\s*\(",
        ),
    )


def _unique(names: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


@ExtractorRegistry.register("hooks")
class HookExtractor(CallableExtractor):
    """Extract exported custom hooks and the built-in hooks they call."""

    RULES = _exported_callable_rules(r"use[A-Z0-9][\w$]*")

    def extract(self, ctx: FileContext) -> list[HookRecord]:
        content = ctx.content
        hooks: list[HookRecord] = []

        for span in scan_rules(self.RULES, content):
            callable_span = self.callable_from_span(content, span)
            if callable_span is None:
                continue
            code = content[span.start:callable_span.end].rstrip()
            line_start = ctx.line_of(span.start)
            body = content[callable_span.body_start:callable_span.end]
            hooks.append(HookRecord(
                name=span.group("name") or "",
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("hook", code),
                dependencies=_unique(BUILTIN_HOOKS.findall(body)),
            ))

        return hooks


@ExtractorRegistry.register("components")
class ComponentExtractor(CallableExtractor):
    """
    Extract function components from tsx/jsx files.

    Props come from the first parameter. A destructured parameter lists the
    prop names; their types and optionality are looked up in the annotation,
    which may be an inline object type or an interface/type alias declared
    in the same file.
    """

    RULES = _exported_callable_rules(r"[A-Z][\w$]*")

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__(config)
        self.jsx_languages = frozenset(self.config.get("languages", {}).get("jsx", ["tsx", "jsx"]))

    def applies_to(self, ctx: FileContext) -> bool:
        return ctx.info.structural and ctx.language in self.jsx_languages

    def extract(self, ctx: FileContext) -> list[ComponentRecord]:
        content = ctx.content
        is_client = bool(USE_CLIENT.match(content))
        components: list[ComponentRecord] = []

        for span in scan_rules(self.RULES, content):
            callable_span = self.callable_from_span(content, span)
            if callable_span is None:
                continue
            code = content[span.start:callable_span.end].rstrip()
            line_start = ctx.line_of(span.start)
            body = content[callable_span.body_start:callable_span.end]

            annotated = None
            annotation = span.group("annotation")
            if annotation:
                match = COMPONENT_TYPE.search(annotation)
                annotated = match.group("props") if match else None

            components.append(ComponentRecord(
                name=span.group("name") or "",
                file_path=ctx.path,
                line_start=line_start,
                line_end=line_start + code.count("\n"),
                code=self.cap("component", code),
                props=self._props(ctx, callable_span.params, annotated),
                hooks=_unique(ANY_HOOK.findall(body)),
                is_client_component=is_client,
            ))

        return components

    def _props(self, ctx: FileContext, params: str, annotated: str | None) -> tuple[PropertyRecord, ...]:
        chunks = split_top_level(params, ",")
        if not chunks:
            return self._declared_props(ctx, annotated) if annotated else ()
        first = chunks[0]

        type_text = annotated
        names: list[str] | None = None
        if first.startswith("{"):
            close = read_balanced(first, 0, len(first) + 1)
            if close is None:
                return ()
            names = self._destructured_names(first[1:close])
            rest = first[close + 1:].strip()
            if rest.startswith(":"):
                type_text = rest[1:].strip()
        else:
            colon = find_top_level(first, ":")
            if colon != -1:
                type_text = first[colon + 1:].strip()

        declared = self._declared_props(ctx, type_text) if type_text else ()
        if names is None:
            return declared

        by_name = {prop.name: prop for prop in declared}
        return tuple(by_name.get(name) or PropertyRecord(name=name, is_optional=optional) for name, optional in names)

    @staticmethod
    def _destructured_names(inner: str) -> list[tuple[str, bool]]:
        """Names bound by ``{ a, b = 1, c: renamed, ...rest }`` with a has-default flag."""
        names: list[tuple[str, bool]] = []
        for chunk in split_top_level(inner, ","):
            if chunk.startswith("..."):
                continue
            equals = find_top_level(chunk, "=")
            key = chunk[:equals] if equals != -1 else chunk
            colon = find_top_level(key, ":")
            name = (key[:colon] if colon != -1 else key).strip()
            if re.fullmatch(IDENTIFIER, name):
                names.append((name, equals != -1))
        return names

    def _declared_props(self, ctx: FileContext, type_text: str) -> tuple[PropertyRecord, ...]:
        type_text = type_text.strip()
        if type_text.startswith("{"):
            close = read_balanced(type_text, 0, len(type_text) + 1)
            inner = type_text[1:close] if close is not None else type_text[1:]
            return parse_interface_members(inner, self.max_properties)

        name = re.sub(r"^(?:Readonly|React\.PropsWithChildren|PropsWithChildren)<(.*)>$", r"\1", type_text).strip()
        for interface in ctx.results("interfaces"):
            if interface.name == name:
                return interface.properties
        for alias in ctx.results("types"):
            if alias.name == name and alias.definition.startswith("{"):
                return self._declared_props(ctx, alias.definition)
        return ()
