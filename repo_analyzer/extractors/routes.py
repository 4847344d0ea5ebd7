"""
API route extractor for repo_analyzer.

Detects:
- Next.js App Router handlers (app/api/**/route.ts exporting GET, POST, ...)
- Next.js Pages Router API files (pages/api/**)
- Express-style routes: app.get('/path', ...), router.post(...), usersRouter.put(...)
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.analyzers.auth import AuthDetector
from repo_analyzer.extractors.base import ExtractorRegistry
from repo_analyzer.extractors.blocks import (
    extract_block,
    find_expression_end,
    read_balanced,
    split_top_level,
)
from repo_analyzer.extractors.functions import CallableExtractor
from repo_analyzer.models import APIRouteRecord, ParameterRecord
from repo_analyzer.utils import anchored_path

if TYPE_CHECKING:
    from typing import Any

    from repo_analyzer.extractors.base import FileContext

logger = logging.getLogger(__name__)


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

NEXT_HANDLERS = {
    method: re.compile(
        rf"^export\s+(?:async\s+)?function\s+{method}\s*(?:<[^(){{}}\n]*>)?\s*(?P<paren>\()"
        rf"|^export\s+const\s+{method}\s*(?::[^=\n]+)?=",
        re.MULTILINE,
    )
    for method in HTTP_METHODS
}

APP_ROUTER_PATH = re.compile(r"(?:^|/)app(/.*?)/?route\.[cm]?[jt]sx?$")
PAGES_ROUTER_PATH = re.compile(r"(?:^|/)pages(/api(?:/.*)?)\.[cm]?[jt]sx?$")
ROUTE_GROUP = re.compile(r"/\([^/)]*\)")
CATCH_ALL_SEGMENT = re.compile(r"\[\[?\.\.\.([\w-]+)\]?\]")
DYNAMIC_SEGMENT = re.compile(r"\[([\w-]+)\]")
ROUTE_PARAM = re.compile(r"[:\[]([^\]/:*]+)")
DEFAULT_EXPORT = re.compile(r"^export\s+default\b", re.MULTILINE)

EXPRESS_ROUTE = re.compile(
    r"(?<![\w$])(?P<router>app|router|server|[A-Za-z_$][\w$]*Router)\."
    r"(?P<method>get|post|put|patch|delete|all|options|head)\s*\(\s*"
    r"(?P<quote>['\"`])(?P<path>[/*][^'\"`\n]*)(?P=quote)"
)
MIDDLEWARE_NAME = re.compile(r"[A-Za-z_$][\w$.]*")


def normalize_route_path(raw: str) -> str:
    """Convert file-system route segments to ``/users/:id`` form."""
    path = ROUTE_GROUP.sub("", raw)
    path = CATCH_ALL_SEGMENT.sub(r":\1*", path)
    path = DYNAMIC_SEGMENT.sub(r":\1", path)
    if path.endswith("/index"):
        path = path[: -len("/index")]
    path = path.rstrip("/")
    if not path.startswith("/"):
        path = "/" + path
    return path


def route_parameters(path: str) -> tuple[ParameterRecord, ...]:
    """Path parameters of a route (``:id`` or ``[id]`` segments)."""
    return tuple(ParameterRecord(name=name, type="string") for name in ROUTE_PARAM.findall(path))


def app_router_path(file_path: str) -> str:
    """Derive the URL path of a Next.js App Router ``route.ts`` file."""
    normalized = anchored_path(file_path)
    match = APP_ROUTER_PATH.search(normalized)
    if match:
        return normalize_route_path(match.group(1))
    api_index = normalized.find("/api/")
    return normalize_route_path(normalized[api_index:normalized.rfind("/")])


@ExtractorRegistry.register("routes")
class RouteExtractor(CallableExtractor):
    """Extract HTTP endpoints."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        super().__init__(config)
        self.auth = AuthDetector().configure(self.config)

    def extract(self, ctx: FileContext) -> list[APIRouteRecord]:
        """
        Extract routes from one file.

        Args:
            ctx: The file being analyzed.

        Returns:
            App Router handlers first (in HTTP method order), then Pages
            Router default exports, then Express routes in source order.
        """
        protected = self.auth.is_protected(ctx.content)
        path = ctx.anchored_path
        file_name = path.rsplit("/", 1)[-1]

        routes: list[APIRouteRecord] = []
        if "/api/" in path and file_name.startswith("route."):
            routes.extend(self._app_router_routes(ctx, protected))
        elif PAGES_ROUTER_PATH.search(anchored_path(ctx.path)):
            routes.extend(self._pages_router_routes(ctx, protected))
        routes.extend(self._express_routes(ctx, protected))
        return routes

    def _app_router_routes(self, ctx: FileContext, protected: bool) -> list[APIRouteRecord]:
        content = ctx.content
        route_path = app_router_path(ctx.path)
        parameters = route_parameters(route_path)
        routes: list[APIRouteRecord] = []

        for method, pattern in NEXT_HANDLERS.items():
            match = pattern.search(content)
            if not match:
                continue
            end = None
            if match.group("paren"):
                span = self.read_callable(content, match.start("paren"))
                end = span.end if span else None
            if end is None:
                end = find_expression_end(content, match.end(), self.max_block_scan)
            routes.append(self._record(ctx, method, route_path, match.start(), end, parameters, protected, "nextjs"))

        return routes

    def _pages_router_routes(self, ctx: FileContext, protected: bool) -> list[APIRouteRecord]:
        content = ctx.content
        match = DEFAULT_EXPORT.search(content)
        if not match:
            return []
        route_path = normalize_route_path(PAGES_ROUTER_PATH.search(anchored_path(ctx.path)).group(1))
        code = extract_block(
            content,
            match.start(),
            fallback_length=self.fallback_length,
            max_scan=self.max_block_scan,
        )
        return [self._record(
            ctx, "ALL", route_path, match.start(), match.start() + len(code),
            route_parameters(route_path), protected, "nextjs-pages",
        )]

    def _express_routes(self, ctx: FileContext, protected: bool) -> list[APIRouteRecord]:
        content = ctx.content
        routes: list[APIRouteRecord] = []

        for match in EXPRESS_ROUTE.finditer(content):
            open_paren = content.find("(", match.end("method"))
            close = read_balanced(content, open_paren, self.max_block_scan)
            middleware: tuple[str, ...] = ()
            if close is None:
                end = match.start() + len(extract_block(
                    content, match.start(), search_from=match.end(),
                    fallback_length=self.fallback_length, max_scan=self.max_block_scan,
                ))
            else:
                end = close + 1
                middleware = self._middleware_names(split_top_level(content[open_paren + 1:close], ","))

            route_path = match.group("path")
            routes.append(self._record(
                ctx,
                match.group("method").upper(),
                route_path,
                match.start(),
                end,
                route_parameters(route_path),
                protected,
                "express",
                middleware,
            ))

        return routes

    @staticmethod
    def _middleware_names(args: list[str]) -> tuple[str, ...]:
        """Names of the arguments between the path and the final handler."""
        names: list[str] = []
        for arg in args[1:-1]:
            if arg.startswith(("(", "async", "function")):
                continue
            match = MIDDLEWARE_NAME.match(arg)
            if match:
                names.append(match.group(0))
        return tuple(names)

    def _record(
        self,
        ctx: FileContext,
        method: str,
        path: str,
        start: int,
        end: int,
        parameters: tuple[ParameterRecord, ...],
        protected: bool,
        framework: str,
        middleware: tuple[str, ...] = (),
    ) -> APIRouteRecord:
        code = ctx.content[start:end].rstrip()
        line_start = ctx.line_of(start)
        return APIRouteRecord(
            method=method,
            path=path,
            file_path=ctx.path,
            line_start=line_start,
            line_end=line_start + code.count("\n"),
            code=self.cap("route", code),
            parameters=parameters,
            is_protected=protected,
            framework=framework,
            middleware=middleware,
        )
