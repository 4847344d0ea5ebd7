"""
Data model extractor for repo_analyzer.

Reads Prisma schema ``model`` blocks and ORM entity classes (TypeORM,
MikroORM and similar) living under model/entity paths.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from repo_analyzer.extractors.base import BaseExtractor, ExtractorRegistry, RegexMatcher, scan_rules
from repo_analyzer.extractors.blocks import extract_block
from repo_analyzer.models import ModelRecord, PropertyRecord
from repo_analyzer.utils import split_lines

if TYPE_CHECKING:
    from repo_analyzer.extractors.base import FileContext
    from repo_analyzer.models import ClassRecord

logger = logging.getLogger(__name__)


PRISMA_FIELD = re.compile(r"^(?P<name>\w+)\s+(?P<type>\w+)(?P<list>\[\])?(?P<optional>\?)?")
PRISMA_TABLE_MAP = re.compile(r"@@map\(\s*(?:name\s*:\s*)?\"([^\"]+)\"\s*\)")
ENTITY_TABLE = re.compile(r"@(?:Entity|Table)\(\s*(?:\{\s*(?:name|tableName)\s*:\s*)?['\"]([^'\"]+)['\"]")

ENTITY_PATH_MARKERS = ("model", "entity", "entities")

# Property types that never point at another entity
SCALAR_TYPES = frozenset({
    "string", "number", "boolean", "bigint", "date", "any", "unknown", "object",
    "String", "Number", "Boolean", "Date", "Object", "Buffer", "Record", "Array",
    "Map", "Set", "Promise", "JSON", "Decimal",
})


@ExtractorRegistry.register("models")
class DataModelExtractor(BaseExtractor):
    """Extract persisted data models."""

    PRISMA_RULES = (
        RegexMatcher("prisma_model", r"^[ \t]*model\s+(?P<name>\w+)\s*\{"),
    )

    def applies_to(self, ctx: FileContext) -> bool:
        if ctx.language == "prisma":
            return True
        if not ctx.info.structural:
            return False
        path = ctx.anchored_path
        return any(marker in path for marker in ENTITY_PATH_MARKERS)

    def extract(self, ctx: FileContext) -> list[ModelRecord]:
        if ctx.language == "prisma":
            return self._prisma_models(ctx)
        return [self._class_model(ctx, cls) for cls in ctx.results("classes")]

    def _prisma_models(self, ctx: FileContext) -> list[ModelRecord]:
        content = ctx.content
        spans = scan_rules(self.PRISMA_RULES, content)
        model_names = {span.group("name") for span in spans}
        models: list[ModelRecord] = []

        for span in spans:
            block = extract_block(content, span.start, search_from=span.end - 1, max_scan=self.max_block_scan)
            body = block[span.end - span.start:]
            body = body[:-1] if body.endswith("}") else body

            fields: list[PropertyRecord] = []
            relations: list[str] = []
            table_name = None
            for raw_line in body.splitlines():
                line = raw_line.strip()
                if not line or line.startswith("//"):
                    continue
                if line.startswith("@@"):
                    mapped = PRISMA_TABLE_MAP.match(line)
                    if mapped:
                        table_name = mapped.group(1)
                    continue
                match = PRISMA_FIELD.match(line)
                if not match:
                    continue
                field_type = match.group("type")
                fields.append(PropertyRecord(
                    name=match.group("name"),
                    type=field_type + ("[]" if match.group("list") else ""),
                    is_optional=bool(match.group("optional")),
                ))
                if (field_type in model_names or "@relation" in line) and field_type not in relations:
                    relations.append(field_type)

            name = span.group("name") or ""
            models.append(ModelRecord(
                name=name,
                file_path=ctx.path,
                line_start=ctx.line_of(span.start),
                fields=tuple(fields),
                relations=tuple(relations),
                table_name=table_name or name.lower(),
                source="prisma",
            ))

        return models

    def _class_model(self, ctx: FileContext, cls: ClassRecord) -> ModelRecord:
        lines = split_lines(ctx.content)
        decorators = "\n".join(lines[max(0, cls.line_start - 6):cls.line_start])
        table = ENTITY_TABLE.search(decorators)

        relations: list[str] = []
        for prop in cls.properties:
            if not prop.type:
                continue
            base = re.sub(r"\[\]$|^Promise<|^Array<|>$", "", prop.type.strip())
            if base[:1].isupper() and base not in SCALAR_TYPES and base not in relations:
                relations.append(base)

        return ModelRecord(
            name=cls.name,
            file_path=ctx.path,
            line_start=cls.line_start,
            fields=cls.properties,
            relations=tuple(relations),
            table_name=table.group(1) if table else None,
            source="class",
        )
